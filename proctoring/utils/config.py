"""
Configuration management for the proctoring monitor.
"""

import json
from dataclasses import dataclass, asdict, fields, replace
from typing import Dict, Any, Optional


class ConfigurationError(ValueError):
    """Raised when a configuration fails validation."""


@dataclass(frozen=True)
class CalibrationConfig:
    """Baseline warm-up settings."""
    max_frames: int = 45
    ema_alpha: float = 0.1


@dataclass(frozen=True)
class StabilizationConfig:
    """Hysteresis and deviation smoothing settings."""
    threshold: int = 3
    ema_alpha: float = 0.25


@dataclass(frozen=True)
class AttentionConfig:
    """Head-pose thresholds and distraction timing."""
    min_distraction_duration_ms: int = 2000
    history_size: int = 8
    yaw_threshold_base: float = 0.08
    yaw_threshold_multiplier: float = 2.0
    yaw_threshold_offset: float = 0.05
    pitch_threshold_base: float = 0.12
    pitch_threshold_multiplier: float = 2.0
    pitch_threshold_offset: float = 0.06


@dataclass(frozen=True)
class GazeConfig:
    """Iris gaze ratio thresholds."""
    min_eye_width: float = 0.01
    threshold_base: float = 0.18
    threshold_multiplier: float = 0.5
    threshold_offset: float = 0.12


@dataclass(frozen=True)
class FaceRecognitionConfig:
    """Identity verification settings."""
    threshold: float = 0.50
    min_confidence: float = 0.5
    interval_ms: int = 10000
    initial_delay_ms: int = 1000


@dataclass(frozen=True)
class FrameCaptureConfig:
    """Violation frame capture settings."""
    save_interval_ms: int = 4000
    canvas_width: int = 640
    canvas_height: int = 480


@dataclass(frozen=True)
class MediaPipeConfig:
    """MediaPipe detector options."""
    min_detection_confidence: float = 0.7
    min_tracking_confidence: float = 0.7
    max_num_faces: int = 3


@dataclass(frozen=True)
class CameraConfig:
    """Camera configuration settings."""
    device_id: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30


@dataclass(frozen=True)
class ModelConfig:
    """Model file locations for the identity embedder."""
    shape_predictor_path: str = "data/models/shape_predictor_68_face_landmarks.dat"
    face_recognition_model_path: str = "data/models/dlib_face_recognition_resnet_model_v1.dat"


@dataclass(frozen=True)
class LoggingConfig:
    """Diagnostic logging settings."""
    enable_file_logging: bool = False
    log_dir: str = "logs"
    log_level: str = "INFO"


@dataclass(frozen=True)
class StorageConfig:
    """Enrolled embeddings storage settings."""
    store_path: str = "data/enrollment.json"
    enrolled_key: str = "enrolledDescriptors"


SECTIONS = {
    'calibration': CalibrationConfig,
    'stabilization': StabilizationConfig,
    'attention': AttentionConfig,
    'gaze': GazeConfig,
    'face_recognition': FaceRecognitionConfig,
    'frame_capture': FrameCaptureConfig,
    'mediapipe': MediaPipeConfig,
    'camera': CameraConfig,
    'model': ModelConfig,
    'logging': LoggingConfig,
    'storage': StorageConfig,
}


class Config:
    """Main configuration class for the proctoring monitor."""

    def __init__(self, config_file: Optional[str] = None, **sections):
        """
        Initialize configuration.

        Args:
            config_file: Optional JSON file whose values override the defaults
            **sections: Section instances overriding the defaults, e.g.
                ``calibration=CalibrationConfig(max_frames=5)``
        """
        for name, section_cls in SECTIONS.items():
            section = sections.pop(name, None)
            setattr(self, name, section if section is not None else section_cls())

        if sections:
            raise TypeError(f"Unknown config sections: {', '.join(sorted(sections))}")

        if config_file:
            self.load_from_file(config_file)

    def load_from_file(self, config_file: str) -> None:
        """Load configuration from JSON file. Unknown keys are ignored."""
        with open(config_file, 'r') as f:
            config_data = json.load(f)
        self.update_from_dict(config_data)

    def update_from_dict(self, config_data: Dict[str, Any]) -> None:
        """Rebuild sections from a nested dictionary."""
        for section_name, section_data in config_data.items():
            if section_name not in SECTIONS or not isinstance(section_data, dict):
                continue
            section = getattr(self, section_name)
            known = {f.name for f in fields(section)}
            changes = {key: value for key, value in section_data.items() if key in known}
            setattr(self, section_name, replace(section, **changes))

    def save_to_file(self, config_file: str) -> None:
        """Save current configuration to JSON file."""
        with open(config_file, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Convert every section to a plain dictionary."""
        return {name: asdict(getattr(self, name)) for name in SECTIONS}

    def validate_config(self) -> bool:
        """Validate configuration settings."""
        errors = []

        if self.calibration.max_frames <= 0:
            errors.append("Calibration frame count must be positive")

        for label, alpha in (("Calibration", self.calibration.ema_alpha),
                             ("Stabilization", self.stabilization.ema_alpha)):
            if not 0.0 < alpha <= 1.0:
                errors.append(f"{label} EMA alpha must be in (0, 1]")

        if self.stabilization.threshold < 1:
            errors.append("Stabilization threshold must be at least 1")

        if self.attention.history_size < 1:
            errors.append("History size must be at least 1")

        if self.attention.min_distraction_duration_ms < 0:
            errors.append("Minimum distraction duration must not be negative")

        if self.face_recognition.threshold <= 0:
            errors.append("Face recognition threshold must be positive")

        if self.face_recognition.interval_ms < 0 or self.face_recognition.initial_delay_ms < 0:
            errors.append("Face recognition timing must not be negative")

        if self.frame_capture.save_interval_ms < 0:
            errors.append("Frame capture interval must not be negative")

        if self.camera.width <= 0 or self.camera.height <= 0:
            errors.append("Camera dimensions must be positive")

        if self.camera.fps <= 0:
            errors.append("Camera FPS must be positive")

        if errors:
            # Local import: the logger module reads the default config at import time
            from .logger import get_logger
            log = get_logger(__name__)
            log.error("Configuration validation errors:")
            for error in errors:
                log.error(f"  - {error}")
            return False

        return True


# Global configuration instance
config = Config()
