"""
Calibration Module

Estimates the user's neutral head pose and gaze over a fixed warm-up window
with an exponential moving average. The baseline is frozen afterwards.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict

from .signal_extraction import RawSignals
from ..utils.config import CalibrationConfig
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Baseline:
    """Per-user reference value for each signal."""
    yaw: float = 0.0
    pitch: float = 0.0
    gaze: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {f"baseline_{key}": value for key, value in asdict(self).items()}


class CalibrationPhase(Enum):
    CALIBRATING = "calibrating"
    JUST_COMPLETED = "just_completed"
    COMPLETE = "complete"


class CalibrationEstimator:
    """Warm-up baseline estimator: Calibrating for N frames, then Complete."""

    def __init__(self, calibration_config: CalibrationConfig = CalibrationConfig()):
        self.max_frames = calibration_config.max_frames
        self.alpha = calibration_config.ema_alpha
        self.reset()

    def reset(self) -> None:
        """Start a new calibration window with a zero baseline."""
        self.baseline = Baseline()
        self.frames = 0

    @property
    def is_complete(self) -> bool:
        return self.frames >= self.max_frames

    def _blend(self, current: float, sample: float) -> float:
        return current * (1 - self.alpha) + sample * self.alpha

    def process(self, signals: RawSignals) -> CalibrationPhase:
        """
        Feed one valid frame.

        During the window the baseline absorbs the frame and CALIBRATING is
        returned (no classification for this frame). The first frame after the
        window returns JUST_COMPLETED exactly once; the caller classifies it
        like any later frame, which return COMPLETE.
        """
        if self.frames < self.max_frames:
            self.baseline.yaw = self._blend(self.baseline.yaw, signals.yaw)
            self.baseline.pitch = self._blend(self.baseline.pitch, signals.pitch)
            if signals.gaze is not None:
                self.baseline.gaze = self._blend(self.baseline.gaze, signals.gaze)
            self.frames += 1
            return CalibrationPhase.CALIBRATING

        if self.frames == self.max_frames:
            self.frames += 1
            logger.log_calibration(self.baseline.yaw, self.baseline.pitch, self.baseline.gaze)
            return CalibrationPhase.JUST_COMPLETED

        return CalibrationPhase.COMPLETE
