"""
Smoothing and Threshold Classification Module

Smooths the absolute deviation of each signal from its calibrated baseline
and classifies every frame as focused or distracted against thresholds that
adapt to the baseline.
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Optional

from .calibration import Baseline
from .signal_extraction import RawSignals
from ..utils.config import AttentionConfig, GazeConfig, StabilizationConfig


class SignalSmoother:
    """EMA of one signal's deviation with a bounded history of smoothed values."""

    def __init__(self, alpha: float = 0.25, history_size: int = 8):
        self.alpha = alpha
        self.history: Deque[float] = deque(maxlen=history_size)

    @property
    def last(self) -> Optional[float]:
        return self.history[-1] if self.history else None

    def update(self, deviation: float) -> float:
        """Smooth ``deviation`` against the previous value; the first sample passes through."""
        previous = deviation if self.last is None else self.last
        smoothed = self.alpha * deviation + (1 - self.alpha) * previous
        self.history.append(smoothed)
        return smoothed

    def reset(self) -> None:
        self.history.clear()


@dataclass(frozen=True)
class SmoothedSignals:
    yaw: float
    pitch: float
    gaze: Optional[float] = None


class SmoothingFilter:
    """Independent deviation smoothers for yaw, pitch and gaze."""

    def __init__(self, stabilization_config: StabilizationConfig = StabilizationConfig(),
                 history_size: int = 8):
        alpha = stabilization_config.ema_alpha
        self.yaw = SignalSmoother(alpha, history_size)
        self.pitch = SignalSmoother(alpha, history_size)
        self.gaze = SignalSmoother(alpha, history_size)

    def update(self, signals: RawSignals, baseline: Baseline) -> SmoothedSignals:
        """
        Smooth this frame's deviations from ``baseline``.

        An unavailable gaze leaves the gaze history untouched.
        """
        smoothed_yaw = self.yaw.update(abs(signals.yaw - baseline.yaw))
        smoothed_pitch = self.pitch.update(abs(signals.pitch - baseline.pitch))
        smoothed_gaze = None
        if signals.gaze is not None:
            smoothed_gaze = self.gaze.update(abs(signals.gaze - baseline.gaze))
        return SmoothedSignals(smoothed_yaw, smoothed_pitch, smoothed_gaze)

    def reset(self) -> None:
        for smoother in (self.yaw, self.pitch, self.gaze):
            smoother.reset()


class DistractionCause(Enum):
    HEAD_MOVEMENT = "head_movement"
    GAZE_SHIFT = "gaze_shift"


@dataclass(frozen=True)
class FrameClassification:
    """Raw per-frame decision, before any hysteresis."""
    distracted: bool
    head_distracted: bool = False
    gaze_distracted: bool = False

    @property
    def cause(self) -> Optional[DistractionCause]:
        """Head pose is named as the trigger when both sub-classifiers fire."""
        if self.head_distracted:
            return DistractionCause.HEAD_MOVEMENT
        if self.gaze_distracted:
            return DistractionCause.GAZE_SHIFT
        return None


class ThresholdClassifier:
    """Baseline-adaptive focused/distracted classifier."""

    def __init__(self, attention_config: AttentionConfig = AttentionConfig(),
                 gaze_config: GazeConfig = GazeConfig()):
        self.attention = attention_config
        self.gaze = gaze_config

    def yaw_threshold(self, baseline: Baseline) -> float:
        a = self.attention
        return max(a.yaw_threshold_base, baseline.yaw * a.yaw_threshold_multiplier + a.yaw_threshold_offset)

    def pitch_threshold(self, baseline: Baseline) -> float:
        a = self.attention
        return max(a.pitch_threshold_base, baseline.pitch * a.pitch_threshold_multiplier + a.pitch_threshold_offset)

    def gaze_threshold(self, baseline: Baseline) -> float:
        g = self.gaze
        return max(g.threshold_base, baseline.gaze * g.threshold_multiplier + g.threshold_offset)

    def classify_head_pose(self, smoothed: SmoothedSignals, baseline: Baseline) -> bool:
        return (smoothed.yaw > self.yaw_threshold(baseline)
                or smoothed.pitch > self.pitch_threshold(baseline))

    def classify_gaze(self, smoothed: SmoothedSignals, baseline: Baseline) -> bool:
        # Unmeasurable gaze counts as focused
        if smoothed.gaze is None:
            return False
        return smoothed.gaze > self.gaze_threshold(baseline)

    def classify(self, smoothed: SmoothedSignals, baseline: Baseline) -> FrameClassification:
        head = self.classify_head_pose(smoothed, baseline)
        gaze = self.classify_gaze(smoothed, baseline)
        return FrameClassification(distracted=head or gaze, head_distracted=head, gaze_distracted=gaze)
