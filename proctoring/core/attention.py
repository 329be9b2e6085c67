"""
Attention State Machine

Confirms attention state changes from per-frame classifications. A change
needs several consecutive same-direction frames; the distracted direction
additionally needs the distraction episode to have lasted a minimum time.
"""

from enum import Enum
from typing import Optional

from .session_log import LogEntryKind, SessionLog, Severity, ViolationReason, format_iso
from .smoothing import FrameClassification
from ..utils.config import AttentionConfig, StabilizationConfig
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AttentionState(Enum):
    UNKNOWN = "unknown"
    FOCUSED = "focused"
    DISTRACTED = "distracted"


class AttentionStateMachine:
    """Hysteresis over focused/distracted frame decisions."""

    def __init__(self, session_log: SessionLog,
                 stabilization_config: StabilizationConfig = StabilizationConfig(),
                 attention_config: AttentionConfig = AttentionConfig()):
        self.session_log = session_log
        self.threshold = stabilization_config.threshold
        self.min_distraction_duration_ms = attention_config.min_distraction_duration_ms
        self.reset()

    def reset(self) -> None:
        """Back to Unknown with no counters or open episode."""
        self.state = AttentionState.UNKNOWN
        self.reset_counters()

    def reset_counters(self) -> None:
        self.distraction_counter = 0
        self.focus_counter = 0
        self.distraction_start_ms: Optional[float] = None

    def update(self, classification: FrameClassification, now_ms: float) -> Optional[AttentionState]:
        """
        Feed one classified frame.

        Returns:
            The newly confirmed state, or None when nothing changed
        """
        if classification.distracted:
            return self._on_distracted(classification, now_ms)
        return self._on_focused(now_ms)

    def _on_distracted(self, classification: FrameClassification, now_ms: float) -> Optional[AttentionState]:
        self.distraction_counter += 1
        self.focus_counter = 0

        if self.distraction_start_ms is None:
            self.distraction_start_ms = now_ms

        if self.distraction_counter < self.threshold or self.state is AttentionState.DISTRACTED:
            return None

        duration = now_ms - self.distraction_start_ms
        if duration < self.min_distraction_duration_ms:
            return None

        self.state = AttentionState.DISTRACTED
        self.session_log.log_event("Sustained distraction detected", Severity.VIOLATION,
                                   reason=ViolationReason.ATTENTION)
        self.session_log.add_to_session_log({
            'type': LogEntryKind.ATTENTION_CHANGE.value,
            'timestamp': format_iso(now_ms),
            'state': AttentionState.DISTRACTED.value,
            'duration': duration,
            'trigger': classification.cause.value,
        })
        logger.debug(f"Distraction confirmed after {duration:.0f}ms ({classification.cause.value})")
        return self.state

    def _on_focused(self, now_ms: float) -> Optional[AttentionState]:
        self.focus_counter += 1
        self.distraction_counter = 0
        # A single focused frame discards the open episode, confirmed or not
        self.distraction_start_ms = None

        if self.focus_counter < self.threshold or self.state is AttentionState.FOCUSED:
            return None

        self.state = AttentionState.FOCUSED
        self.session_log.log_event("Focus restored", Severity.INFO)
        self.session_log.add_to_session_log({
            'type': LogEntryKind.ATTENTION_CHANGE.value,
            'timestamp': format_iso(now_ms),
            'state': AttentionState.FOCUSED.value,
        })
        return self.state
