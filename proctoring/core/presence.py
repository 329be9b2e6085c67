"""
Presence Monitor

Derives the presence state straight from each frame's face count. There is
no debouncing: every change is reported on the frame it happens.
"""

from enum import Enum
from typing import Callable, Optional

from .session_log import LogEntryKind, SessionLog, Severity, ViolationReason
from ..utils.logger import get_logger

logger = get_logger(__name__)


class PresenceState(Enum):
    NONE = "none"
    SINGLE = "single"
    MULTIPLE = "multiple"

    @classmethod
    def from_count(cls, face_count: int) -> "PresenceState":
        if face_count == 0:
            return cls.NONE
        if face_count == 1:
            return cls.SINGLE
        return cls.MULTIPLE


class PresenceMonitor:
    """Face-count transitions and identity counter resets."""

    def __init__(self, session_log: SessionLog, on_identity_reset: Optional[Callable[[], None]] = None):
        """
        Args:
            session_log: Destination for presence events
            on_identity_reset: Called on every frame without exactly one face
        """
        self.session_log = session_log
        self.on_identity_reset = on_identity_reset
        self.reset()

    def reset(self) -> None:
        self.last_face_count = 0

    @property
    def state(self) -> PresenceState:
        return PresenceState.from_count(self.last_face_count)

    def _reset_identity(self) -> None:
        if self.on_identity_reset is not None:
            self.on_identity_reset()

    def update(self, face_count: int) -> PresenceState:
        """Process the current frame's face count."""
        previous = self.last_face_count

        if face_count == 0:
            if previous != 0:
                self.session_log.log_event("No face detected", Severity.VIOLATION,
                                           reason=ViolationReason.NO_FACE)
            self._reset_identity()
        elif face_count > 1:
            if previous <= 1:
                self.session_log.log_event("Multiple faces detected", Severity.VIOLATION,
                                           reason=ViolationReason.MULTIPLE_FACES)
            self._reset_identity()
        elif previous != 1:
            self.session_log.log_event("Single face detected - OK", Severity.INFO)

        if previous != face_count:
            logger.log_face_count(previous, face_count)
            self.session_log.add_to_session_log({
                'type': LogEntryKind.FACE_COUNT_CHANGE.value,
                'previous_count': previous,
                'current_count': face_count,
            })

        self.last_face_count = face_count
        return self.state
