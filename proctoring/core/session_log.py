"""
Session Log Module

Append-only chronological record of a monitoring session, the violation
counters, and the two outward notification channels: the display event
stream and the violation-counter callback.
"""

import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .frame_capture import ViolationFrameRecorder
from ..utils.logger import get_logger

logger = get_logger(__name__)


def current_time_ms() -> float:
    """Wall-clock time in milliseconds."""
    return time.time() * 1000


def format_iso(ms: float) -> str:
    """UTC ISO-8601 timestamp with millisecond precision."""
    dt = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def format_local_time(ms: float) -> str:
    """Human-readable local time of day."""
    return datetime.fromtimestamp(ms / 1000).strftime('%I:%M:%S %p')


class Severity(str, Enum):
    INFO = "info"
    VIOLATION = "violation"
    ERROR = "error"
    WARNING = "warning"


class ViolationReason(Enum):
    """What a violation is about; only ATTENTION counts as an attention violation."""
    ATTENTION = "attention"
    NO_FACE = "no_face"
    MULTIPLE_FACES = "multiple_faces"
    IDENTITY = "identity"
    OTHER = "other"


class LogEntryKind(str, Enum):
    SESSION_START = "session_start"
    SESSION_END = "session_end"
    CALIBRATION_COMPLETE = "calibration_complete"
    FACE_COUNT_CHANGE = "face_count_change"
    ATTENTION_CHANGE = "attention_change"
    FACE_RECOGNITION = "face_recognition"
    EVENT = "event"
    FRAME_SAVED = "frame_saved"


@dataclass(frozen=True)
class DisplayEvent:
    """Event delivered to the UI callback."""
    timestamp: str
    message: str
    severity: Severity

    def to_dict(self) -> Dict[str, str]:
        return {'timestamp': self.timestamp, 'message': self.message, 'severity': self.severity.value}


class SessionLog:
    """Event bus and structured log for one monitoring session at a time."""

    def __init__(self, on_event: Callable[[DisplayEvent], None],
                 on_violation_update: Callable[[int, int], None],
                 frame_recorder: Optional[ViolationFrameRecorder] = None,
                 clock: Callable[[], float] = current_time_ms):
        """
        Args:
            on_event: Called once per display event
            on_violation_update: Called with (total, attention) after every violation
            frame_recorder: Captures a frame for accepted violations
            clock: Millisecond clock
        """
        self.on_event = on_event
        self.on_violation_update = on_violation_update
        self.frame_recorder = frame_recorder
        self.clock = clock

        self.session_id: Optional[int] = None
        self.session_start_ms: Optional[float] = None
        self.total_violations = 0
        self.attention_violations = 0
        self.events: List[DisplayEvent] = []
        self.entries: List[Dict[str, Any]] = []

    def start_session(self) -> int:
        """Reset counters and logs; the session id is the start time in ms."""
        self.session_start_ms = self.clock()
        self.session_id = int(self.session_start_ms)
        self.total_violations = 0
        self.attention_violations = 0
        self.events = []
        self.entries = []
        if self.frame_recorder is not None:
            self.frame_recorder.reset()
        return self.session_id

    def now_iso(self) -> str:
        return format_iso(self.clock())

    def log_event(self, message: str, severity: Severity = Severity.INFO,
                  reason: Optional[ViolationReason] = None) -> DisplayEvent:
        """
        Record a display event.

        Violations bump the total counter, bump the attention counter when
        ``reason`` is ATTENTION, request a frame capture and notify the
        violation-counter callback.
        """
        severity = Severity(severity)
        now = self.clock()
        event = DisplayEvent(timestamp=format_local_time(now), message=message, severity=severity)
        self.events.append(event)

        if severity is Severity.VIOLATION:
            self.total_violations += 1
            if (reason or ViolationReason.OTHER) is ViolationReason.ATTENTION:
                self.attention_violations += 1

        logger.info(f"[{event.timestamp}] {severity.value.upper()}: {message}")
        self._notify(self.on_event, event)

        self.add_to_session_log({
            'type': LogEntryKind.EVENT.value,
            'timestamp': format_iso(now),
            'event_type': severity.value,
            'message': message,
        })

        if severity is Severity.VIOLATION:
            self._capture_violation_frame(message, now)
            self._notify(self.on_violation_update, self.total_violations, self.attention_violations)

        return event

    def _notify(self, callback: Callable, *args) -> None:
        """Deliver to a UI callback; a failing callback never breaks the log."""
        try:
            callback(*args)
        except Exception as e:
            logger.log_error_with_context(e, getattr(callback, "__name__", "event_callback"))

    def _capture_violation_frame(self, message: str, now: float) -> None:
        if self.frame_recorder is None:
            return
        frame = self.frame_recorder.request_capture(message, now, format_iso(now))
        if frame is not None:
            self.add_to_session_log({
                'type': LogEntryKind.FRAME_SAVED.value,
                'reason': message,
                'frame_timestamp': frame.timestamp,
            })

    def add_to_session_log(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        """Stamp ``entry`` with the session id (and time if missing) and append it."""
        kind = entry.get('type')
        if isinstance(kind, LogEntryKind):
            kind = kind.value
        stamped = dict(entry, type=kind, session_id=self.session_id,
                       timestamp=entry.get('timestamp') or self.now_iso())
        self.entries.append(stamped)
        return stamped

    def export_document(self, calibration_data: Optional[Dict[str, float]] = None,
                        configuration: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Build the exportable session document."""
        now = self.clock()
        start = self.session_start_ms
        document = {
            'session_info': {
                'session_id': self.session_id,
                'start_time': format_iso(start) if start is not None else None,
                'end_time': format_iso(now),
                'duration_ms': int(now - start) if start is not None else 0,
            },
            'statistics': {
                'total_violations': self.total_violations,
                'attention_violations': self.attention_violations,
                'total_events': len(self.events),
            },
            'calibration_data': dict(calibration_data or {}),
            'events': [dict(entry) for entry in self.entries],
        }
        if configuration is not None:
            document['configuration'] = configuration
        return document

    def to_json(self, document: Dict[str, Any]) -> str:
        return json.dumps(document, indent=2)

    @staticmethod
    def load_document(text: str) -> Dict[str, Any]:
        """Parse an exported session document."""
        document = json.loads(text)
        for key in ('session_info', 'statistics', 'events'):
            if key not in document:
                raise ValueError(f"Session document is missing '{key}'")
        return document
