"""
Fake collaborators and fixtures shared by the unit tests.
"""

from typing import List, Optional

import numpy as np

from proctoring.core.identity import FaceEmbedding
from proctoring.core.signal_extraction import (
    LEFT_EYE_INNER, LEFT_EYE_OUTER, LEFT_IRIS, NOSE_TIP,
    RIGHT_EYE_INNER, RIGHT_EYE_OUTER, RIGHT_IRIS, Point,
)

EYE_WIDTH = 0.06


def make_landmarks(yaw: float = 0.0, pitch: float = 0.0, gaze: Optional[float] = 0.5):
    """
    Landmark set whose raw signals are exactly (yaw, pitch, gaze).

    ``gaze=None`` leaves out the iris points.
    """
    landmarks = {
        LEFT_EYE_OUTER: Point(0.40, 0.40),
        RIGHT_EYE_OUTER: Point(0.60, 0.40),
        LEFT_EYE_INNER: Point(0.40 + EYE_WIDTH, 0.40),
        RIGHT_EYE_INNER: Point(0.60 - EYE_WIDTH, 0.40),
        NOSE_TIP: Point(0.50 + yaw, 0.40 + pitch),
    }
    if gaze is not None:
        landmarks[LEFT_IRIS] = Point(0.40 + gaze * EYE_WIDTH, 0.40)
        landmarks[RIGHT_IRIS] = Point(0.60 + gaze * EYE_WIDTH, 0.40)
    return landmarks


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start_ms: float = 1_700_000_000_000.0):
        self.now = start_ms

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class Recorder:
    """Collects event and violation-counter callbacks."""

    def __init__(self):
        self.events = []
        self.violation_updates = []

    def on_event(self, event) -> None:
        self.events.append(event)

    def on_violation_update(self, total: int, attention: int) -> None:
        self.violation_updates.append((total, attention))

    @property
    def messages(self) -> List[str]:
        return [event.message for event in self.events]


class FakeFaceDetector:
    """Reports ``face_count`` detections, or raises ``error`` once if set."""

    def __init__(self, face_count: int = 1):
        self.face_count = face_count
        self.error: Optional[Exception] = None
        self.closed = False

    def detect(self, frame):
        if self.error is not None:
            error, self.error = self.error, None
            raise error
        return [{'bbox': (0, 0, 10, 10), 'confidence': 0.9}] * self.face_count

    def close(self):
        self.closed = True


class FakeFaceMesh:
    """Returns ``landmarks`` for one face, nothing when None, or raises ``error`` once."""

    def __init__(self, landmarks=None):
        self.landmarks = landmarks if landmarks is not None else make_landmarks()
        self.error: Optional[Exception] = None
        self.closed = False

    def process(self, frame):
        if self.error is not None:
            error, self.error = self.error, None
            raise error
        return [] if self.landmarks is None else [self.landmarks]

    def close(self):
        self.closed = True


class FakeEmbedder:
    """Returns a fixed descriptor; ``vector=None`` means no face found."""

    def __init__(self, vector=None, confidence: float = 1.0):
        self.vector = vector
        self.confidence = confidence
        self.calls = 0

    def embed(self, frame):
        self.calls += 1
        if self.vector is None:
            return None
        return FaceEmbedding(vector=np.asarray(self.vector, dtype=np.float32), confidence=self.confidence)


class FakeVideoSource:
    """Yields ``count`` blank frames, then reports end of stream."""

    def __init__(self, count: int = 10, clock: Optional[FakeClock] = None, frame_ms: float = 100.0):
        self.remaining = count
        self.clock = clock
        self.frame_ms = frame_ms

    def read_frame(self):
        if self.remaining <= 0:
            return False, None
        self.remaining -= 1
        if self.clock is not None:
            self.clock.advance(self.frame_ms)
        return True, blank_frame()


def blank_frame() -> np.ndarray:
    return np.zeros((48, 64, 3), dtype=np.uint8)
