"""
Identity Verification Module

Compares the current face's embedding with the enrolled embeddings and
confirms authorized/unauthorized after consecutive same-direction results.
Runs only while exactly one face is present.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import numpy as np

from .session_log import LogEntryKind, SessionLog, Severity, ViolationReason
from ..utils.config import FaceRecognitionConfig, StabilizationConfig
from ..utils.logger import get_logger

logger = get_logger(__name__)


class PersonState(Enum):
    UNKNOWN = "unknown"
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True)
class FaceEmbedding:
    """Identity descriptor of one detected face."""
    vector: np.ndarray
    confidence: float = 1.0


def best_match_distance(enrolled: np.ndarray, descriptor: np.ndarray) -> float:
    """Smallest Euclidean distance from ``descriptor`` to any enrolled vector."""
    distances = np.linalg.norm(enrolled - np.asarray(descriptor, dtype=np.float32), axis=1)
    return float(distances.min())


class RecognitionSchedule:
    """Time gate: first run after an initial delay, then at a fixed interval."""

    def __init__(self, recognition_config: FaceRecognitionConfig = FaceRecognitionConfig()):
        self.initial_delay_ms = recognition_config.initial_delay_ms
        self.interval_ms = recognition_config.interval_ms
        self.reset(0.0)

    def reset(self, session_start_ms: float) -> None:
        self.session_start_ms = session_start_ms
        self.last_run_ms = 0.0
        self.started = False

    def is_due(self, now_ms: float) -> bool:
        if not self.started:
            return now_ms - self.session_start_ms >= self.initial_delay_ms
        return now_ms - self.last_run_ms >= self.interval_ms

    def mark_run(self, now_ms: float) -> None:
        self.last_run_ms = now_ms
        self.started = True


class IdentityVerifier:
    """Hysteresis over best-match distance to the enrolled embeddings."""

    def __init__(self, session_log: SessionLog, enrolled: Optional[np.ndarray],
                 recognition_config: FaceRecognitionConfig = FaceRecognitionConfig(),
                 stabilization_config: StabilizationConfig = StabilizationConfig()):
        """
        Args:
            session_log: Destination for confirmed transitions
            enrolled: (N, D) enrolled embeddings; None or empty makes the verifier inert
            recognition_config: Distance threshold and minimum detection confidence
            stabilization_config: Consecutive results needed to confirm
        """
        self.session_log = session_log
        self.enrolled = None
        if enrolled is not None and len(enrolled) > 0:
            self.enrolled = np.atleast_2d(np.asarray(enrolled, dtype=np.float32))
        self.threshold = recognition_config.threshold
        self.min_confidence = recognition_config.min_confidence
        self.stabilization_threshold = stabilization_config.threshold
        self.reset()

    @property
    def is_active(self) -> bool:
        return self.enrolled is not None

    def reset(self) -> None:
        self.state = PersonState.UNKNOWN
        self.reset_counters()

    def reset_counters(self) -> None:
        self.unauthorized_counter = 0
        self.authorized_counter = 0

    def verify(self, face_count: int, embed: Callable[[], Optional[FaceEmbedding]]) -> Optional[PersonState]:
        """
        Run one verification cycle.

        Args:
            face_count: Current face count from the presence monitor
            embed: Collaborator returning the current face's embedding, or None

        Returns:
            The newly confirmed state, or None when nothing changed
        """
        if not self.is_active:
            return None

        if face_count != 1:
            self.reset_counters()
            return None

        try:
            embedding = embed()
        except Exception as e:
            logger.log_error_with_context(e, "face_recognition")
            self.reset_counters()
            return None

        if embedding is None or embedding.confidence < self.min_confidence:
            logger.debug("No face detected for recognition")
            self.reset_counters()
            return None

        descriptor = np.asarray(embedding.vector, dtype=np.float32).ravel()
        if descriptor.shape[0] != self.enrolled.shape[1]:
            error = ValueError(f"Descriptor length {descriptor.shape[0]} does not match "
                               f"enrolled length {self.enrolled.shape[1]}")
            logger.log_error_with_context(error, "face_recognition")
            self.reset_counters()
            return None

        return self.observe_distance(best_match_distance(self.enrolled, descriptor))

    def observe_distance(self, distance: float) -> Optional[PersonState]:
        """Apply one best-match distance to the counters."""
        logger.log_recognition(distance, self.threshold)

        if distance > self.threshold:
            self.unauthorized_counter += 1
            self.authorized_counter = 0
            if (self.unauthorized_counter >= self.stabilization_threshold
                    and self.state is not PersonState.UNAUTHORIZED):
                self.state = PersonState.UNAUTHORIZED
                self.session_log.log_event(f"Wrong person detected (distance: {distance:.3f})",
                                           Severity.VIOLATION, reason=ViolationReason.IDENTITY)
                self._log_recognition(distance)
                return self.state
        else:
            self.authorized_counter += 1
            self.unauthorized_counter = 0
            if (self.authorized_counter >= self.stabilization_threshold
                    and self.state is not PersonState.AUTHORIZED):
                self.state = PersonState.AUTHORIZED
                self.session_log.log_event(f"Authorized person verified (distance: {distance:.3f})",
                                           Severity.INFO)
                self._log_recognition(distance)
                return self.state
        return None

    def _log_recognition(self, distance: float) -> None:
        self.session_log.add_to_session_log({
            'type': LogEntryKind.FACE_RECOGNITION.value,
            'result': self.state.value,
            'distance': distance,
            'threshold': self.threshold,
        })
