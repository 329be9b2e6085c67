"""
Proctoring System

Single-lane monitoring loop. Each tick dispatches the frame to the presence
detector and the landmark mesh, processes both results, and runs identity
verification on its time-gated schedule. All session state is mutated from
this one lane; collaborator failures on a frame are logged and treated as
"no usable signal" without stopping the loop.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from .attention import AttentionStateMachine
from .calibration import CalibrationEstimator, CalibrationPhase
from .frame_capture import ViolationFrame, ViolationFrameRecorder
from .identity import IdentityVerifier, RecognitionSchedule
from .presence import PresenceMonitor
from .session_log import (DisplayEvent, LogEntryKind, SessionLog, Severity,
                          current_time_ms)
from .signal_extraction import LandmarkSet, SignalExtractor
from .smoothing import SmoothingFilter, ThresholdClassifier
from ..utils.config import Config, ConfigurationError
from ..utils.logger import get_logger, log_performance_metrics
from ..utils.storage import EnrollmentDataError, KeyValueStore, load_enrolled_embeddings

logger = get_logger(__name__)


class ProctoringSystem:
    """Turns per-frame face signals into confirmed session events."""

    def __init__(self, video_source, face_detector, face_mesh,
                 on_log_event: Callable[[DisplayEvent], None],
                 on_violation_update: Callable[[int, int], None],
                 face_embedder=None,
                 enrollment_store: Optional[KeyValueStore] = None,
                 enrolled_embeddings: Optional[np.ndarray] = None,
                 config: Optional[Config] = None,
                 frame_sink: Optional[Callable[[ViolationFrame], None]] = None,
                 clock: Callable[[], float] = current_time_ms):
        """
        Initialize the proctoring system.

        Args:
            video_source: Object with ``read_frame() -> (ok, frame)``
            face_detector: Presence collaborator, ``detect(frame) -> list``
            face_mesh: Landmark collaborator, ``process(frame) -> list of landmark sets``
            on_log_event: Display event callback
            on_violation_update: Called with (total, attention) violation counts
            face_embedder: Identity collaborator, ``embed(frame) -> FaceEmbedding | None``
            enrollment_store: Store holding enrolled descriptors; defaults to the configured file
            enrolled_embeddings: Enrolled descriptors given directly, bypassing the store
            config: Monitoring configuration
            frame_sink: Export collaborator receiving violation frames
            clock: Millisecond clock

        Raises:
            ValueError: if a required collaborator is missing
            TypeError: if a callback is not callable
            ConfigurationError: if the configuration is invalid
        """
        self.validate_inputs(video_source, face_detector, face_mesh, on_log_event, on_violation_update)

        self.config = config or Config()
        if not self.config.validate_config():
            raise ConfigurationError("Invalid proctoring configuration")

        self.video_source = video_source
        self.face_detector = face_detector
        self.face_mesh = face_mesh
        self.face_embedder = face_embedder
        self.clock = clock
        self.is_monitoring = False
        self.last_document: Optional[Dict[str, Any]] = None

        cfg = self.config
        self.frame_recorder = ViolationFrameRecorder(cfg.frame_capture, frame_sink)
        self.session_log = SessionLog(on_log_event, on_violation_update,
                                      frame_recorder=self.frame_recorder, clock=clock)

        self.signal_extractor = SignalExtractor(cfg.gaze.min_eye_width)
        self.calibration = CalibrationEstimator(cfg.calibration)
        self.smoothing = SmoothingFilter(cfg.stabilization, cfg.attention.history_size)
        self.classifier = ThresholdClassifier(cfg.attention, cfg.gaze)
        self.attention = AttentionStateMachine(self.session_log, cfg.stabilization, cfg.attention)

        enrolled = self._load_enrolled_face(enrollment_store, enrolled_embeddings)
        if enrolled is not None and face_embedder is None:
            logger.warning("Enrolled faces present but no face embedder given; identity checks disabled")
            enrolled = None
        self.identity = IdentityVerifier(self.session_log, enrolled,
                                         cfg.face_recognition, cfg.stabilization)
        self.recognition_schedule = RecognitionSchedule(cfg.face_recognition)
        self.presence = PresenceMonitor(self.session_log, on_identity_reset=self.identity.reset_counters)

    @staticmethod
    def validate_inputs(video_source, face_detector, face_mesh, on_log_event, on_violation_update) -> None:
        if video_source is None:
            raise ValueError("Video source is required")
        if face_detector is None:
            raise ValueError("Face detector is required")
        if face_mesh is None:
            raise ValueError("Face mesh is required")
        if not callable(on_log_event):
            raise TypeError("on_log_event callback is required and must be callable")
        if not callable(on_violation_update):
            raise TypeError("on_violation_update callback is required and must be callable")

    def _load_enrolled_face(self, store: Optional[KeyValueStore],
                            enrolled: Optional[np.ndarray]) -> Optional[np.ndarray]:
        if enrolled is not None:
            return np.asarray(enrolled, dtype=np.float32)

        store = store or KeyValueStore(self.config.storage.store_path)
        try:
            loaded = load_enrolled_embeddings(store, self.config.storage.enrolled_key)
        except EnrollmentDataError as e:
            logger.log_error_with_context(e, "enrolled_face_loading")
            self.session_log.log_event("Error loading enrolled face data", Severity.ERROR)
            return None

        if loaded is None or len(loaded) == 0:
            self.session_log.log_event("No enrolled face found. Please enroll first.", Severity.ERROR)
            return None
        return loaded

    @property
    def baseline(self):
        return self.calibration.baseline

    @property
    def violation_frames(self) -> List[ViolationFrame]:
        return self.frame_recorder.frames

    def start_monitoring(self) -> int:
        """
        Reset every session-scoped state and begin a session.

        Returns:
            The new session id
        """
        session_id = self.session_log.start_session()
        self.is_monitoring = True
        self.last_document = None

        self.calibration.reset()
        self.smoothing.reset()
        self.attention.reset()
        self.identity.reset()
        self.presence.reset()
        self.recognition_schedule.reset(self.session_log.session_start_ms)

        self.session_log.log_event("Monitoring session started - Calibrating...", Severity.INFO)
        self.session_log.add_to_session_log({'type': LogEntryKind.SESSION_START.value})

        if self.identity.is_active and hasattr(self.face_embedder, 'load'):
            try:
                self.face_embedder.load()
            except Exception as e:
                logger.log_error_with_context(e, "start_monitoring")
                self.session_log.log_event("Failed to start monitoring", Severity.ERROR)
                self.is_monitoring = False
                raise

        logger.info(f"Monitoring session {session_id} started")
        return session_id

    def stop_monitoring(self) -> Optional[Dict[str, Any]]:
        """
        End the session and freeze its state.

        Returns:
            The exportable session document, or None if no session was started
        """
        if self.session_log.session_id is None:
            return None
        if not self.is_monitoring:
            return self.last_document

        self.is_monitoring = False
        start = self.session_log.session_start_ms

        self.session_log.log_event("Monitoring session stopped", Severity.INFO)
        self.session_log.add_to_session_log({
            'type': LogEntryKind.SESSION_END.value,
            'session_duration': int(self.clock() - start),
            'total_violations': self.session_log.total_violations,
            'attention_violations': self.session_log.attention_violations,
        })

        self.last_document = self.export_session()
        logger.info(f"Monitoring session {self.session_log.session_id} stopped")
        return self.last_document

    def export_session(self) -> Dict[str, Any]:
        return self.session_log.export_document(
            calibration_data=self.calibration.baseline.to_dict(),
            configuration=self.config.to_dict(),
        )

    def dispose(self) -> None:
        """Stop monitoring and close the collaborators."""
        self.stop_monitoring()
        for collaborator in (self.face_detector, self.face_mesh, self.face_embedder):
            close = getattr(collaborator, 'close', None)
            if close is not None:
                close()
        self.frame_recorder.set_current_frame(None)
        logger.info("ProctoringSystem disposed")

    def run(self, max_duration_ms: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """
        Tick until stopped, the source runs dry, or ``max_duration_ms`` elapses.

        Starts a session if none is running and stops it on exit.
        """
        if not self.is_monitoring:
            self.start_monitoring()

        started = self.clock()
        try:
            while self.is_monitoring:
                if max_duration_ms is not None and self.clock() - started >= max_duration_ms:
                    break
                ok, frame = self.video_source.read_frame()
                if not ok:
                    logger.warning("Video source ended")
                    break
                self.process_frame(frame)
        finally:
            document = self.stop_monitoring()
        return document

    @log_performance_metrics
    def process_frame(self, frame: np.ndarray) -> None:
        """One monitoring tick."""
        if not self.is_monitoring:
            return

        self.frame_recorder.set_current_frame(frame)

        try:
            self.on_face_detection_results(self.face_detector.detect(frame))
        except Exception as e:
            logger.log_error_with_context(e, "face_detection")
            self.identity.reset_counters()

        try:
            self.on_face_mesh_results(self.face_mesh.process(frame))
        except Exception as e:
            logger.log_error_with_context(e, "face_mesh")
            self.attention.reset_counters()

        if self.is_monitoring and self.identity.is_active:
            now = self.clock()
            if self.recognition_schedule.is_due(now):
                self.recognition_schedule.mark_run(now)
                self.identity.verify(self.presence.last_face_count,
                                     lambda: self.face_embedder.embed(frame))

    def on_face_detection_results(self, detections: Sequence[Any]) -> None:
        """Presence handler; a no-op once monitoring has stopped."""
        if not self.is_monitoring:
            return
        self.presence.update(len(detections))

    def on_face_mesh_results(self, landmark_sets: Sequence[LandmarkSet]) -> None:
        """Calibration and attention handler for the first face; a no-op once stopped."""
        if not self.is_monitoring or not landmark_sets:
            return

        signals = self.signal_extractor.extract(landmark_sets[0])
        if signals is None:
            logger.debug("Head pose landmarks unavailable for this frame")
            return

        phase = self.calibration.process(signals)
        if phase is CalibrationPhase.CALIBRATING:
            return

        baseline = self.calibration.baseline
        if phase is CalibrationPhase.JUST_COMPLETED:
            self.session_log.log_event("Calibration complete - Monitoring attention", Severity.INFO)
            self.session_log.add_to_session_log(dict(
                {'type': LogEntryKind.CALIBRATION_COMPLETE.value}, **baseline.to_dict()))

        smoothed = self.smoothing.update(signals, baseline)
        classification = self.classifier.classify(smoothed, baseline)
        self.attention.update(classification, self.clock())
