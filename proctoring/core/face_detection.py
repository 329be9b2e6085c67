"""
Face Detection Module

Presence detector backed by MediaPipe face detection (full-range model).
Only the number of detections is consumed by the monitoring core.
"""

import os
import warnings
from typing import Any, Dict, List

import cv2
import numpy as np

# Suppress TensorFlow warnings
os.environ['TF_CPP_MIN_LOG_LEVEL'] = '3'
warnings.filterwarnings('ignore', category=UserWarning)

try:
    import mediapipe as mp
    MP_AVAILABLE = True
except ImportError:
    MP_AVAILABLE = False
    mp = None

from ..utils.config import MediaPipeConfig
from ..utils.logger import get_logger

logger = get_logger(__name__)


class FaceDetector:
    """Counts faces in a BGR frame with MediaPipe."""

    def __init__(self, mediapipe_config: MediaPipeConfig = MediaPipeConfig()):
        """
        Initialize face detector.

        Raises:
            RuntimeError: if MediaPipe is not installed
        """
        if not MP_AVAILABLE:
            raise RuntimeError("MediaPipe is required for face detection")

        self.confidence_threshold = mediapipe_config.min_detection_confidence
        self.mp_face_detection = mp.solutions.face_detection
        self.face_detection = self.mp_face_detection.FaceDetection(
            model_selection=1,  # 0 for short-range, 1 for full-range
            min_detection_confidence=self.confidence_threshold
        )

        logger.info("Face detector initialized with backend: mediapipe")

    def detect(self, frame: np.ndarray) -> List[Dict[str, Any]]:
        """
        Detect faces in the frame.

        Args:
            frame: Input frame (BGR format)

        Returns:
            List of detections with pixel bounding boxes and confidence scores
        """
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = self.face_detection.process(rgb_frame)

        faces = []
        if results.detections:
            h, w = frame.shape[:2]
            for detection in results.detections:
                bbox = detection.location_data.relative_bounding_box
                faces.append({
                    'bbox': (int(bbox.xmin * w), int(bbox.ymin * h),
                             int(bbox.width * w), int(bbox.height * h)),
                    'confidence': float(detection.score[0]),
                })

        return faces

    def close(self) -> None:
        self.face_detection.close()
