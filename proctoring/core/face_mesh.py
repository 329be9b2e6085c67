"""
Face Mesh Module

Landmark collaborator backed by MediaPipe FaceMesh with refined iris
landmarks (478 normalized points per face).
"""

import os
import warnings
from typing import List

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

from .signal_extraction import Point
from ..utils.config import MediaPipeConfig
from ..utils.logger import get_logger

logger = get_logger(__name__)


class FaceMeshDetector:
    """Extracts normalized facial landmarks from a BGR frame."""

    def __init__(self, mediapipe_config: MediaPipeConfig = MediaPipeConfig()):
        """
        Initialize face mesh.

        Raises:
            RuntimeError: if MediaPipe is not installed
        """
        if not MP_AVAILABLE:
            raise RuntimeError("MediaPipe is required for face mesh landmarks")

        self.mp_face_mesh = mp.solutions.face_mesh
        self.face_mesh = self.mp_face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=mediapipe_config.max_num_faces,
            refine_landmarks=True,
            min_detection_confidence=mediapipe_config.min_detection_confidence,
            min_tracking_confidence=mediapipe_config.min_tracking_confidence
        )

        logger.info("Face mesh initialized with refined landmarks")

    def process(self, frame: np.ndarray) -> List[List[Point]]:
        """
        Landmarks for every face found.

        Returns:
            One list of normalized points per face, in MediaPipe index order
        """
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = self.face_mesh.process(rgb_frame)

        if not results.multi_face_landmarks:
            return []

        return [
            [Point(landmark.x, landmark.y) for landmark in face_landmarks.landmark]
            for face_landmarks in results.multi_face_landmarks
        ]

    def close(self) -> None:
        self.face_mesh.close()
