"""
Face Recognition Module

Identity embedding collaborator built on dlib: frontal face detector,
68-point shape predictor and the ResNet face descriptor (128-d).
"""

import os
from typing import Optional

import cv2
import numpy as np

try:
    import dlib
    DLIB_AVAILABLE = True
except ImportError:
    DLIB_AVAILABLE = False
    dlib = None

from .identity import FaceEmbedding
from ..utils.config import ModelConfig
from ..utils.logger import get_logger

logger = get_logger(__name__)


class FaceEmbedder:
    """Computes the identity descriptor of the most confident face in a frame."""

    def __init__(self, model_config: ModelConfig = ModelConfig(), upsample: int = 1):
        """
        Args:
            model_config: Paths to the dlib model files
            upsample: Image upsampling passes for the detector
        """
        self.shape_predictor_path = model_config.shape_predictor_path
        self.face_recognition_model_path = model_config.face_recognition_model_path
        self.upsample = upsample

        self.detector = None
        self.shape_predictor = None
        self.face_recognizer = None

    @property
    def is_loaded(self) -> bool:
        return self.face_recognizer is not None

    def load(self) -> None:
        """
        Load the dlib models.

        Raises:
            RuntimeError: if dlib is not installed
            FileNotFoundError: if a model file is missing
        """
        if self.is_loaded:
            return
        if not DLIB_AVAILABLE:
            raise RuntimeError("dlib is required for face recognition")

        for path in (self.shape_predictor_path, self.face_recognition_model_path):
            if not os.path.exists(path):
                raise FileNotFoundError(f"Model file not found: {path}")

        self.detector = dlib.get_frontal_face_detector()
        self.shape_predictor = dlib.shape_predictor(self.shape_predictor_path)
        self.face_recognizer = dlib.face_recognition_model_v1(self.face_recognition_model_path)
        logger.info("Face recognition models loaded")

    def embed(self, frame: np.ndarray) -> Optional[FaceEmbedding]:
        """
        Descriptor of the best-scoring face in a BGR frame.

        Returns:
            The embedding, or None when no face is found
        """
        self.load()

        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        detections, scores, _ = self.detector.run(rgb_frame, self.upsample, 0.0)
        if len(detections) == 0:
            return None

        best = int(np.argmax(scores))
        shape = self.shape_predictor(rgb_frame, detections[best])
        descriptor = self.face_recognizer.compute_face_descriptor(rgb_frame, shape)
        return FaceEmbedding(vector=np.array(descriptor, dtype=np.float32),
                             confidence=float(scores[best]))
