"""
Video capture module providing frames to the monitoring loop.
"""

import time
from typing import Any, Dict, Optional, Tuple, Union

import cv2
import numpy as np

from ..utils.config import CameraConfig
from ..utils.logger import get_logger

logger = get_logger(__name__)


class VideoCapture:
    """Camera or video-file frame source."""

    def __init__(self, source: Union[int, str] = 0, camera_config: CameraConfig = CameraConfig()):
        """
        Open a capture device or file.

        Args:
            source: Camera index or path to a video file

        Raises:
            RuntimeError: if the source cannot be opened
        """
        self.source = source
        self.cap = cv2.VideoCapture(source)

        if not self.cap.isOpened():
            raise RuntimeError(f"Could not open video source {source}")

        if isinstance(source, int):
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, camera_config.width)
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, camera_config.height)
            self.cap.set(cv2.CAP_PROP_FPS, camera_config.fps)

        # Performance tracking
        self.frames_read = 0
        self.fps_counter = 0
        self.last_fps_time = time.time()
        self.current_fps = 0.0

        logger.info(f"Video source opened: {source}")

    def read_frame(self) -> Tuple[bool, Optional[np.ndarray]]:
        """Read the next frame."""
        if not self.cap.isOpened():
            return False, None

        ret, frame = self.cap.read()
        if not ret:
            logger.warning("Failed to read frame from video source")
            return False, None

        self.frames_read += 1
        self._update_fps()
        return True, frame

    def _update_fps(self) -> None:
        """Update FPS calculation."""
        self.fps_counter += 1
        current_time = time.time()

        if current_time - self.last_fps_time >= 1.0:
            self.current_fps = self.fps_counter / (current_time - self.last_fps_time)
            self.fps_counter = 0
            self.last_fps_time = current_time

    def get_performance_metrics(self) -> Dict[str, Any]:
        """Get current capture metrics."""
        return {
            'fps': self.current_fps,
            'frames_read': self.frames_read,
        }

    def release(self) -> None:
        if self.cap is not None:
            self.cap.release()
            logger.info("Video source released")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False
