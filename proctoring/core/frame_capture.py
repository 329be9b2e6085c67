"""
Violation Frame Capture Module

Keeps the most recent video frame and, on request, captures it as a PNG at
most once per capture interval. Requests inside the interval are dropped.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional

import cv2
import numpy as np

from ..utils.config import FrameCaptureConfig
from ..utils.logger import get_logger

logger = get_logger(__name__)


def sanitize_message(message: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return re.sub(r'[^a-zA-Z0-9]', '_', message)


def frame_timestamp(iso_timestamp: str) -> str:
    """File-name safe form of an ISO timestamp."""
    return re.sub(r'[:.]', '-', iso_timestamp)


@dataclass(frozen=True)
class ViolationFrame:
    """A captured frame tied to the violation that triggered it."""
    message: str
    timestamp: str
    data: bytes

    @property
    def filename(self) -> str:
        return f"violation_{sanitize_message(self.message)}_{self.timestamp}.png"


class ViolationFrameRecorder:
    """Rate-limited PNG capture of the current frame."""

    def __init__(self, capture_config: FrameCaptureConfig = FrameCaptureConfig(),
                 frame_sink: Optional[Callable[[ViolationFrame], None]] = None):
        """
        Args:
            capture_config: Capture interval and output canvas size
            frame_sink: Optional export collaborator receiving every capture
        """
        self.save_interval_ms = capture_config.save_interval_ms
        self.canvas_size = (capture_config.canvas_width, capture_config.canvas_height)
        self.frame_sink = frame_sink
        self.current_frame: Optional[np.ndarray] = None
        self.reset()

    def reset(self) -> None:
        self.frames: List[ViolationFrame] = []
        self.last_capture_ms: Optional[float] = None

    def set_current_frame(self, frame: Optional[np.ndarray]) -> None:
        self.current_frame = frame

    def accepts(self, now_ms: float) -> bool:
        """Whether a request at ``now_ms`` falls outside the throttle window."""
        return self.last_capture_ms is None or now_ms - self.last_capture_ms >= self.save_interval_ms

    def request_capture(self, message: str, now_ms: float, iso_timestamp: str) -> Optional[ViolationFrame]:
        """
        Capture the current frame for ``message``.

        The throttle window starts at every accepted request, even when no
        frame is available or encoding fails.

        Returns:
            The captured frame, or None if the request was dropped or failed
        """
        if not self.accepts(now_ms):
            return None
        self.last_capture_ms = now_ms

        if self.current_frame is None:
            logger.debug(f"No frame available to capture for: {message}")
            return None

        canvas = self.current_frame
        if (canvas.shape[1], canvas.shape[0]) != self.canvas_size:
            canvas = cv2.resize(canvas, self.canvas_size)

        success, buffer = cv2.imencode('.png', canvas)
        if not success:
            logger.error(f"Error saving violation frame: PNG encoding failed for {message}")
            return None

        frame = ViolationFrame(message=message, timestamp=frame_timestamp(iso_timestamp),
                               data=buffer.tobytes())
        self.frames.append(frame)
        logger.info(f"Violation frame captured: {message} at {frame.timestamp}")

        if self.frame_sink is not None:
            try:
                self.frame_sink(frame)
            except Exception as e:
                logger.log_error_with_context(e, "frame_sink")
        return frame
