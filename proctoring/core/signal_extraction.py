"""
Signal Extraction Module

Turns a face-mesh landmark set into 2D proxy signals: head yaw/pitch from the
nose tip relative to the eye-corner midpoint, and a horizontal gaze ratio from
the iris position inside each eye.
"""

from dataclasses import dataclass
from typing import Mapping, NamedTuple, Optional, Sequence, Union

# MediaPipe face mesh indices (refined mesh, 478 points)
NOSE_TIP = 1
LEFT_EYE_OUTER = 33
LEFT_EYE_INNER = 133
RIGHT_EYE_OUTER = 263
RIGHT_EYE_INNER = 362
LEFT_IRIS = 468
RIGHT_IRIS = 473

DEFAULT_MIN_EYE_WIDTH = 0.01


class Point(NamedTuple):
    """Normalized 2D landmark coordinate."""
    x: float
    y: float


# A landmark set is either an index -> point mapping or a dense list indexed 0..477
LandmarkSet = Union[Mapping[int, Point], Sequence[Point]]


@dataclass(frozen=True)
class RawSignals:
    """Per-frame raw signals; ``gaze`` is None when it cannot be computed."""
    yaw: float
    pitch: float
    gaze: Optional[float] = None


def get_landmark(landmarks: LandmarkSet, index: int) -> Optional[Point]:
    """Return landmark ``index`` or None when the set does not contain it."""
    if isinstance(landmarks, Mapping):
        point = landmarks.get(index)
    elif 0 <= index < len(landmarks):
        point = landmarks[index]
    else:
        point = None
    if point is None:
        return None
    return Point(float(point[0]), float(point[1]))


def calculate_eye_center(left_eye: Point, right_eye: Point) -> Point:
    """Midpoint of the two outer eye corners."""
    return Point((left_eye.x + right_eye.x) / 2, (left_eye.y + right_eye.y) / 2)


def calculate_head_angles(nose_tip: Point, eye_center: Point):
    """Yaw and pitch proxies as the nose tip offset from the eye center."""
    return nose_tip.x - eye_center.x, nose_tip.y - eye_center.y


def calculate_gaze(iris: Point, eye_inner: Point, eye_outer: Point,
                   min_eye_width: float = DEFAULT_MIN_EYE_WIDTH) -> Optional[float]:
    """
    Horizontal iris position within the eye, 0 at the outer corner.

    Returns None when the eye is too narrow to measure (closed or unreliable).
    """
    eye_width = abs(eye_inner.x - eye_outer.x)
    if eye_width < min_eye_width:
        return None
    return (iris.x - eye_outer.x) / eye_width


class SignalExtractor:
    """Computes head-pose and gaze proxies from face-mesh landmarks."""

    def __init__(self, min_eye_width: float = DEFAULT_MIN_EYE_WIDTH):
        self.min_eye_width = min_eye_width

    def head_pose(self, landmarks: LandmarkSet):
        """
        Head-pose proxy for the frame.

        Returns:
            (yaw, pitch) tuple, or None if a required landmark is absent
        """
        nose_tip = get_landmark(landmarks, NOSE_TIP)
        left_eye = get_landmark(landmarks, LEFT_EYE_OUTER)
        right_eye = get_landmark(landmarks, RIGHT_EYE_OUTER)
        if nose_tip is None or left_eye is None or right_eye is None:
            return None

        eye_center = calculate_eye_center(left_eye, right_eye)
        return calculate_head_angles(nose_tip, eye_center)

    def gaze(self, landmarks: LandmarkSet) -> Optional[float]:
        """
        Average gaze ratio of both eyes.

        None when iris landmarks are missing or either eye is unmeasurable.
        """
        points = [get_landmark(landmarks, i) for i in (
            LEFT_IRIS, LEFT_EYE_INNER, LEFT_EYE_OUTER,
            RIGHT_IRIS, RIGHT_EYE_INNER, RIGHT_EYE_OUTER,
        )]
        if any(p is None for p in points):
            return None

        left_iris, left_inner, left_outer, right_iris, right_inner, right_outer = points
        left_gaze = calculate_gaze(left_iris, left_inner, left_outer, self.min_eye_width)
        right_gaze = calculate_gaze(right_iris, right_inner, right_outer, self.min_eye_width)
        if left_gaze is None or right_gaze is None:
            return None

        return (left_gaze + right_gaze) / 2

    def extract(self, landmarks: LandmarkSet) -> Optional[RawSignals]:
        """All raw signals for the frame, or None when head pose is unavailable."""
        pose = self.head_pose(landmarks)
        if pose is None:
            return None
        yaw, pitch = pose
        return RawSignals(yaw=yaw, pitch=pitch, gaze=self.gaze(landmarks))
