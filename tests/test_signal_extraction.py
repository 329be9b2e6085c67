"""
Unit tests for head-pose and gaze signal extraction.
"""

import unittest

from proctoring.core.signal_extraction import (
    NOSE_TIP, LEFT_IRIS, Point, SignalExtractor,
    calculate_eye_center, calculate_gaze, calculate_head_angles,
)
from tests.fakes import make_landmarks


class TestGeometry(unittest.TestCase):
    """Test the geometry helpers."""

    def test_eye_center_is_midpoint(self):
        center = calculate_eye_center(Point(0.2, 0.4), Point(0.6, 0.5))
        self.assertAlmostEqual(center.x, 0.4)
        self.assertAlmostEqual(center.y, 0.45)

    def test_head_angles_are_nose_offset(self):
        yaw, pitch = calculate_head_angles(Point(0.55, 0.48), Point(0.5, 0.4))
        self.assertAlmostEqual(yaw, 0.05)
        self.assertAlmostEqual(pitch, 0.08)

    def test_gaze_ratio(self):
        ratio = calculate_gaze(Point(0.43, 0.4), Point(0.46, 0.4), Point(0.40, 0.4))
        self.assertAlmostEqual(ratio, 0.5)

    def test_narrow_eye_is_undefined(self):
        self.assertIsNone(calculate_gaze(Point(0.40, 0.4), Point(0.405, 0.4), Point(0.40, 0.4)))


class TestSignalExtractor(unittest.TestCase):
    """Test extraction from landmark sets."""

    def setUp(self):
        self.extractor = SignalExtractor()

    def test_extract_all_signals(self):
        signals = self.extractor.extract(make_landmarks(yaw=0.1, pitch=-0.05, gaze=0.3))
        self.assertAlmostEqual(signals.yaw, 0.1)
        self.assertAlmostEqual(signals.pitch, -0.05)
        self.assertAlmostEqual(signals.gaze, 0.3)

    def test_missing_iris_leaves_gaze_undefined(self):
        signals = self.extractor.extract(make_landmarks(gaze=None))
        self.assertIsNotNone(signals)
        self.assertIsNone(signals.gaze)

    def test_missing_nose_makes_head_pose_unavailable(self):
        landmarks = make_landmarks()
        del landmarks[NOSE_TIP]
        self.assertIsNone(self.extractor.head_pose(landmarks))
        self.assertIsNone(self.extractor.extract(landmarks))

    def test_dense_landmark_list(self):
        mapping = make_landmarks(yaw=0.02, gaze=0.4)
        dense = [Point(0.0, 0.0)] * (LEFT_IRIS + 10)
        for index, point in mapping.items():
            dense[index] = point
        signals = self.extractor.extract(dense)
        self.assertAlmostEqual(signals.yaw, 0.02)
        self.assertAlmostEqual(signals.gaze, 0.4)

    def test_dense_list_without_iris_points(self):
        mapping = make_landmarks(gaze=None)
        dense = [Point(0.0, 0.0)] * 468
        for index, point in mapping.items():
            dense[index] = point
        self.assertIsNone(self.extractor.gaze(dense))


if __name__ == '__main__':
    unittest.main()
