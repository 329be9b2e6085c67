"""
Unit tests for the video frame source.
"""

import time
import unittest
from unittest import mock

from proctoring.core.video_capture import VideoCapture
from tests.fakes import blank_frame


class TestVideoCapture(unittest.TestCase):
    """Test frame reading and capture metrics with a mocked OpenCV capture."""

    def setUp(self):
        patcher = mock.patch('proctoring.core.video_capture.cv2.VideoCapture')
        self.capture_cls = patcher.start()
        self.addCleanup(patcher.stop)
        self.cap = self.capture_cls.return_value
        self.cap.isOpened.return_value = True

    def test_unopened_source_raises(self):
        self.cap.isOpened.return_value = False
        with self.assertRaises(RuntimeError):
            VideoCapture("missing.mp4")

    def test_frames_counted_until_end(self):
        self.cap.read.side_effect = [(True, blank_frame()), (True, blank_frame()), (False, None)]
        video = VideoCapture("exam.mp4")
        video.last_fps_time = time.time() - 1.0

        self.assertTrue(video.read_frame()[0])
        self.assertTrue(video.read_frame()[0])
        self.assertEqual(video.read_frame(), (False, None))

        metrics = video.get_performance_metrics()
        self.assertEqual(metrics['frames_read'], 2)
        self.assertGreater(metrics['fps'], 0.0)

    def test_camera_properties_applied(self):
        VideoCapture(0)
        self.assertEqual(self.cap.set.call_count, 3)

    def test_context_manager_releases(self):
        with VideoCapture("exam.mp4"):
            pass
        self.cap.release.assert_called_once()


if __name__ == '__main__':
    unittest.main()
