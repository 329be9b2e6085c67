"""
Unit tests for the calibration baseline estimator.
"""

import unittest

import numpy as np

from proctoring.core.calibration import CalibrationEstimator, CalibrationPhase
from proctoring.core.signal_extraction import RawSignals
from proctoring.utils.config import CalibrationConfig


def closed_form_ema(samples, alpha):
    """Baseline after EMA from zero over ``samples``."""
    n = len(samples)
    weights = np.array([alpha * (1 - alpha) ** (n - 1 - i) for i in range(n)])
    return float(np.dot(weights, samples))


class TestCalibrationEstimator(unittest.TestCase):
    """Test baseline estimation over the warm-up window."""

    def setUp(self):
        self.estimator = CalibrationEstimator()
        rng = np.random.default_rng(7)
        self.yaws = rng.normal(0.02, 0.01, 45)
        self.pitches = rng.normal(0.09, 0.01, 45)
        self.gazes = rng.normal(0.5, 0.05, 45)

    def test_baseline_matches_closed_form_ema(self):
        for yaw, pitch, gaze in zip(self.yaws, self.pitches, self.gazes):
            phase = self.estimator.process(RawSignals(yaw, pitch, gaze))
            self.assertEqual(phase, CalibrationPhase.CALIBRATING)

        baseline = self.estimator.baseline
        self.assertAlmostEqual(baseline.yaw, closed_form_ema(self.yaws, 0.1), places=10)
        self.assertAlmostEqual(baseline.pitch, closed_form_ema(self.pitches, 0.1), places=10)
        self.assertAlmostEqual(baseline.gaze, closed_form_ema(self.gazes, 0.1), places=10)

    def test_completion_fires_exactly_once(self):
        phases = [self.estimator.process(RawSignals(0.0, 0.0, 0.5)) for _ in range(50)]
        self.assertEqual(phases[:45], [CalibrationPhase.CALIBRATING] * 45)
        self.assertEqual(phases[45], CalibrationPhase.JUST_COMPLETED)
        self.assertEqual(phases[46:], [CalibrationPhase.COMPLETE] * 4)

    def test_baseline_frozen_after_window(self):
        for _ in range(45):
            self.estimator.process(RawSignals(0.01, 0.02, 0.5))
        frozen = (self.estimator.baseline.yaw, self.estimator.baseline.pitch, self.estimator.baseline.gaze)

        for _ in range(10):
            self.estimator.process(RawSignals(0.9, 0.9, 0.9))

        baseline = self.estimator.baseline
        self.assertEqual((baseline.yaw, baseline.pitch, baseline.gaze), frozen)

    def test_gaze_only_updated_when_available(self):
        estimator = CalibrationEstimator(CalibrationConfig(max_frames=4, ema_alpha=0.5))
        estimator.process(RawSignals(0.0, 0.0, 0.8))
        estimator.process(RawSignals(0.0, 0.0, None))
        estimator.process(RawSignals(0.0, 0.0, None))
        self.assertAlmostEqual(estimator.baseline.gaze, 0.4)
        self.assertEqual(estimator.frames, 3)

    def test_reset_starts_new_window(self):
        for _ in range(46):
            self.estimator.process(RawSignals(0.1, 0.1, 0.5))
        self.estimator.reset()
        self.assertFalse(self.estimator.is_complete)
        self.assertEqual(self.estimator.baseline.yaw, 0.0)

    def test_baseline_snapshot_keys(self):
        self.assertEqual(set(self.estimator.baseline.to_dict()),
                         {'baseline_yaw', 'baseline_pitch', 'baseline_gaze'})


if __name__ == '__main__':
    unittest.main()
