"""
Unit tests for configuration and enrolled descriptor storage.
"""

import json
import os
import tempfile
import unittest

import numpy as np

from proctoring.utils.config import CalibrationConfig, Config, StabilizationConfig
from proctoring.utils.storage import (
    EnrollmentDataError, KeyValueStore, load_enrolled_embeddings,
    parse_enrolled_embeddings, save_enrolled_embeddings,
)


class TestConfig(unittest.TestCase):
    """Test configuration defaults, overrides and validation."""

    def test_defaults_are_valid(self):
        cfg = Config()
        self.assertTrue(cfg.validate_config())
        self.assertEqual(cfg.calibration.max_frames, 45)
        self.assertEqual(cfg.stabilization.threshold, 3)
        self.assertEqual(cfg.attention.min_distraction_duration_ms, 2000)
        self.assertEqual(cfg.face_recognition.threshold, 0.50)
        self.assertEqual(cfg.frame_capture.save_interval_ms, 4000)

    def test_section_overrides(self):
        cfg = Config(calibration=CalibrationConfig(max_frames=5))
        self.assertEqual(cfg.calibration.max_frames, 5)
        self.assertEqual(cfg.calibration.ema_alpha, 0.1)

    def test_unknown_section_rejected(self):
        with self.assertRaises(TypeError):
            Config(telemetry=object())

    def test_update_from_dict_ignores_unknown_keys(self):
        cfg = Config()
        cfg.update_from_dict({'stabilization': {'threshold': 5, 'bogus': 1}, 'unknown': {'x': 1}})
        self.assertEqual(cfg.stabilization.threshold, 5)
        self.assertEqual(cfg.stabilization.ema_alpha, 0.25)

    def test_invalid_values(self):
        self.assertFalse(Config(stabilization=StabilizationConfig(ema_alpha=0.0)).validate_config())
        self.assertFalse(Config(calibration=CalibrationConfig(max_frames=0)).validate_config())

    def test_file_round_trip(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'config.json')
            cfg = Config(calibration=CalibrationConfig(max_frames=30))
            cfg.save_to_file(path)

            loaded = Config(path)
            self.assertEqual(loaded.calibration.max_frames, 30)
            self.assertEqual(loaded.to_dict(), cfg.to_dict())


class TestEnrollmentStorage(unittest.TestCase):
    """Test the key-value store and descriptor parsing."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, 'store.json')
        self.store = KeyValueStore(self.path)

    def tearDown(self):
        self.tmp.cleanup()

    def test_missing_key(self):
        self.assertIsNone(self.store.get_item('enrolledDescriptors'))
        self.assertIsNone(load_enrolled_embeddings(self.store, 'enrolledDescriptors'))

    def test_save_and_load(self):
        save_enrolled_embeddings(self.store, 'enrolledDescriptors', [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]])
        loaded = load_enrolled_embeddings(self.store, 'enrolledDescriptors')
        self.assertEqual(loaded.shape, (2, 3))
        np.testing.assert_allclose(loaded[1], [0.4, 0.5, 0.6], rtol=1e-6)

    def test_set_item_keeps_other_keys(self):
        self.store.set_item('a', '1')
        self.store.set_item('b', '2')
        self.assertEqual(self.store.get_item('a'), '1')
        self.assertFalse(os.path.exists(self.path + '.tmp'))

    def test_corrupt_store_file(self):
        with open(self.path, 'w') as f:
            f.write('{not json')
        with self.assertRaises(EnrollmentDataError):
            self.store.get_item('enrolledDescriptors')

    def test_undecodable_store_file(self):
        with open(self.path, 'wb') as f:
            f.write(b'\xff\xfe')
        with self.assertRaises(EnrollmentDataError):
            load_enrolled_embeddings(self.store, 'enrolledDescriptors')

    def test_unreadable_store_path(self):
        os.mkdir(self.path)
        with self.assertRaises(EnrollmentDataError):
            self.store.get_item('enrolledDescriptors')

    def test_parse_rejects_malformed(self):
        for raw in ('not json', json.dumps({'a': 1}), json.dumps([[1, 2], [3]]), json.dumps([['a', 'b']])):
            with self.subTest(raw=raw):
                with self.assertRaises(EnrollmentDataError):
                    parse_enrolled_embeddings(raw)

    def test_parse_empty_list(self):
        self.assertEqual(len(parse_enrolled_embeddings('[]')), 0)


if __name__ == '__main__':
    unittest.main()
