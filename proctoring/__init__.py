"""
Proctoring Monitor

Signal-conditioning and state-confirmation core for webcam exam proctoring:
calibration, smoothing, adaptive thresholds, hysteresis-confirmed attention,
identity and presence states, and an auditable session event log.
"""

__version__ = "1.0.0"
__author__ = "Proctoring Monitor Team"
__description__ = "Debounced attention, identity and presence events from per-frame face signals"
