"""
Settings access for the route recording app.

Values come from the ``ROUTE_RECORDING`` dict in Django settings; any key
left out falls back to the defaults below.
"""
from __future__ import annotations

from typing import Any, Dict

from django.conf import settings

from .session import RecordingOptions

DEFAULTS: Dict[str, Any] = {
    "SIMPLIFY_TOLERANCE": 0.00005,
    "INITIAL_FIX_ATTEMPTS": 3,
    "INITIAL_FIX_MAX_ACCURACY_M": 100.0,
    "INITIAL_FIX_BACKOFF_SECONDS": 2.0,
    "POOR_SIGNAL_ALERT_COUNT": 10,
    "KALMAN_PROCESS_NOISE": 1e-5,
    "KALMAN_MEASUREMENT_NOISE": 1e-2,
    "RECORDED_ROUTES_LIMIT": 10,
    "SESSION_IDLE_TIMEOUT_SECONDS": 3600,
}


def recording_setting(key: str) -> Any:
    configured = getattr(settings, "ROUTE_RECORDING", None) or {}
    if key in configured:
        return configured[key]
    return DEFAULTS[key]


def recording_options() -> RecordingOptions:
    return RecordingOptions(
        simplify_tolerance=float(recording_setting("SIMPLIFY_TOLERANCE")),
        initial_fix_attempts=int(recording_setting("INITIAL_FIX_ATTEMPTS")),
        initial_fix_max_accuracy_m=float(recording_setting("INITIAL_FIX_MAX_ACCURACY_M")),
        initial_fix_backoff_seconds=float(recording_setting("INITIAL_FIX_BACKOFF_SECONDS")),
        poor_signal_limit=int(recording_setting("POOR_SIGNAL_ALERT_COUNT")),
        process_noise=float(recording_setting("KALMAN_PROCESS_NOISE")),
        measurement_noise=float(recording_setting("KALMAN_MEASUREMENT_NOISE")),
    )
