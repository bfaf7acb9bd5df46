from __future__ import annotations

from typing import List, Optional

from ..exceptions import PersistenceFailure
from ..points import GPSFix
from ..providers import QueuedFixProvider, StaticPermission
from ..session import RecordingOptions, RecordingSession

T0 = 1_700_000_000_000
KM_PER_DEGREE_LAT = 6371.0 * 3.141592653589793 / 180.0


def north_of(latitude: float, metres: float) -> float:
    return latitude + (metres / 1000.0) / KM_PER_DEGREE_LAT


def fix(lat: float, lon: float, accuracy: float = 8.0, t: int = T0, speed: Optional[float] = None) -> GPSFix:
    return GPSFix(latitude=lat, longitude=lon, accuracy_m=accuracy, timestamp_ms=t, speed_mps=speed)


class FakeFlags:
    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.checked: List[str] = []

    def is_recording_enabled(self, vehicle_id: str) -> bool:
        self.checked.append(vehicle_id)
        return self.enabled


class FakeStore:
    def __init__(self, failures: int = 0, error: Exception | None = None):
        self.failures = failures
        self.error = error or PersistenceFailure()
        self.saved = []
        self.attempts = 0

    def save(self, payload) -> str:
        self.attempts += 1
        if self.failures:
            self.failures -= 1
            raise self.error
        self.saved.append(payload)
        return f"route-{len(self.saved)}"


def make_session(
    initial_fixes=(),
    permission: bool = True,
    enabled: bool = True,
    store: Optional[FakeStore] = None,
    **kwargs,
) -> RecordingSession:
    options = kwargs.pop("options", RecordingOptions(initial_fix_backoff_seconds=0))
    return RecordingSession(
        vehicle_id="BUS-12",
        operator_id="driver@example.com",
        provider=kwargs.pop("provider", QueuedFixProvider(initial_fixes)),
        permissions=StaticPermission(permission),
        feature_flags=FakeFlags(enabled),
        store=store or FakeStore(),
        options=options,
        clock=kwargs.pop("clock", lambda: T0 + 60_000),
        **kwargs,
    )
