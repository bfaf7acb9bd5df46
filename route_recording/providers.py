"""
Collaborator interfaces consumed by a recording session, plus the simple
implementations used when fixes are pushed to the server by a driver client.
"""
from __future__ import annotations

from collections import deque
from typing import Any, Deque, Iterable, Iterator, Mapping, Optional, Protocol

from .exceptions import LocationUnavailable
from .points import GPSFix
from .quality import TrackingConfig


class LocationProvider(Protocol):
    def get_current_fix(self, options: Optional[Mapping[str, Any]] = None) -> GPSFix:
        ...

    def subscribe(self, config: TrackingConfig) -> Iterable[GPSFix]:
        ...


class PermissionChecker(Protocol):
    def has_location_permission(self) -> bool:
        ...


class FeatureFlags(Protocol):
    def is_recording_enabled(self, vehicle_id: str) -> bool:
        ...


class RouteStore(Protocol):
    def save(self, payload: Any) -> str:
        ...


class QueuedFixProvider:
    """
    Serves fixes that were delivered ahead of time, in arrival order.
    """

    def __init__(self, fixes: Iterable[GPSFix] = ()):
        self.queue: Deque[GPSFix] = deque(fixes)
        self.requests = 0

    def push(self, fix: GPSFix) -> None:
        self.queue.append(fix)

    def get_current_fix(self, options: Optional[Mapping[str, Any]] = None) -> GPSFix:
        self.requests += 1
        if not self.queue:
            raise LocationUnavailable()
        return self.queue.popleft()

    def subscribe(self, config: TrackingConfig) -> Iterator[GPSFix]:
        while self.queue:
            yield self.queue.popleft()


class StaticPermission:
    def __init__(self, granted: bool):
        self.granted = granted

    def has_location_permission(self) -> bool:
        return self.granted
