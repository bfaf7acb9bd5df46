"""
Recording session lifecycle.

A session is created per vehicle recording and is driven by one controller:

    IDLE -> STARTING -> RECORDING -> SAVE_PENDING -> STOPPED
                  \\            \\              \\
                   +------------+--------------+-> CANCELLED

``SAVE_PENDING`` means the trajectory has been simplified and handed to the
route store but the save has not been confirmed; a failed save leaves the
payload in place so ``stop()`` can be retried without re-recording. Fixes
arriving after ``stop()`` has been requested are dropped.

All mutable state is guarded by one re-entrant lock. The initial fix
acquisition waits outside the lock so ``cancel()`` can interrupt it.
"""
from __future__ import annotations

import dataclasses
import enum
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Tuple

from .exceptions import (
    AcquisitionCancelled,
    CheckpointRejectedLowAccuracy,
    InitialFixUnavailable,
    InsufficientData,
    InvalidSessionState,
    LocationPermissionDenied,
    LocationUnavailable,
    NoCheckpoints,
    PersistenceFailure,
    RecordingDisabled,
)
from .filters import DEFAULT_MEASUREMENT_NOISE, DEFAULT_PROCESS_NOISE, LocationFilter
from .gate import DEFAULT_POOR_SIGNAL_LIMIT, GateDecision, SampleGate
from .points import CheckpointStop, GPSFix, Position, TrajectoryPoint
from .providers import FeatureFlags, LocationProvider, PermissionChecker, RouteStore
from .quality import QualityTier, TrackingConfig, assess_quality, thresholds_for, tracking_config
from .simplify import DEFAULT_TOLERANCE, douglas_peucker, reduction_ratio

logger = logging.getLogger(__name__)

RECENT_FIX_BUFFER_SIZE = 10


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class SessionState(enum.Enum):
    IDLE = "idle"
    STARTING = "starting"
    RECORDING = "recording"
    SAVE_PENDING = "save_pending"
    STOPPED = "stopped"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RecordingOptions:
    simplify_tolerance: float = DEFAULT_TOLERANCE
    initial_fix_attempts: int = 3
    initial_fix_max_accuracy_m: float = 100.0
    initial_fix_backoff_seconds: float = 2.0
    poor_signal_limit: int = DEFAULT_POOR_SIGNAL_LIMIT
    process_noise: float = DEFAULT_PROCESS_NOISE
    measurement_noise: float = DEFAULT_MEASUREMENT_NOISE


@dataclass(frozen=True)
class RecordingSummary:
    raw_point_count: int
    simplified_point_count: int
    reduction_ratio: float
    average_accuracy_m: float
    duration_ms: int
    battery_optimized: bool

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class RoutePayload:
    """
    Everything the route store needs to persist one recording.
    """

    vehicle_id: str
    operator_id: str
    start_point: Position
    end_point: Position
    simplified_trajectory: Tuple[TrajectoryPoint, ...]
    checkpoints: Tuple[CheckpointStop, ...]
    total_distance_km: float
    recorded_at_ms: int
    summary: RecordingSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vehicle_id": self.vehicle_id,
            "operator_id": self.operator_id,
            "start_point": self.start_point.to_dict(),
            "end_point": self.end_point.to_dict(),
            "simplified_trajectory": [point.to_dict() for point in self.simplified_trajectory],
            "checkpoints": [stop.to_dict() for stop in self.checkpoints],
            "total_distance_km": self.total_distance_km,
            "recorded_at_ms": self.recorded_at_ms,
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True)
class StopResult:
    route_id: str
    payload: RoutePayload


@dataclass
class RecordingSession:
    vehicle_id: str
    operator_id: str
    provider: LocationProvider
    permissions: PermissionChecker
    feature_flags: FeatureFlags
    store: RouteStore
    options: RecordingOptions = field(default_factory=RecordingOptions)
    battery_optimized: bool = False
    clock: Callable[[], int] = wall_clock_ms
    on_poor_signal: Optional[Callable[["RecordingSession"], None]] = None

    def __post_init__(self) -> None:
        self.state = SessionState.IDLE
        self.start_point: Optional[Position] = None
        self.current_fix: Optional[GPSFix] = None
        self.current_tier: Optional[QualityTier] = None
        self.recent_fixes: Deque[GPSFix] = deque(maxlen=RECENT_FIX_BUFFER_SIZE)
        self.checkpoints: List[CheckpointStop] = []
        self.simplified_points: List[TrajectoryPoint] = []
        self.pending_payload: Optional[RoutePayload] = None
        self._gate: Optional[SampleGate] = None
        self._lock = threading.RLock()
        self._cancel_event = threading.Event()
        self._saving = False
        self.last_activity_ms = self.clock()

    # Live state

    @property
    def points(self) -> Tuple[TrajectoryPoint, ...]:
        with self._lock:
            return tuple(self._gate.points) if self._gate else ()

    @property
    def total_distance_km(self) -> float:
        return self._gate.total_distance_km if self._gate else 0.0

    @property
    def consecutive_poor_readings(self) -> int:
        return self._gate.consecutive_poor_readings if self._gate else 0

    @property
    def smoothed_position(self) -> Optional[Position]:
        return self._gate.last_smoothed if self._gate else None

    @property
    def tracking_config(self) -> TrackingConfig:
        return tracking_config(self.battery_optimized)

    def snapshot(self) -> Dict[str, Any]:
        """
        Live view of the recording for the driver screen.
        """
        with self._lock:
            smoothed = self.smoothed_position
            return {
                "vehicle_id": self.vehicle_id,
                "operator_id": self.operator_id,
                "state": self.state.value,
                "quality": self.current_tier.value if self.current_tier else None,
                "position": smoothed.to_dict() if smoothed else None,
                "raw_position": self.current_fix.position.to_dict() if self.current_fix else None,
                "accuracy_m": self.current_fix.accuracy_m if self.current_fix else None,
                "start_point": self.start_point.to_dict() if self.start_point else None,
                "distance_km": round(self.total_distance_km, 4),
                "point_count": len(self._gate.points) if self._gate else 0,
                "checkpoints": [stop.to_dict() for stop in self.checkpoints],
                "consecutive_poor_readings": self.consecutive_poor_readings,
                "battery_optimized": self.battery_optimized,
                "tracking": self.tracking_config.to_dict(),
                "save_pending": self.pending_payload is not None,
                "saving": self._saving,
            }

    # Lifecycle

    def start(self) -> TrackingConfig:
        """
        Acquire an initial fix and begin recording.

        Returns the sampling cadence the location provider should use.
        """
        with self._lock:
            self._require(SessionState.IDLE)
            if not self.permissions.has_location_permission():
                raise LocationPermissionDenied()
            if not self.feature_flags.is_recording_enabled(self.vehicle_id):
                raise RecordingDisabled()
            self.state = SessionState.STARTING
            self._cancel_event.clear()

        try:
            fix = self._acquire_initial_fix()
        except AcquisitionCancelled:
            raise
        except Exception:
            with self._lock:
                if self.state is SessionState.STARTING:
                    self.state = SessionState.IDLE
            raise

        with self._lock:
            if self.state is not SessionState.STARTING:
                raise AcquisitionCancelled()
            location_filter = LocationFilter(
                fix.latitude,
                fix.longitude,
                process_noise=self.options.process_noise,
                measurement_noise=self.options.measurement_noise,
            )
            self._gate = SampleGate(location_filter, poor_signal_limit=self.options.poor_signal_limit)
            self.start_point = fix.position
            self._ingest(fix)
            self.state = SessionState.RECORDING

        logger.info(
            f"Recording started for bus {self.vehicle_id} at "
            f"({fix.latitude:.6f}, {fix.longitude:.6f}), accuracy {fix.accuracy_m:.1f}m"
        )
        return self.tracking_config

    def _acquire_initial_fix(self) -> GPSFix:
        attempts = max(self.options.initial_fix_attempts, 1)
        for attempt in range(1, attempts + 1):
            if self._cancel_event.is_set():
                raise AcquisitionCancelled()
            try:
                fix = self.provider.get_current_fix({"desired_accuracy": "best_for_navigation"})
            except LocationUnavailable as exc:
                logger.warning(f"Initial fix attempt {attempt}/{attempts} for bus {self.vehicle_id} failed: {exc}")
            else:
                if fix.accuracy_m < self.options.initial_fix_max_accuracy_m:
                    return fix
                logger.info(
                    f"Initial fix attempt {attempt}/{attempts} for bus {self.vehicle_id} "
                    f"too coarse: {fix.accuracy_m:.1f}m"
                )

            if attempt < attempts and self._cancel_event.wait(self.options.initial_fix_backoff_seconds):
                raise AcquisitionCancelled()

        if self._cancel_event.is_set():
            raise AcquisitionCancelled()
        raise InitialFixUnavailable()

    def on_fix(self, fix: GPSFix) -> Optional[GateDecision]:
        """
        Feed one fix from the location subscription.

        Returns None when the session is no longer recording and the fix was
        dropped.
        """
        with self._lock:
            if self.state in (SessionState.SAVE_PENDING, SessionState.STOPPED, SessionState.CANCELLED):
                logger.warning(f"Dropping fix for bus {self.vehicle_id}: session is {self.state.value}")
                return None
            self._require(SessionState.RECORDING)
            return self._ingest(fix)

    def consume(self, stream: Optional[Iterable[GPSFix]] = None) -> List[GateDecision]:
        """
        Drain a fix stream (by default the provider subscription) into the
        session until it ends or recording stops.
        """
        if stream is None:
            stream = self.provider.subscribe(self.tracking_config)
        decisions: List[GateDecision] = []
        for fix in stream:
            if self.state is not SessionState.RECORDING:
                break
            decision = self.on_fix(fix)
            if decision is not None:
                decisions.append(decision)
        return decisions

    def _ingest(self, fix: GPSFix) -> GateDecision:
        gate = self._active_gate()
        self.current_fix = fix
        self.last_activity_ms = self.clock()
        self.current_tier = assess_quality(fix.accuracy_m)
        self.recent_fixes.append(fix)

        decision = gate.process(fix)
        if decision.poor_signal_alert:
            logger.warning(
                f"Poor GPS signal for bus {self.vehicle_id}: "
                f"{gate.consecutive_poor_readings} consecutive readings rejected"
            )
            if self.on_poor_signal is not None:
                self.on_poor_signal(self)
        return decision

    def reset_poor_signal(self) -> None:
        with self._lock:
            if self._gate is not None:
                self._gate.reset_poor_signal()

    def set_battery_optimized(self, enabled: bool) -> TrackingConfig:
        with self._lock:
            self._require(SessionState.IDLE, SessionState.STARTING, SessionState.RECORDING)
            self.battery_optimized = enabled
            logger.info(f"Battery optimization {'enabled' if enabled else 'disabled'} for bus {self.vehicle_id}")
            return self.tracking_config

    # Checkpoints

    def mark_checkpoint(self, name: str, timestamp_ms: Optional[int] = None) -> CheckpointStop:
        with self._lock:
            self._require(SessionState.RECORDING)
            clean_name = (name or "").strip()
            if not clean_name:
                raise ValueError("Please enter a valid bus stop name.")

            fix = self.current_fix
            if fix is None:
                raise CheckpointRejectedLowAccuracy("Current location not available. Waiting for GPS...")

            tier = assess_quality(fix.accuracy_m)
            thresholds = thresholds_for(tier)
            if fix.accuracy_m > thresholds.max_accuracy_m:
                raise CheckpointRejectedLowAccuracy(
                    f"Current GPS accuracy is {fix.accuracy_m:.0f}m ({tier.value.upper()}). "
                    f"Move to an open area and wait for accuracy under {thresholds.max_accuracy_m}m."
                )

            stamp = timestamp_ms if timestamp_ms is not None else self.clock()
            stop = CheckpointStop(
                id=self._checkpoint_id(stamp),
                name=clean_name,
                latitude=fix.latitude,
                longitude=fix.longitude,
                order=len(self.checkpoints) + 1,
                timestamp_ms=stamp,
            )
            self.checkpoints.append(stop)
            logger.info(f"Bus stop #{stop.order} '{stop.name}' marked for bus {self.vehicle_id}")
            return stop

    def _checkpoint_id(self, timestamp_ms: int) -> str:
        taken = {stop.id for stop in self.checkpoints}
        candidate = f"stop-{timestamp_ms}"
        suffix = 1
        while candidate in taken:
            candidate = f"stop-{timestamp_ms}-{suffix}"
            suffix += 1
        return candidate

    def remove_checkpoint(self, stop_id: str) -> CheckpointStop:
        with self._lock:
            self._require(SessionState.RECORDING)
            removed = next((stop for stop in self.checkpoints if stop.id == stop_id), None)
            if removed is None:
                raise KeyError(stop_id)
            remaining = [stop for stop in self.checkpoints if stop.id != stop_id]
            self.checkpoints = [
                dataclasses.replace(stop, order=index) for index, stop in enumerate(remaining, start=1)
            ]
            return removed

    # Ending

    def cancel(self) -> None:
        with self._lock:
            if self.state is SessionState.CANCELLED:
                return
            self._require(SessionState.STARTING, SessionState.RECORDING, SessionState.SAVE_PENDING)
            self._cancel_event.set()
            self._gate = None
            self.checkpoints = []
            self.simplified_points = []
            self.recent_fixes.clear()
            self.pending_payload = None
            self.state = SessionState.CANCELLED
        logger.info(f"Recording cancelled for bus {self.vehicle_id}; recorded data discarded")

    def stop(self, save_without_stops: bool = False) -> StopResult:
        """
        Simplify the trajectory and hand it to the route store.

        Calling again after a PersistenceFailure retries the same payload.
        The store is called without holding the session lock, so snapshots,
        late fixes and ``cancel()`` are served while the save is in flight.
        """
        with self._lock:
            if self._saving:
                raise InvalidSessionState(f"A save is already in progress for bus {self.vehicle_id}.")
            if self.state is SessionState.SAVE_PENDING and self.pending_payload is not None:
                payload = self.pending_payload
                logger.info(f"Retrying save for bus {self.vehicle_id}")
            else:
                self._require(SessionState.RECORDING)
                point_count = len(self._gate.points) if self._gate else 0
                if point_count < 2:
                    raise InsufficientData()
                if not self.checkpoints and not save_without_stops:
                    raise NoCheckpoints()
                payload = self._build_payload()
                self.pending_payload = payload
                self.state = SessionState.SAVE_PENDING
            self._saving = True

        try:
            route_id = self.store.save(payload)
            if not route_id:
                raise PersistenceFailure("Route store returned no route id.")
        except PersistenceFailure:
            self._finish_saving()
            logger.error(f"Saving route for bus {self.vehicle_id} failed; keeping it for retry")
            raise
        except Exception as exc:
            self._finish_saving()
            logger.exception(f"Saving route for bus {self.vehicle_id} failed; keeping it for retry")
            raise PersistenceFailure() from exc

        with self._lock:
            self._saving = False
            if self.state is SessionState.CANCELLED:
                logger.warning(f"Route {route_id} for bus {self.vehicle_id} was stored after the recording was cancelled")
            else:
                self.pending_payload = None
                self.state = SessionState.STOPPED

        summary = payload.summary
        logger.info(
            f"Route {route_id} saved for bus {self.vehicle_id}: {payload.total_distance_km:.2f} km, "
            f"{summary.simplified_point_count} points, {len(payload.checkpoints)} stops, "
            f"avg accuracy {summary.average_accuracy_m:.1f}m"
        )
        return StopResult(route_id=route_id, payload=payload)

    def _finish_saving(self) -> None:
        with self._lock:
            self._saving = False

    def _active_gate(self) -> SampleGate:
        if self._gate is None or self.start_point is None:
            raise InvalidSessionState(f"Session for bus {self.vehicle_id} has no recording in progress.")
        return self._gate

    def _end_point(self) -> Position:
        if self.current_fix is not None:
            return self.current_fix.position
        gate = self._active_gate()
        if gate.points:
            return gate.points[-1].position
        return self.start_point

    def _build_payload(self) -> RoutePayload:
        points = list(self._active_gate().points)
        simplified = douglas_peucker(points, self.options.simplify_tolerance)
        self.simplified_points = simplified
        ratio = reduction_ratio(len(points), len(simplified))
        end_point = self._end_point()
        now = self.clock()

        logger.info(
            f"Path simplified: {len(points)} -> {len(simplified)} points ({ratio * 100:.1f}% reduction)"
        )
        logger.info(
            f"Route: start ({self.start_point.latitude:.6f}, {self.start_point.longitude:.6f}) -> "
            f"end ({end_point.latitude:.6f}, {end_point.longitude:.6f})"
        )

        summary = RecordingSummary(
            raw_point_count=len(points),
            simplified_point_count=len(simplified),
            reduction_ratio=ratio,
            average_accuracy_m=sum(p.accuracy_m for p in points) / len(points),
            duration_ms=max(now - points[0].timestamp_ms, 0),
            battery_optimized=self.battery_optimized,
        )
        return RoutePayload(
            vehicle_id=self.vehicle_id,
            operator_id=self.operator_id,
            start_point=self.start_point,
            end_point=end_point,
            simplified_trajectory=tuple(simplified),
            checkpoints=tuple(self.checkpoints),
            total_distance_km=self.total_distance_km,
            recorded_at_ms=now,
            summary=summary,
        )

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            allowed = ", ".join(state.value for state in states)
            raise InvalidSessionState(
                f"Session for bus {self.vehicle_id} is {self.state.value}; expected {allowed}."
            )
