"""
Per-fix acceptance for a recording session.

A fix becomes a trajectory point only when the vehicle has genuinely moved
by the tier's minimum distance. When only the time threshold has elapsed the
fix is *held*: nothing is appended and the last accepted point stays in
place, so a parked bus does not pile up duplicate points.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional

from .filters import LocationFilter
from .geo import haversine_km, speed_mps
from .points import GPSFix, Position, TrajectoryPoint
from .quality import QualityTier, Thresholds, assess_quality, thresholds_for

logger = logging.getLogger(__name__)

DEFAULT_POOR_SIGNAL_LIMIT = 10
SPEED_TOLERANCE_RATIO = 0.5
SPEED_TOLERANCE_FLOOR_MPS = 5.0


class GateOutcome(enum.Enum):
    FIRST = "first"
    ACCEPTED = "accepted"
    REJECTED_ACCURACY = "rejected_accuracy"
    SKIPPED = "skipped"
    HELD = "held"

    @property
    def appended(self) -> bool:
        return self in (GateOutcome.FIRST, GateOutcome.ACCEPTED)


@dataclass(frozen=True)
class GateDecision:
    outcome: GateOutcome
    tier: QualityTier
    thresholds: Thresholds
    smoothed: Optional[Position] = None
    distance_km: float = 0.0
    elapsed_ms: int = 0
    point: Optional[TrajectoryPoint] = None
    speed_mismatch: bool = False
    poor_signal_alert: bool = False

    @property
    def appended(self) -> bool:
        return self.outcome.appended

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "quality": self.tier.value,
            "distance_km": self.distance_km,
            "elapsed_ms": self.elapsed_ms,
            "speed_mismatch": self.speed_mismatch,
            "poor_signal_alert": self.poor_signal_alert,
        }


def speed_is_plausible(reported_mps: Optional[float], distance_km: float, elapsed_ms: int) -> bool:
    """
    Compare the device-reported speed with the speed implied by the move.

    Returns True when the check cannot be made (no reported speed, or no
    elapsed time).
    """
    if not reported_mps:
        return True
    computed = speed_mps(distance_km, elapsed_ms)
    if computed is None:
        return True
    tolerance = max(reported_mps * SPEED_TOLERANCE_RATIO, SPEED_TOLERANCE_FLOOR_MPS)
    return abs(computed - reported_mps) < tolerance


class SampleGate:
    """
    Decides which fixes become trajectory points.
    """

    def __init__(self, location_filter: LocationFilter, poor_signal_limit: int = DEFAULT_POOR_SIGNAL_LIMIT):
        self.location_filter = location_filter
        self.poor_signal_limit = poor_signal_limit
        self.points: List[TrajectoryPoint] = []
        self.total_distance_km = 0.0
        self.consecutive_poor_readings = 0
        self.last_smoothed: Optional[Position] = None

    @property
    def last_accepted(self) -> Optional[TrajectoryPoint]:
        return self.points[-1] if self.points else None

    def reset_poor_signal(self) -> None:
        self.consecutive_poor_readings = 0

    def process(self, fix: GPSFix) -> GateDecision:
        tier = assess_quality(fix.accuracy_m)
        thresholds = thresholds_for(tier)
        self.location_filter.add_reading(fix)

        last = self.last_accepted
        if last is None:
            # The first fix is the filter's seed, so it is kept as-is.
            return self._append(fix, fix.position, tier, thresholds, GateOutcome.FIRST)

        if fix.accuracy_m > thresholds.max_accuracy_m:
            self.consecutive_poor_readings += 1
            alert = self.consecutive_poor_readings == self.poor_signal_limit
            logger.debug(
                f"Poor GPS #{self.consecutive_poor_readings}: {fix.accuracy_m:.1f}m "
                f"(limit {thresholds.max_accuracy_m}m, {tier.value})"
            )
            return GateDecision(
                outcome=GateOutcome.REJECTED_ACCURACY,
                tier=tier,
                thresholds=thresholds,
                poor_signal_alert=alert,
            )

        self.consecutive_poor_readings = 0
        smoothed = self.location_filter.smooth(fix.latitude, fix.longitude, fix.accuracy_m)
        self.last_smoothed = smoothed

        distance_km = haversine_km(last.latitude, last.longitude, smoothed.latitude, smoothed.longitude)
        elapsed_ms = fix.timestamp_ms - last.timestamp_ms
        moved = distance_km >= thresholds.min_distance_km
        waited = elapsed_ms >= thresholds.min_interval_ms

        if not moved and not waited:
            logger.debug(f"Skipping: {distance_km * 1000:.1f}m, {elapsed_ms / 1000:.1f}s")
            return GateDecision(
                outcome=GateOutcome.SKIPPED,
                tier=tier,
                thresholds=thresholds,
                smoothed=smoothed,
                distance_km=distance_km,
                elapsed_ms=elapsed_ms,
            )

        mismatch = not speed_is_plausible(fix.speed_mps, distance_km, elapsed_ms)
        if mismatch:
            logger.warning(
                f"Speed mismatch: reported {fix.speed_mps:.1f} m/s over "
                f"{distance_km * 1000:.1f}m in {elapsed_ms / 1000:.1f}s"
            )

        if not moved:
            return GateDecision(
                outcome=GateOutcome.HELD,
                tier=tier,
                thresholds=thresholds,
                smoothed=smoothed,
                distance_km=distance_km,
                elapsed_ms=elapsed_ms,
                speed_mismatch=mismatch,
            )

        self.total_distance_km += distance_km
        decision = self._append(
            fix,
            smoothed,
            tier,
            thresholds,
            GateOutcome.ACCEPTED,
            distance_km=distance_km,
            elapsed_ms=elapsed_ms,
            speed_mismatch=mismatch,
        )
        logger.debug(f"Point: {distance_km * 1000:.1f}m, {fix.accuracy_m:.1f}m, {tier.value}")
        return decision

    def _append(
        self,
        fix: GPSFix,
        position: Position,
        tier: QualityTier,
        thresholds: Thresholds,
        outcome: GateOutcome,
        distance_km: float = 0.0,
        elapsed_ms: int = 0,
        speed_mismatch: bool = False,
    ) -> GateDecision:
        point = TrajectoryPoint.from_fix(fix, position)
        self.points.append(point)
        self.last_smoothed = position
        return GateDecision(
            outcome=outcome,
            tier=tier,
            thresholds=thresholds,
            smoothed=position,
            distance_km=distance_km,
            elapsed_ms=elapsed_ms,
            point=point,
            speed_mismatch=speed_mismatch,
        )
