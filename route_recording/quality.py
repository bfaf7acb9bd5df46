"""
GPS quality tiers, the acceptance thresholds each tier implies, and the
sampling cadence requested from the location provider.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict


class QualityTier(enum.Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def __lt__(self, other: "QualityTier") -> bool:
        if not isinstance(other, QualityTier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: "QualityTier") -> bool:
        if not isinstance(other, QualityTier):
            return NotImplemented
        return self.rank <= other.rank


# Lower rank means better signal.
_RANKS: Dict[QualityTier, int] = {
    QualityTier.EXCELLENT: 0,
    QualityTier.GOOD: 1,
    QualityTier.FAIR: 2,
    QualityTier.POOR: 3,
}


@dataclass(frozen=True)
class Thresholds:
    max_accuracy_m: float
    min_distance_km: float
    min_interval_ms: int

    def to_dict(self) -> Dict[str, float]:
        return {
            "max_accuracy_m": self.max_accuracy_m,
            "min_distance_km": self.min_distance_km,
            "min_interval_ms": self.min_interval_ms,
        }


THRESHOLDS: Dict[QualityTier, Thresholds] = {
    QualityTier.EXCELLENT: Thresholds(max_accuracy_m=20, min_distance_km=0.010, min_interval_ms=5000),
    QualityTier.GOOD: Thresholds(max_accuracy_m=30, min_distance_km=0.015, min_interval_ms=7000),
    QualityTier.FAIR: Thresholds(max_accuracy_m=50, min_distance_km=0.025, min_interval_ms=10000),
    QualityTier.POOR: Thresholds(max_accuracy_m=70, min_distance_km=0.040, min_interval_ms=15000),
}


def assess_quality(accuracy_m: float) -> QualityTier:
    if accuracy_m <= 10:
        return QualityTier.EXCELLENT
    if accuracy_m <= 20:
        return QualityTier.GOOD
    if accuracy_m <= 50:
        return QualityTier.FAIR
    return QualityTier.POOR


def thresholds_for(tier: QualityTier) -> Thresholds:
    return THRESHOLDS[tier]


@dataclass(frozen=True)
class TrackingConfig:
    """
    How often the location provider should deliver fixes.

    This only controls cadence; acceptance is decided by the gate thresholds
    regardless of the mode.
    """

    desired_accuracy: str
    min_time_interval_ms: int
    min_distance_m: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "desired_accuracy": self.desired_accuracy,
            "min_time_interval_ms": self.min_time_interval_ms,
            "min_distance_m": self.min_distance_m,
        }


NORMAL_TRACKING = TrackingConfig("best_for_navigation", min_time_interval_ms=5000, min_distance_m=10)
BATTERY_SAVER_TRACKING = TrackingConfig("best_for_navigation", min_time_interval_ms=10000, min_distance_m=20)


def tracking_config(battery_optimized: bool) -> TrackingConfig:
    return BATTERY_SAVER_TRACKING if battery_optimized else NORMAL_TRACKING
