"""
Value types flowing through the recording pipeline.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

UNKNOWN_ACCURACY_M = 999.0


def _optional_float(payload: Mapping[str, Any], *keys: str) -> Optional[float]:
    for key in keys:
        value = payload.get(key)
        if value is None or value == "":
            continue
        number = float(value)
        if not math.isfinite(number):
            raise ValueError(f"{key} must be finite, got {value!r}")
        return number
    return None


def _drop_none(record: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in record.items() if value is not None}


@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class GPSFix:
    """
    One raw reading from the device location provider.

    ``accuracy_m`` is the reported horizontal accuracy radius; a device that
    reports nothing (or 0) is read as 999 m so it never passes as precise.
    """

    latitude: float
    longitude: float
    accuracy_m: float
    timestamp_ms: int
    speed_mps: Optional[float] = None
    heading_deg: Optional[float] = None
    altitude_m: Optional[float] = None

    @property
    def position(self) -> Position:
        return Position(self.latitude, self.longitude)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], default_timestamp_ms: Optional[int] = None) -> "GPSFix":
        """
        Parse a fix posted by a driver client.

        Accepts ``accuracy_m``/``accuracy`` and ``timestamp_ms``/``timestamp``.
        Raises ValueError when the position is missing or not numeric, or when
        any numeric attribute is NaN or infinite.
        """
        try:
            latitude = float(payload["latitude"])
            longitude = float(payload["longitude"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Fix requires numeric latitude and longitude: {payload!r}") from exc

        if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
            raise ValueError(f"Fix position out of range: ({latitude}, {longitude})")

        try:
            accuracy = _optional_float(payload, "accuracy_m", "accuracy")
            timestamp = _optional_float(payload, "timestamp_ms", "timestamp")
            speed = _optional_float(payload, "speed_mps", "speed")
            heading = _optional_float(payload, "heading_deg", "heading")
            altitude = _optional_float(payload, "altitude_m", "altitude")
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Fix contains a non-numeric attribute: {payload!r}") from exc

        if timestamp is None:
            if default_timestamp_ms is None:
                raise ValueError("Fix requires a timestamp")
            timestamp = default_timestamp_ms

        return cls(
            latitude=latitude,
            longitude=longitude,
            accuracy_m=accuracy or UNKNOWN_ACCURACY_M,
            timestamp_ms=int(timestamp),
            speed_mps=speed,
            heading_deg=heading,
            altitude_m=altitude,
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "latitude": self.latitude,
                "longitude": self.longitude,
                "accuracy_m": self.accuracy_m,
                "timestamp_ms": self.timestamp_ms,
                "speed_mps": self.speed_mps,
                "heading_deg": self.heading_deg,
                "altitude_m": self.altitude_m,
            }
        )


@dataclass(frozen=True)
class TrajectoryPoint:
    """An accepted fix at its smoothed position."""

    latitude: float
    longitude: float
    timestamp_ms: int
    accuracy_m: float
    speed_mps: Optional[float] = None
    heading_deg: Optional[float] = None
    altitude_m: Optional[float] = None

    @classmethod
    def from_fix(cls, fix: GPSFix, position: Position) -> "TrajectoryPoint":
        return cls(
            latitude=position.latitude,
            longitude=position.longitude,
            timestamp_ms=fix.timestamp_ms,
            accuracy_m=fix.accuracy_m,
            speed_mps=fix.speed_mps,
            heading_deg=fix.heading_deg,
            altitude_m=fix.altitude_m,
        )

    @property
    def position(self) -> Position:
        return Position(self.latitude, self.longitude)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "latitude": self.latitude,
                "longitude": self.longitude,
                "timestamp_ms": self.timestamp_ms,
                "accuracy_m": self.accuracy_m,
                "speed_mps": self.speed_mps,
                "heading_deg": self.heading_deg,
                "altitude_m": self.altitude_m,
            }
        )


@dataclass(frozen=True)
class CheckpointStop:
    """A bus stop marked by the driver while recording."""

    id: str
    name: str
    latitude: float
    longitude: float
    order: int
    timestamp_ms: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "order": self.order,
            "timestamp_ms": self.timestamp_ms,
        }
