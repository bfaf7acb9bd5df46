"""
Database-backed collaborators for recording sessions: the per-bus
"recording enabled" flag and the recorded route store.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from django.db import DatabaseError, transaction

from .exceptions import PersistenceFailure
from .models import Bus, RecordedRoute
from .session import RoutePayload

LOGGER = logging.getLogger(__name__)


def _datetime_from_ms(epoch_ms: int) -> datetime:
    return datetime.fromtimestamp(epoch_ms / 1000.0, tz=timezone.utc)


class BusRecordingFlags:
    """Feature flag lookup; an unknown bus is treated as disabled."""

    def is_recording_enabled(self, vehicle_id: str) -> bool:
        return Bus.objects.filter(bus_id=vehicle_id, route_recording_enabled=True).exists()


def recording_status(bus_id: str) -> Dict[str, bool]:
    return {"enabled": BusRecordingFlags().is_recording_enabled(bus_id)}


def set_recording_enabled(bus_id: str, enabled: bool) -> Bus:
    bus, _ = Bus.objects.get_or_create(bus_id=bus_id)
    bus.route_recording_enabled = enabled
    bus.save(update_fields=["route_recording_enabled", "updated_at"])
    LOGGER.info(f"Route recording {'enabled' if enabled else 'disabled'} for bus {bus_id}")
    return bus


def store_route(
    bus_id: str,
    driver_id: str,
    route_points: List[Dict[str, Any]],
    bus_stops: List[Dict[str, Any]],
    distance_km: float,
    recorded_at_ms: int,
    start_point: Optional[Mapping[str, float]] = None,
    end_point: Optional[Mapping[str, float]] = None,
    summary: Optional[Dict[str, Any]] = None,
) -> RecordedRoute:
    """
    Persist one recorded route as pending review.

    Raises PersistenceFailure when the bus is unknown or the write fails.
    """
    try:
        with transaction.atomic():
            bus = Bus.objects.get(bus_id=bus_id)
            route = RecordedRoute.objects.create(
                bus=bus,
                driver_id=driver_id,
                start_point=dict(start_point) if start_point else None,
                end_point=dict(end_point) if end_point else None,
                route_points=route_points,
                bus_stops=bus_stops,
                distance_km=distance_km,
                recorded_at=_datetime_from_ms(recorded_at_ms),
                summary=summary or {},
            )
    except Bus.DoesNotExist as exc:
        LOGGER.error(f"Cannot save recorded route: unknown bus {bus_id}")
        raise PersistenceFailure(f"Unknown bus {bus_id}.") from exc
    except DatabaseError as exc:
        LOGGER.error(f"Error saving recorded route for bus {bus_id}: {exc}")
        raise PersistenceFailure() from exc

    LOGGER.info(f"Route recorded successfully for bus {bus_id}")
    return route


class DjangoRouteStore:
    def save(self, payload: RoutePayload) -> str:
        route = store_route(
            bus_id=payload.vehicle_id,
            driver_id=payload.operator_id,
            route_points=[point.to_dict() for point in payload.simplified_trajectory],
            bus_stops=[stop.to_dict() for stop in payload.checkpoints],
            distance_km=payload.total_distance_km,
            recorded_at_ms=payload.recorded_at_ms,
            start_point=payload.start_point.to_dict(),
            end_point=payload.end_point.to_dict(),
            summary=payload.summary.to_dict(),
        )
        return str(route.pk)


def recorded_routes(bus_id: str, limit: int = 10) -> List[Dict[str, Any]]:
    routes = (
        RecordedRoute.objects.filter(bus__bus_id=bus_id)
        .select_related("bus")
        .order_by("-recorded_at")[:limit]
    )
    return [route.as_dict() for route in routes]
