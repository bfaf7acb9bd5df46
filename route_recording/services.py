"""
Live recording sessions keyed by bus, and the helpers the views use to drive
them.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .conf import recording_options, recording_setting
from .exceptions import InvalidSessionState, SessionAlreadyActive, SessionNotFound
from .gate import GateDecision
from .points import GPSFix
from .providers import QueuedFixProvider, StaticPermission
from .session import RecordingSession, SessionState, wall_clock_ms
from .storage import BusRecordingFlags, DjangoRouteStore

logger = logging.getLogger(__name__)

ACTIVE_STATES = (SessionState.STARTING, SessionState.RECORDING, SessionState.SAVE_PENDING)

RECORDING_SESSIONS: Dict[str, RecordingSession] = {}
_SESSIONS_LOCK = threading.Lock()


def parse_fixes(raw_fixes: Iterable[Mapping[str, Any]]) -> List[GPSFix]:
    """
    Parse posted fixes; raises ValueError on the first malformed entry.
    """
    now = wall_clock_ms()
    return [GPSFix.from_dict(raw, default_timestamp_ms=now) for raw in raw_fixes]


def evict_idle_sessions(now_ms: Optional[int] = None) -> List[str]:
    """
    Cancel and unregister recording sessions with no fix for longer than
    ``SESSION_IDLE_TIMEOUT_SECONDS``. A timeout of 0 disables eviction.

    Sessions waiting on a save retry are kept.
    """
    timeout_s = float(recording_setting("SESSION_IDLE_TIMEOUT_SECONDS") or 0)
    if timeout_s <= 0:
        return []
    now_ms = wall_clock_ms() if now_ms is None else now_ms
    cutoff_ms = now_ms - int(timeout_s * 1000)

    with _SESSIONS_LOCK:
        stale = {
            bus_id: session
            for bus_id, session in RECORDING_SESSIONS.items()
            if session.state is SessionState.RECORDING and session.last_activity_ms < cutoff_ms
        }
        for bus_id in stale:
            del RECORDING_SESSIONS[bus_id]

    for bus_id, session in stale.items():
        try:
            session.cancel()
        except InvalidSessionState:
            logger.info(f"Idle recording for bus {bus_id} finished before it could be discarded")
            continue
        logger.warning(f"Discarded idle recording for bus {bus_id}: no fix for over {timeout_s:.0f}s")
    return list(stale)


def open_session(
    bus_id: str,
    driver_id: str,
    location_permission: bool,
    initial_fixes: Iterable[GPSFix],
    battery_optimized: bool = False,
) -> RecordingSession:
    """
    Create and start a session for ``bus_id``.

    A previous session for the bus is replaced only once it has finished.
    Start failures propagate and leave no session registered.
    """
    evict_idle_sessions()
    with _SESSIONS_LOCK:
        existing = RECORDING_SESSIONS.get(bus_id)
        if existing is not None and existing.state in ACTIVE_STATES:
            raise SessionAlreadyActive()
        session = RecordingSession(
            vehicle_id=bus_id,
            operator_id=driver_id,
            provider=QueuedFixProvider(initial_fixes),
            permissions=StaticPermission(location_permission),
            feature_flags=BusRecordingFlags(),
            store=DjangoRouteStore(),
            options=recording_options(),
            battery_optimized=battery_optimized,
        )
        RECORDING_SESSIONS[bus_id] = session

    try:
        session.start()
    except Exception:
        with _SESSIONS_LOCK:
            if RECORDING_SESSIONS.get(bus_id) is session:
                del RECORDING_SESSIONS[bus_id]
        raise
    return session


def get_session(bus_id: str) -> RecordingSession:
    evict_idle_sessions()
    with _SESSIONS_LOCK:
        session = RECORDING_SESSIONS.get(bus_id)
    if session is None:
        raise SessionNotFound()
    return session


def discard_session(bus_id: str) -> Optional[RecordingSession]:
    with _SESSIONS_LOCK:
        return RECORDING_SESSIONS.pop(bus_id, None)


def submit_fixes(session: RecordingSession, fixes: Iterable[GPSFix]) -> List[Optional[GateDecision]]:
    return [session.on_fix(fix) for fix in fixes]


def get_recording_snapshot(bus_id: str) -> Dict[str, Any]:
    """
    Provide a ready-to-use snapshot of a live recording for the driver app.
    """
    return get_session(bus_id).snapshot()
