"""
Errors raised by recording sessions and their collaborators.

``status_code`` is the HTTP status the JSON views answer with.
"""
from __future__ import annotations


class RecordingError(Exception):
    status_code = 400
    default_message = "Route recording failed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class LocationPermissionDenied(RecordingError):
    status_code = 403
    default_message = "Location permission is required to record the route."


class RecordingDisabled(RecordingError):
    status_code = 403
    default_message = "Route recording is not enabled for this bus."


class InitialFixUnavailable(RecordingError):
    status_code = 503
    default_message = "Failed to get an initial location. Please try again."


class AcquisitionCancelled(RecordingError):
    status_code = 409
    default_message = "Recording was cancelled before a location was acquired."


class LocationUnavailable(RecordingError):
    """Raised by location providers when no fix can be produced."""

    status_code = 503
    default_message = "Current location not available."


class InsufficientData(RecordingError):
    status_code = 409
    default_message = "Please record at least 2 route points before saving."


class NoCheckpoints(RecordingError):
    status_code = 409
    default_message = "No bus stops were marked. Confirm to save without stops."


class CheckpointRejectedLowAccuracy(RecordingError):
    status_code = 409
    default_message = "GPS accuracy is too low to mark a bus stop."


class PersistenceFailure(RecordingError):
    status_code = 502
    default_message = "Failed to save route. The recording is kept for another attempt."


class InvalidSessionState(RecordingError):
    status_code = 409
    default_message = "The recording session cannot do that in its current state."


class SessionNotFound(RecordingError):
    status_code = 404
    default_message = "No recording session for this bus."


class SessionAlreadyActive(RecordingError):
    status_code = 409
    default_message = "A recording session is already active for this bus."
