"""
Position smoothing for noisy GPS fixes.

Two per-axis scalar Kalman estimators handle precise fixes, and an
inverse-accuracy weighted mean over the last few readings handles medium
quality ones. Poor fixes pass through untouched so real motion is not
masked when the signal cannot be trusted.
"""
from __future__ import annotations

from collections import deque
from typing import Deque

from .points import GPSFix, Position

DEFAULT_PROCESS_NOISE = 1e-5
DEFAULT_MEASUREMENT_NOISE = 1e-2
DEFAULT_INITIAL_ERROR = 1.0

KALMAN_MAX_ACCURACY_M = 15.0
AVERAGE_MAX_ACCURACY_M = 30.0
AVERAGE_MIN_READINGS = 3
READING_BUFFER_SIZE = 5


class ScalarKalmanFilter:
    """
    Constant-position Kalman filter for a single coordinate axis.
    """

    def __init__(
        self,
        initial_value: float,
        process_noise: float = DEFAULT_PROCESS_NOISE,
        measurement_noise: float = DEFAULT_MEASUREMENT_NOISE,
        initial_error: float = DEFAULT_INITIAL_ERROR,
    ):
        self.process_noise = process_noise
        self.measurement_noise = measurement_noise
        self.estimate = initial_value
        self.error = initial_error
        self.gain = 0.0

    def filter(self, measurement: float) -> float:
        # Prediction.
        self.error = self.error + self.process_noise

        # Update.
        self.gain = self.error / (self.error + self.measurement_noise)
        self.estimate = self.estimate + self.gain * (measurement - self.estimate)
        self.error = (1 - self.gain) * self.error
        return self.estimate


class LocationFilter:
    """
    Smooths positions for one recording session.
    """

    def __init__(
        self,
        latitude: float,
        longitude: float,
        process_noise: float = DEFAULT_PROCESS_NOISE,
        measurement_noise: float = DEFAULT_MEASUREMENT_NOISE,
    ):
        self.lat_filter = ScalarKalmanFilter(latitude, process_noise, measurement_noise)
        self.lon_filter = ScalarKalmanFilter(longitude, process_noise, measurement_noise)
        self.readings: Deque[GPSFix] = deque(maxlen=READING_BUFFER_SIZE)

    def add_reading(self, fix: GPSFix) -> None:
        self.readings.append(fix)

    def smooth(self, latitude: float, longitude: float, accuracy_m: float) -> Position:
        if accuracy_m < KALMAN_MAX_ACCURACY_M:
            return Position(
                self.lat_filter.filter(latitude),
                self.lon_filter.filter(longitude),
            )

        if accuracy_m < AVERAGE_MAX_ACCURACY_M and len(self.readings) >= AVERAGE_MIN_READINGS:
            return self._weighted_average()

        return Position(latitude, longitude)

    def _weighted_average(self) -> Position:
        weights = [1.0 / (reading.accuracy_m or 1.0) for reading in self.readings]
        total = sum(weights)
        lat = sum(r.latitude * w for r, w in zip(self.readings, weights)) / total
        lon = sum(r.longitude * w for r, w in zip(self.readings, weights)) / total
        return Position(lat, lon)
