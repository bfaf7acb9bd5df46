import math

from django.test import SimpleTestCase

from ..geo import EARTH_RADIUS_KM, haversine_km, perpendicular_distance, speed_mps
from ..points import Position


class HaversineTests(SimpleTestCase):
    def test_identical_points_are_zero(self):
        self.assertEqual(haversine_km(10.0, 78.0, 10.0, 78.0), 0.0)

    def test_one_degree_of_latitude(self):
        expected = EARTH_RADIUS_KM * math.pi / 180
        self.assertAlmostEqual(haversine_km(0.0, 0.0, 1.0, 0.0), expected, places=6)

    def test_antipodal_points_stay_finite(self):
        distance = haversine_km(0.0, 0.0, 0.0, 180.0)
        self.assertFalse(math.isnan(distance))
        self.assertAlmostEqual(distance, math.pi * EARTH_RADIUS_KM, places=3)

    def test_symmetric(self):
        forward = haversine_km(23.8103, 90.4125, 23.7330, 90.4250)
        backward = haversine_km(23.7330, 90.4250, 23.8103, 90.4125)
        self.assertAlmostEqual(forward, backward, places=9)


class PerpendicularDistanceTests(SimpleTestCase):
    def test_distance_to_line(self):
        distance = perpendicular_distance(Position(1.0, 1.0), Position(0.0, 0.0), Position(0.0, 2.0))
        self.assertAlmostEqual(distance, 1.0)

    def test_projection_is_not_clamped_to_segment(self):
        distance = perpendicular_distance(Position(1.0, 5.0), Position(0.0, 0.0), Position(0.0, 2.0))
        self.assertAlmostEqual(distance, 1.0)

    def test_point_on_line_is_zero(self):
        distance = perpendicular_distance(Position(0.5, 0.5), Position(0.0, 0.0), Position(1.0, 1.0))
        self.assertAlmostEqual(distance, 0.0)

    def test_degenerate_line_is_zero(self):
        start = Position(10.0, 78.0)
        distance = perpendicular_distance(Position(11.0, 79.0), start, Position(10.0, 78.0))
        self.assertEqual(distance, 0.0)


class SpeedTests(SimpleTestCase):
    def test_speed_from_distance_and_time(self):
        self.assertAlmostEqual(speed_mps(0.1, 10_000), 10.0)

    def test_no_elapsed_time(self):
        self.assertIsNone(speed_mps(0.1, 0))
