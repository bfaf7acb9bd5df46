import random

from django.test import SimpleTestCase

from ..points import TrajectoryPoint
from ..simplify import douglas_peucker, reduction_ratio


def point(lat, lon, t=0):
    return TrajectoryPoint(latitude=lat, longitude=lon, timestamp_ms=t, accuracy_m=8.0)


def wandering_track(count=60, seed=7):
    rng = random.Random(seed)
    lat, lon = 23.81, 90.41
    points = []
    for index in range(count):
        lat += rng.uniform(-0.0004, 0.0006)
        lon += rng.uniform(-0.0004, 0.0006)
        points.append(point(lat, lon, t=index * 5000))
    return points


class DouglasPeuckerTests(SimpleTestCase):
    def test_short_input_is_returned_unchanged(self):
        self.assertEqual(douglas_peucker([]), [])
        single = [point(10.0, 78.0)]
        self.assertEqual(douglas_peucker(single), single)
        pair = [point(10.0, 78.0), point(10.1, 78.1)]
        self.assertEqual(douglas_peucker(pair), pair)

    def test_straight_line_collapses_to_endpoints(self):
        track = [point(10.0 + i * 0.001, 78.0 + i * 0.001) for i in range(10)]

        simplified = douglas_peucker(track)

        self.assertEqual(simplified, [track[0], track[-1]])

    def test_corner_is_kept(self):
        track = [
            point(10.000, 78.000),
            point(10.001, 78.000),
            point(10.002, 78.000),
            point(10.002, 78.001),
            point(10.002, 78.002),
        ]

        simplified = douglas_peucker(track)

        self.assertEqual(simplified, [track[0], track[2], track[4]])

    def test_deviation_within_tolerance_is_dropped(self):
        track = [point(10.0, 78.0), point(10.001, 78.00002), point(10.002, 78.0)]

        self.assertEqual(douglas_peucker(track, tolerance=0.00005), [track[0], track[2]])
        self.assertEqual(douglas_peucker(track, tolerance=0.00001), track)

    def test_endpoints_always_preserved(self):
        track = wandering_track()
        for tolerance in (0.0, 0.00001, 0.00005, 0.0005, 0.01, 10.0):
            simplified = douglas_peucker(track, tolerance)
            self.assertIs(simplified[0], track[0])
            self.assertIs(simplified[-1], track[-1])

    def test_order_is_preserved(self):
        track = wandering_track()
        positions = {id(p): index for index, p in enumerate(track)}

        simplified = douglas_peucker(track, 0.0002)

        indices = [positions[id(p)] for p in simplified]
        self.assertEqual(indices, sorted(indices))
        self.assertEqual(len(set(indices)), len(indices))

    def test_larger_tolerance_never_keeps_more_points(self):
        track = wandering_track(count=120, seed=3)
        tolerances = [0.0, 0.000005, 0.00001, 0.00005, 0.0001, 0.0005, 0.001, 0.005, 1.0]

        counts = [len(douglas_peucker(track, tolerance)) for tolerance in tolerances]

        for smaller, larger in zip(counts, counts[1:]):
            self.assertGreaterEqual(smaller, larger)
        self.assertEqual(counts[-1], 2)

    def test_input_is_not_modified(self):
        track = wandering_track()
        before = list(track)

        douglas_peucker(track, 0.0005)

        self.assertEqual(track, before)


class ReductionRatioTests(SimpleTestCase):
    def test_ratio(self):
        self.assertAlmostEqual(reduction_ratio(10, 4), 0.6)
        self.assertEqual(reduction_ratio(2, 2), 0.0)

    def test_empty_input(self):
        self.assertEqual(reduction_ratio(0, 0), 0.0)
