from django.test import SimpleTestCase

from ..filters import LocationFilter
from ..gate import GateOutcome, SampleGate, speed_is_plausible
from ..quality import QualityTier
from .helpers import T0, fix, north_of


def make_gate(lat=10.0, lon=78.0, **kwargs):
    return SampleGate(LocationFilter(lat, lon), **kwargs)


class FirstFixTests(SimpleTestCase):
    def test_first_fix_is_accepted_even_when_poor(self):
        gate = make_gate()

        decision = gate.process(fix(10.0, 78.0, accuracy=999.0))

        self.assertEqual(decision.outcome, GateOutcome.FIRST)
        self.assertEqual(decision.tier, QualityTier.POOR)
        self.assertEqual(len(gate.points), 1)
        self.assertEqual(gate.last_accepted.accuracy_m, 999.0)
        self.assertEqual(gate.consecutive_poor_readings, 0)
        self.assertEqual(gate.total_distance_km, 0.0)

    def test_first_fix_keeps_raw_position(self):
        gate = make_gate()

        decision = gate.process(fix(10.0, 78.0, accuracy=5.0))

        self.assertEqual((decision.point.latitude, decision.point.longitude), (10.0, 78.0))


class AccuracyRejectionTests(SimpleTestCase):
    def setUp(self):
        self.gate = make_gate()
        self.gate.process(fix(10.0, 78.0, t=T0))

    def test_fix_beyond_tier_bound_is_rejected(self):
        decision = self.gate.process(fix(north_of(10.0, 500), 78.0, accuracy=80.0, t=T0 + 20_000))

        self.assertEqual(decision.outcome, GateOutcome.REJECTED_ACCURACY)
        self.assertEqual(self.gate.consecutive_poor_readings, 1)
        self.assertEqual(len(self.gate.points), 1)

    def test_poor_tier_fix_within_bound_is_usable(self):
        decision = self.gate.process(fix(north_of(10.0, 500), 78.0, accuracy=65.0, t=T0 + 20_000))

        self.assertEqual(decision.tier, QualityTier.POOR)
        self.assertEqual(decision.outcome, GateOutcome.ACCEPTED)

    def test_alert_raised_once_at_tenth_consecutive_rejection(self):
        alerts = []
        for index in range(12):
            decision = self.gate.process(fix(10.0, 78.0, accuracy=90.0, t=T0 + index * 1000))
            alerts.append(decision.poor_signal_alert)

        self.assertEqual(alerts.index(True), 9)
        self.assertEqual(alerts.count(True), 1)
        self.assertEqual(self.gate.consecutive_poor_readings, 12)

    def test_usable_fix_resets_poor_counter(self):
        for index in range(4):
            self.gate.process(fix(10.0, 78.0, accuracy=90.0, t=T0 + index * 1000))

        self.gate.process(fix(10.0, 78.0, accuracy=8.0, t=T0 + 5000))

        self.assertEqual(self.gate.consecutive_poor_readings, 0)

    def test_caller_can_reset_counter(self):
        self.gate.process(fix(10.0, 78.0, accuracy=90.0, t=T0 + 1000))
        self.gate.reset_poor_signal()
        self.assertEqual(self.gate.consecutive_poor_readings, 0)


class MovementGatingTests(SimpleTestCase):
    def setUp(self):
        self.gate = make_gate()
        self.gate.process(fix(10.0, 78.0, t=T0))

    def test_small_move_soon_after_is_skipped(self):
        decision = self.gate.process(fix(10.0, 78.0, t=T0 + 1000))

        self.assertEqual(decision.outcome, GateOutcome.SKIPPED)
        self.assertEqual(len(self.gate.points), 1)

    def test_time_only_trigger_holds_without_appending(self):
        # Enough time has passed but the bus has not moved: nothing is
        # appended and the last accepted point is unchanged.
        decision = self.gate.process(fix(10.0, 78.0, t=T0 + 60_000))

        self.assertEqual(decision.outcome, GateOutcome.HELD)
        self.assertFalse(decision.appended)
        self.assertEqual(len(self.gate.points), 1)
        self.assertEqual(self.gate.last_accepted.timestamp_ms, T0)
        self.assertEqual(self.gate.total_distance_km, 0.0)

    def test_significant_move_is_accepted(self):
        decision = self.gate.process(fix(north_of(10.0, 200), 78.0, t=T0 + 6000))

        self.assertEqual(decision.outcome, GateOutcome.ACCEPTED)
        self.assertEqual(len(self.gate.points), 2)
        self.assertAlmostEqual(self.gate.total_distance_km, decision.distance_km)
        self.assertEqual(self.gate.last_accepted.timestamp_ms, T0 + 6000)

    def test_reported_speed_mismatch_is_advisory(self):
        decision = self.gate.process(fix(north_of(10.0, 100), 78.0, accuracy=40.0, t=T0 + 10_000, speed=50.0))

        self.assertTrue(decision.speed_mismatch)
        self.assertEqual(decision.outcome, GateOutcome.ACCEPTED)


class DistanceAccumulationTests(SimpleTestCase):
    def test_three_collinear_points_accumulate_two_spans(self):
        # 40 m accuracy is fair tier and passes through the filter unsmoothed.
        d_km = 0.1
        gate = make_gate()
        latitudes = [10.0, north_of(10.0, 100), north_of(10.0, 200)]

        for index, lat in enumerate(latitudes):
            decision = gate.process(fix(lat, 78.0, accuracy=40.0, t=T0 + index * 30_000))
            self.assertTrue(decision.appended)

        self.assertEqual(len(gate.points), 3)
        self.assertAlmostEqual(gate.total_distance_km, 2 * d_km, places=6)


class SpeedPlausibilityTests(SimpleTestCase):
    def test_missing_speed_cannot_be_checked(self):
        self.assertTrue(speed_is_plausible(None, 0.1, 10_000))
        self.assertTrue(speed_is_plausible(0.0, 0.1, 10_000))

    def test_zero_elapsed_cannot_be_checked(self):
        self.assertTrue(speed_is_plausible(12.0, 0.1, 0))

    def test_within_floor_tolerance(self):
        # computed 10 m/s, reported 14 m/s: within the 5 m/s floor
        self.assertTrue(speed_is_plausible(14.0, 0.1, 10_000))

    def test_beyond_relative_tolerance(self):
        # computed 10 m/s, reported 40 m/s: outside 50% of 40
        self.assertFalse(speed_is_plausible(40.0, 0.1, 10_000))
