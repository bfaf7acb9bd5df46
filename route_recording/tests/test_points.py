from django.test import SimpleTestCase

from ..points import UNKNOWN_ACCURACY_M, GPSFix
from .helpers import T0


def raw_fix(**overrides):
    payload = {"latitude": 10.0, "longitude": 78.0, "accuracy": 8.0, "timestamp": T0}
    payload.update(overrides)
    return payload


class FixParsingTests(SimpleTestCase):
    def test_accepts_short_and_long_keys(self):
        short = GPSFix.from_dict(raw_fix(speed=3.5))
        long = GPSFix.from_dict(
            {"latitude": "10.0", "longitude": "78.0", "accuracy_m": "8", "timestamp_ms": T0, "speed_mps": 3.5}
        )

        self.assertEqual(short, long)
        self.assertEqual(short.timestamp_ms, T0)

    def test_missing_or_zero_accuracy_is_unknown(self):
        self.assertEqual(GPSFix.from_dict(raw_fix(accuracy=0)).accuracy_m, UNKNOWN_ACCURACY_M)
        self.assertEqual(GPSFix.from_dict(raw_fix(accuracy=None)).accuracy_m, UNKNOWN_ACCURACY_M)

    def test_default_timestamp_fills_gap(self):
        self.assertEqual(GPSFix.from_dict(raw_fix(timestamp=None), default_timestamp_ms=42).timestamp_ms, 42)

        with self.assertRaises(ValueError):
            GPSFix.from_dict(raw_fix(timestamp=None))

    def test_rejects_out_of_range_position(self):
        with self.assertRaises(ValueError):
            GPSFix.from_dict(raw_fix(latitude=91.0))
        with self.assertRaises(ValueError):
            GPSFix.from_dict(raw_fix(longitude="nan"))

    def test_rejects_non_finite_attributes(self):
        for key, value in (
            ("accuracy", "nan"),
            ("accuracy_m", float("inf")),
            ("timestamp_ms", "inf"),
            ("timestamp", float("-inf")),
            ("speed", "nan"),
            ("heading_deg", "inf"),
            ("altitude", float("nan")),
        ):
            with self.subTest(key=key, value=value):
                with self.assertRaises(ValueError):
                    GPSFix.from_dict(raw_fix(**{key: value}))
