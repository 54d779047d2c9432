"""Tests for datetime filter expansion."""

import sys
import unittest
from datetime import datetime
from pathlib import Path

from dateutil import tz

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from QueryHelper.core.models import ApiFilter, QueryFilter
from QueryHelper.core.timerange import expand_datetime_filter

# Wednesday
_NOW = datetime(2023, 5, 17, 10, 0, tzinfo=tz.UTC)


def _expand(value, op: str, timezone: str = "UTC") -> list[ApiFilter]:
    return expand_datetime_filter(QueryFilter(k="created_at", v=value, o=op), timezone, now=_NOW)


class TestAbsoluteValues(unittest.TestCase):
    def test_month_equality_in_timezone(self) -> None:
        self.assertEqual(
            _expand("2023-05", "=t", "Asia/Seoul"),
            [
                ApiFilter(k="created_at", v="2023-04-30T15:00:00Z", o="datetime_gte"),
                ApiFilter(k="created_at", v="2023-05-31T15:00:00Z", o="datetime_lt"),
            ],
        )

    def test_greater_than_day_starts_at_next_day(self) -> None:
        self.assertEqual(
            _expand("2023-05-10", ">t", "Asia/Seoul"),
            [ApiFilter(k="created_at", v="2023-05-10T15:00:00Z", o="datetime_gte")],
        )

    def test_year_greater_or_equal(self) -> None:
        self.assertEqual(
            _expand("2023", ">=t"),
            [ApiFilter(k="created_at", v="2023-01-01T00:00:00Z", o="datetime_gte")],
        )

    def test_minute_less_than(self) -> None:
        self.assertEqual(
            _expand("2023-05-10 12:30", "<t"),
            [ApiFilter(k="created_at", v="2023-05-10T12:30:00Z", o="datetime_lt")],
        )

    def test_second_less_or_equal_with_t_separator(self) -> None:
        self.assertEqual(
            _expand("2023-05-10T12:30:15", "<=t"),
            [ApiFilter(k="created_at", v="2023-05-10T12:30:16Z", o="datetime_lt")],
        )

    def test_integer_year(self) -> None:
        self.assertEqual(
            _expand(2024, "<t"),
            [ApiFilter(k="created_at", v="2024-01-01T00:00:00Z", o="datetime_lt")],
        )

    def test_array_value_expands_each_element(self) -> None:
        result = _expand(("2023", "2024"), ">=t")
        self.assertEqual([f.v for f in result], ["2023-01-01T00:00:00Z", "2024-01-01T00:00:00Z"])


class TestRelativeValues(unittest.TestCase):
    def test_this_month(self) -> None:
        self.assertEqual(
            [f.v for f in _expand("this_month", "=t")],
            ["2023-05-01T00:00:00Z", "2023-06-01T00:00:00Z"],
        )

    def test_this_week_starts_monday(self) -> None:
        self.assertEqual(
            [f.v for f in _expand("this_week", "=t")],
            ["2023-05-15T00:00:00Z", "2023-05-22T00:00:00Z"],
        )

    def test_today_in_timezone(self) -> None:
        self.assertEqual(
            [f.v for f in _expand("today", "=t", "Asia/Seoul")],
            ["2023-05-16T15:00:00Z", "2023-05-17T15:00:00Z"],
        )

    def test_offset_days(self) -> None:
        self.assertEqual(
            _expand("now-7d", ">=t"),
            [ApiFilter(k="created_at", v="2023-05-10T00:00:00Z", o="datetime_gte")],
        )

    def test_offset_months(self) -> None:
        self.assertEqual(
            [f.v for f in _expand("now+1M", "=t")],
            ["2023-06-01T00:00:00Z", "2023-07-01T00:00:00Z"],
        )


class TestUnreadableValues(unittest.TestCase):
    def test_unreadable_value_is_skipped_with_warning(self) -> None:
        with self.assertLogs("QueryHelper", level="WARNING"):
            self.assertEqual(_expand("yesterday-ish", "=t"), [])

    def test_invalid_month_is_skipped(self) -> None:
        with self.assertLogs("QueryHelper", level="WARNING"):
            self.assertEqual(_expand("2023-13", "=t"), [])

    def test_null_value_is_skipped(self) -> None:
        with self.assertLogs("QueryHelper", level="WARNING"):
            self.assertEqual(_expand(None, "=t"), [])

    def test_unknown_timezone_falls_back_to_utc(self) -> None:
        with self.assertLogs("QueryHelper", level="WARNING") as captured:
            result = _expand("2023", ">=t", "Mars/Olympus")
        self.assertEqual(result[0].v, "2023-01-01T00:00:00Z")
        self.assertTrue(any("Mars/Olympus" in line for line in captured.output))


if __name__ == "__main__":
    unittest.main()
