"""
Tests for period keys: the single daily/weekly bucket definition shared by
habit logging and unlogging.
"""
from datetime import datetime, timedelta, timezone

import pytest

from mindloop.core.errors import IntervalInvariantError
from mindloop.domain.habit import Interval
from mindloop.domain.period import as_utc, period_for


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestDailyPeriod:
    def test_key_is_calendar_date(self, now):
        p = period_for(Interval.daily, now)
        assert p.key == "2024-03-13"

    def test_start_and_end_are_midnight(self, now):
        p = period_for(Interval.daily, now)
        assert p.start == _utc(2024, 3, 13)
        assert p.end == p.start

    def test_same_day_same_key(self):
        morning = period_for(Interval.daily, _utc(2024, 3, 13, 0, 0, 1))
        night = period_for(Interval.daily, _utc(2024, 3, 13, 23, 59, 59))
        assert morning == night

    def test_next_day_new_key(self, now):
        assert period_for(Interval.daily, now).key != period_for(
            Interval.daily, now + timedelta(days=1)
        ).key

    def test_aware_non_utc_input_is_converted(self):
        # 22:00 at UTC-5 is already the next day in UTC
        minus_five = timezone(timedelta(hours=-5))
        p = period_for(Interval.daily, datetime(2024, 3, 13, 22, 0, tzinfo=minus_five))
        assert p.key == "2024-03-14"

    def test_accepts_plain_string_interval(self, now):
        assert period_for("daily", now).key == "2024-03-13"


class TestWeeklyPeriod:
    def test_key_is_iso_week(self, now):
        assert period_for(Interval.weekly, now).key == "2024-W11"

    def test_week_starts_monday_and_spans_six_days(self, now):
        p = period_for(Interval.weekly, now)
        assert p.start == _utc(2024, 3, 11)
        assert p.start.weekday() == 0
        assert p.end == _utc(2024, 3, 17)

    def test_monday_and_sunday_share_a_period(self):
        monday = period_for(Interval.weekly, _utc(2024, 3, 11, 0, 0))
        sunday = period_for(Interval.weekly, _utc(2024, 3, 17, 23, 59))
        assert monday.key == sunday.key

    def test_iso_year_differs_from_calendar_year(self):
        # 30 Dec 2024 is a Monday in ISO week 1 of 2025
        p = period_for(Interval.weekly, _utc(2024, 12, 30, 9))
        assert p.key == "2025-W01"
        assert p.start == _utc(2024, 12, 30)

    def test_week_53(self):
        # 1 Jan 2021 belongs to ISO week 53 of 2020
        p = period_for(Interval.weekly, _utc(2021, 1, 1, 12))
        assert p.key == "2020-W53"
        assert p.start == _utc(2020, 12, 28)


class TestPeriodInvariants:
    def test_unknown_interval_raises(self, now):
        with pytest.raises(IntervalInvariantError) as exc_info:
            period_for("monthly", now)
        assert exc_info.value.http_status == 500
        assert exc_info.value.code == "INTERVAL_INVARIANT"

    def test_as_utc_attaches_utc_to_naive(self):
        assert as_utc(datetime(2024, 1, 1, 8)).tzinfo is timezone.utc
