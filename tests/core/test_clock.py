"""Tests for the injectable clock."""

from datetime import date, datetime, timezone

import pytest

from stockledger.core.clock import FixedClock, SystemClock, get_clock, set_clock


class TestFixedClock:
    def test_from_date(self):
        clock = FixedClock(date(2024, 3, 15))
        assert clock.today() == date(2024, 3, 15)
        assert clock.now().tzinfo is not None

    def test_naive_datetime_rejected(self):
        with pytest.raises(ValueError):
            FixedClock(datetime(2024, 3, 15))

    def test_advance(self):
        clock = FixedClock(datetime(2024, 1, 31, tzinfo=timezone.utc))
        clock.advance(days=1)
        assert clock.today() == date(2024, 2, 1)


class TestDefaultClock:
    def test_set_and_restore(self):
        original = get_clock()
        fixed = FixedClock(date(2020, 1, 1))
        try:
            set_clock(fixed)
            assert get_clock() is fixed
        finally:
            set_clock(original)
        assert isinstance(get_clock(), SystemClock)
