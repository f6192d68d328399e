"""
Tests for date helpers.
"""

from datetime import date, datetime, timezone

import pytest

from utils.datetime_helpers import add_months, normalize_reservation_date


class TestAddMonths:
    """Calendar month arithmetic."""

    def test_same_day_of_month(self):
        assert add_months(date(2030, 1, 15), 3) == date(2030, 4, 15)

    def test_year_rollover(self):
        assert add_months(date(2030, 11, 20), 3) == date(2031, 2, 20)

    def test_clamps_to_month_length(self):
        assert add_months(date(2029, 11, 30), 3) == date(2030, 2, 28)
        assert add_months(date(2031, 11, 30), 3) == date(2032, 2, 29)


class TestNormalizeReservationDate:
    """Reservation dates are stored as UTC days."""

    def test_plain_date_string(self):
        assert normalize_reservation_date('2030-01-20') == '2030-01-20'

    def test_date_object(self):
        assert normalize_reservation_date(date(2030, 1, 20)) == '2030-01-20'

    def test_utc_timestamp(self):
        assert normalize_reservation_date('2030-01-20T23:30:00Z') == '2030-01-20'

    def test_offset_timestamp_converted_to_utc(self):
        # 09:00 in Sydney is still the previous day in UTC
        assert normalize_reservation_date('2030-01-20T09:00:00+11:00') == '2030-01-19'

    def test_aware_datetime(self):
        value = datetime(2030, 1, 20, 1, 0, tzinfo=timezone.utc)
        assert normalize_reservation_date(value) == '2030-01-20'

    def test_naive_timestamp_keeps_day(self):
        assert normalize_reservation_date('2030-01-20T09:00:00') == '2030-01-20'

    @pytest.mark.parametrize('value', ['', None, 'tomorrow', '2030-13-01'])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            normalize_reservation_date(value)
