"""
Tests für die Kalender-Arithmetik
"""
from datetime import date

from farmflow.core.dates import (
    add_days,
    days_between,
    week_bounds,
    month_bounds,
    format_iso_date,
    parse_iso_date,
    is_delivery_day,
    date_range,
)


class TestDateMath:
    """Tests für Tagesarithmetik"""

    def test_add_days_forward_and_backward(self):
        """Test: Verschieben über Monatsgrenzen"""
        assert add_days(date(2024, 6, 28), 5) == date(2024, 7, 3)
        assert add_days(date(2024, 3, 1), -1) == date(2024, 2, 29)

    def test_days_between(self):
        assert days_between(date(2024, 6, 10), date(2024, 6, 20)) == 10
        assert days_between(date(2024, 6, 20), date(2024, 6, 10)) == -10

    def test_date_range_is_inclusive(self):
        days = list(date_range(date(2024, 6, 1), date(2024, 6, 3)))
        assert days == [date(2024, 6, 1), date(2024, 6, 2), date(2024, 6, 3)]
        assert list(date_range(date(2024, 6, 3), date(2024, 6, 1))) == []


class TestWeekBounds:
    """Tests für Wochen- und Monatsgrenzen"""

    def test_week_starts_monday(self):
        """Test: Mittwoch liegt in der Woche Montag bis Sonntag"""
        start, end = week_bounds(date(2024, 6, 12))
        assert start == date(2024, 6, 10)
        assert end == date(2024, 6, 16)
        assert start.weekday() == 0

    def test_week_bounds_on_sunday(self):
        start, end = week_bounds(date(2024, 6, 16))
        assert start == date(2024, 6, 10)
        assert end == date(2024, 6, 16)

    def test_month_bounds_december(self):
        assert month_bounds(date(2024, 12, 15)) == (date(2024, 12, 1), date(2024, 12, 31))

    def test_month_bounds_leap_year(self):
        assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))


class TestIsoFormat:
    """Tests für die kanonische Datumsdarstellung"""

    def test_format_and_parse(self):
        assert format_iso_date(date(2024, 1, 5)) == "2024-01-05"
        assert parse_iso_date("2024-01-05") == date(2024, 1, 5)

    def test_is_delivery_day(self):
        """Test: Wochentage nach date.weekday() (0=Montag)"""
        monday = date(2024, 6, 10)
        assert is_delivery_day(monday, [0, 3])
        assert not is_delivery_day(monday, [1, 2])
