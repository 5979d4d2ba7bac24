"""
Tests for DateService.

Tests cover:
1. Effective date calculation based on day_start_time
2. Time string parsing
"""
import pytest
from datetime import date, datetime
from unittest.mock import patch

from levelup.services.date_service import DateService


class TestEffectiveDate:
    """Tests for get_effective_date function"""

    def test_returns_today_when_day_start_disabled(self):
        service = DateService(day_start_enabled=False)
        result = service.get_effective_date(datetime(2026, 1, 30, 3, 0, 0))
        assert result == date(2026, 1, 30)

    def test_returns_today_when_after_day_start(self):
        """Should return today when current time is after day_start_time"""
        service = DateService(day_start_enabled=True, day_start_time="06:00")

        # Mock datetime.now() to 10:00
        with patch('levelup.services.date_service.datetime') as mock_dt:
            mock_dt.now.return_value = datetime(2026, 1, 30, 10, 0, 0)
            mock_dt.side_effect = lambda *args, **kwargs: datetime(*args, **kwargs)
            result = service.get_effective_date()

        assert result == date(2026, 1, 30)

    def test_returns_yesterday_when_before_day_start(self):
        """Should return yesterday when current time is before day_start_time"""
        service = DateService(day_start_enabled=True, day_start_time="06:00")

        # Mock datetime.now() to 03:00
        with patch('levelup.services.date_service.datetime') as mock_dt:
            mock_dt.now.return_value = datetime(2026, 1, 30, 3, 0, 0)
            mock_dt.side_effect = lambda *args, **kwargs: datetime(*args, **kwargs)
            result = service.get_effective_date()

        assert result == date(2026, 1, 29)

    def test_boundary_minute_is_new_day(self):
        service = DateService(day_start_enabled=True, day_start_time="06:00")
        assert service.get_effective_date(datetime(2026, 1, 30, 6, 0)) == date(2026, 1, 30)
        assert service.get_effective_date(datetime(2026, 1, 30, 5, 59)) == date(2026, 1, 29)

    def test_crosses_month_boundary(self):
        service = DateService(day_start_enabled=True, day_start_time="06:00")
        assert service.get_effective_date(datetime(2026, 3, 1, 1, 0)) == date(2026, 2, 28)

    def test_invalid_day_start_falls_back_to_today(self):
        service = DateService(day_start_enabled=True, day_start_time="99:99")
        assert service.get_effective_date(datetime(2026, 1, 30, 3, 0)) == date(2026, 1, 30)


class TestParseTime:
    """Tests for parse_time"""

    @pytest.mark.parametrize("value,expected", [
        ("06:00", (6, 0)),
        ("0630", (6, 30)),
        ("23:59", (23, 59)),
        ("930", (9, 30)),
    ])
    def test_valid_times(self, value, expected):
        assert DateService.parse_time(value) == expected

    @pytest.mark.parametrize("value", ["24:00", "12:60", "ab:cd"])
    def test_invalid_times(self, value):
        with pytest.raises(ValueError):
            DateService.parse_time(value)
