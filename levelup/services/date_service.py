"""
Date calculation service.
Handles the effective date and the daily reset boundary.
"""
from datetime import datetime, timedelta, date
from typing import Optional

from levelup.constants import DAY_START_ENABLED, DAY_START_TIME


class DateService:
    """Service for date-related operations"""

    def __init__(self, day_start_enabled: bool = DAY_START_ENABLED,
                 day_start_time: str = DAY_START_TIME):
        self.day_start_enabled = day_start_enabled
        self.day_start_time = day_start_time

    def get_effective_date(self, now: Optional[datetime] = None) -> date:
        """
        Get the effective current date based on the day start time.

        If the day start is enabled and the current time is before it,
        returns yesterday's date. Otherwise returns today's date.

        Example: If day_start_time = "06:00" and current time is 03:00,
        the effective date is still yesterday because the daily habits
        have not been reset yet.

        Args:
            now: Current moment (defaults to datetime.now())

        Returns:
            Effective date (today or yesterday)
        """
        now = now or datetime.now()
        today = now.date()

        if not self.day_start_enabled:
            return today

        try:
            day_start_hour, day_start_minute = self.parse_time(self.day_start_time or "06:00")
        except (ValueError, IndexError, AttributeError):
            return today

        current_minutes = now.hour * 60 + now.minute
        start_minutes = day_start_hour * 60 + day_start_minute

        if current_minutes < start_minutes:
            return today - timedelta(days=1)

        return today

    @staticmethod
    def parse_time(time_str: str) -> tuple[int, int]:
        """
        Parse time string into hour and minute.

        Accepts "HH:MM" and "HHMM".

        Raises:
            ValueError: If time string is invalid
        """
        t_str = time_str.replace(":", "").zfill(4)
        hour = int(t_str[:2])
        minute = int(t_str[2:])
        if not (0 <= hour < 24 and 0 <= minute < 60):
            raise ValueError(f"Invalid time: {time_str}")
        return hour, minute
