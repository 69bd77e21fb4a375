"""
Timezone utilities for the Stream Delivery Engine.

Stream creation times are stored timezone-aware so that most-recent-first
ordering is stable regardless of the server's local clock settings.
"""

import datetime
import logging
from typing import Optional

import pytz


class TimezoneManager:
    """Manages timezone-aware datetime operations"""

    def __init__(self, timezone_name: str = "UTC"):
        self.timezone_name = timezone_name
        self.timezone = pytz.timezone(timezone_name)
        self.logger = logging.getLogger(__name__)

    def now(self) -> datetime.datetime:
        """Get current time in the configured timezone"""
        return datetime.datetime.now(self.timezone)

    def localize(self, dt: datetime.datetime) -> datetime.datetime:
        """Add timezone info to naive datetime (assumes local timezone)"""
        if dt.tzinfo is not None:
            return dt
        return self.timezone.localize(dt)

    def format_timestamp(self, dt: Optional[datetime.datetime] = None) -> str:
        """Format datetime as an ISO 8601 string with offset"""
        if dt is None:
            dt = self.now()
        return self.localize(dt).isoformat()

    def parse_timestamp(self, timestamp_str: str) -> datetime.datetime:
        """Parse an ISO 8601 timestamp; naive values are taken as local time"""
        try:
            return self.localize(datetime.datetime.fromisoformat(timestamp_str))
        except ValueError:
            raise ValueError(f"Unable to parse timestamp: {timestamp_str}")
