"""Clock and timestamp formatting in the tracker's fixed timezone."""
from datetime import datetime
from typing import Optional
import pytz

from .logger import get_logger

logger = get_logger(__name__)

# Game server time (UTC+7)
DEFAULT_TIMEZONE = 'Asia/Ho_Chi_Minh'


class TimestampFormatter:
    """Produces and formats instants in a single fixed timezone.

    Every comparison and every rendered time in the bot goes through the same
    zone, never UTC or the host's local zone directly.
    """

    def __init__(self, timezone: Optional[str] = None):
        """
        Initialize the timestamp formatter.

        Args:
            timezone: IANA timezone name (e.g. 'Asia/Ho_Chi_Minh', 'Asia/Singapore').
                      If None or empty, DEFAULT_TIMEZONE is used.
        """
        self.tz = pytz.timezone(DEFAULT_TIMEZONE)
        self.set_timezone(timezone or DEFAULT_TIMEZONE)

    def set_timezone(self, timezone: str) -> None:
        """Set the tracker timezone. Unknown names keep the current zone."""
        try:
            self.tz = pytz.timezone(timezone.strip())
            logger.info(f"Timezone set to: {self.tz.zone}")
        except pytz.exceptions.UnknownTimeZoneError as e:
            logger.error(f"Unknown timezone '{timezone}', keeping {self.tz.zone}: {e}")

    def now(self) -> datetime:
        """Current instant in the tracker timezone."""
        return datetime.now(pytz.utc).astimezone(self.tz)

    def localize(self, dt: datetime) -> datetime:
        """
        Express a datetime in the tracker timezone.

        Naive datetimes are taken to already be wall-clock time in the zone.
        """
        if dt.tzinfo is None:
            return self.tz.localize(dt)
        return self.tz.normalize(dt.astimezone(self.tz))

    def parse_iso(self, value: str) -> datetime:
        """
        Parse a stored ISO-8601 timestamp.

        Args:
            value: Timestamp string, with or without a UTC offset

        Returns:
            datetime in the tracker timezone

        Raises:
            ValueError: If the string is not ISO-8601
        """
        text = value.strip()
        # fromisoformat() before 3.11 does not accept a trailing Z
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        return self.localize(datetime.fromisoformat(text))

    def to_iso(self, dt: datetime) -> str:
        """Serialize a datetime as ISO-8601 with the zone offset."""
        return self.localize(dt).isoformat()

    def format_time(self, dt: datetime) -> str:
        """Format as 24-hour HH:MM in the tracker timezone."""
        return self.localize(dt).strftime("%H:%M")

    def to_unix_timestamp(self, dt: datetime) -> int:
        """
        Convert datetime to Unix timestamp.

        Args:
            dt: datetime object

        Returns:
            Unix timestamp (seconds since epoch)
        """
        return int(self.localize(dt).timestamp())

    def format_discord_timestamp(self, dt: datetime, format_type: str = 'F') -> str:
        """
        Format a datetime as a Discord timestamp.

        Args:
            dt: Instant to format
            format_type: Discord format type:
                        'F' - Full date/time (default)
                        'R' - Relative time
                        't' - Short time
                        'T' - Long time
                        'd' - Short date
                        'D' - Long date
                        'f' - Short date/time

        Returns:
            Discord timestamp string like "<t:1234567890:F>"
        """
        return f"<t:{self.to_unix_timestamp(dt)}:{format_type}>"

    def format_discord_timestamp_relative(self, dt: datetime) -> str:
        """Format as relative Discord timestamp (e.g., "in 5 minutes")."""
        return self.format_discord_timestamp(dt, 'R')
