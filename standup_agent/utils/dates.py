from datetime import datetime
from zoneinfo import ZoneInfo

DEFAULT_DISPLAY_TIMEZONE = "America/Los_Angeles"


def format_long_date(value: datetime, tz_name: str = DEFAULT_DISPLAY_TIMEZONE) -> str:
    """e.g. 'Tuesday, March 4, 2025' in the display timezone"""
    local = value.astimezone(ZoneInfo(tz_name))
    return f"{local:%A, %B} {local.day}, {local.year}"
