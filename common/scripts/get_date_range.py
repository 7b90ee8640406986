# common/scripts/get_date_range.py
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def resolve_timezone(tz_name: Optional[str]):
    """ZoneInfo for ``tz_name``; unknown or empty names fall back to UTC."""
    if not tz_name:
        return timezone.utc
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def get_hospital_today(tz_name: Optional[str], now: Optional[datetime] = None) -> date:
    """
    Calendar date "today" in the hospital's timezone.

    Example:
        >>> get_hospital_today("Asia/Kolkata", datetime(2024, 1, 1, 20, 0, tzinfo=timezone.utc))
        datetime.date(2024, 1, 2)
    """
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(resolve_timezone(tz_name)).date()


__all__ = ["resolve_timezone", "get_hospital_today"]
