"""Time Utilities - UTC timestamps and formatting"""
from datetime import datetime, timezone, timedelta
from dateutil import parser as date_parser


def utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes (MongoDB returns naive values unless tz_aware)"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string

    Args:
        dt: Datetime object

    Returns:
        ISO formatted string with Z suffix for UTC
    """
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 string to datetime

    Args:
        iso_string: ISO formatted datetime string

    Returns:
        Datetime object in UTC
    """
    return ensure_utc(date_parser.isoparse(iso_string))


def add_seconds(dt: datetime, seconds: int) -> datetime:
    """Add seconds to datetime"""
    return dt + timedelta(seconds=seconds)


def is_expired(expires_at: datetime, now: datetime) -> bool:
    """A token is expired once now is strictly past its expiry"""
    return ensure_utc(now) > ensure_utc(expires_at)
