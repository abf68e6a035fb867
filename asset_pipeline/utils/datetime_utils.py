"""
Centralized DateTime Utilities
==============================

Provides consistent datetime handling across the pipeline. Everything the
pipeline persists or sends over the wire is UTC.

Functions:
- utc_now(): timezone-aware current UTC time (use for MongoDB BSON dates)
- ensure_utc(): normalize naive/aware datetimes to aware UTC
- now_iso(): current UTC time as ISO 8601 with a 'Z' suffix
- parse_iso(): safely parse an ISO 8601 string
- to_iso(): convert a datetime to ISO 8601
- add_ms(): offset a datetime by milliseconds
"""
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Get current UTC time as a timezone-aware datetime.

    Use this for all timestamps that will be persisted to MongoDB (BSON Date).
    """
    return datetime.now(dt_timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime into a timezone-aware UTC datetime.

    - If dt is None -> None
    - If dt is naive -> assume it represents UTC (this matches MongoDB/PyMongo behavior)
    - If dt is aware -> convert to UTC
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=dt_timezone.utc)
    return dt.astimezone(dt_timezone.utc)


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """
    Convert datetime object to ISO 8601 string with millisecond precision.
    Naive datetimes are treated as UTC.

    Args:
        dt: datetime object (timezone-aware or naive)

    Returns:
        ISO 8601 formatted string (e.g. "2025-01-01T00:00:00.000Z"), or None if dt is None
    """
    dt = ensure_utc(dt)
    if dt is None:
        return None
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_iso() -> str:
    """Current UTC time as an ISO 8601 string."""
    return to_iso(utc_now())  # type: ignore[return-value]


def parse_iso(dt_str: Optional[str]) -> Optional[datetime]:
    """
    Parse ISO 8601 string to a UTC datetime object.

    Args:
        dt_str: ISO 8601 string (e.g., "2025-12-24T10:30:00Z" or "2025-12-24T10:30:00+05:30")

    Returns:
        timezone-aware datetime object, or None if parsing fails
    """
    if not dt_str:
        return None

    try:
        return ensure_utc(datetime.fromisoformat(dt_str.replace("Z", "+00:00")))
    except (TypeError, ValueError):
        return None


def add_ms(dt: datetime, milliseconds: float) -> datetime:
    return dt + timedelta(milliseconds=milliseconds)
