"""
date_time_helper.py

Helpers for UTC timestamps used by the audit log, the contract store and
the notifier. All timestamps are persisted as ISO8601 strings in UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime (seconds precision)."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def utc_now_iso() -> str:
    """
    Returns the current UTC time as an ISO8601 string (YYYY-MM-DDTHH:MM:SS+00:00).
    Used for logging and DB storage.
    """
    return utc_now().isoformat()


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO string from the DB; naive values are treated as UTC."""
    if not value:
        return None
    dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def utc_to_local_str(utc_iso: str) -> str:
    """
    Formats a UTC ISO8601 timestamp as a human-readable string in the
    machine's local timezone: "DD.MM.YYYY HH:mm:ss".
    """
    dt_utc = parse_iso(utc_iso)
    if dt_utc is None:
        return ""
    return dt_utc.astimezone().strftime("%d.%m.%Y %H:%M:%S")
