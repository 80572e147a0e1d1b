from __future__ import annotations

import re
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from ..core.config import settings

ONE_DAY_MS = 24 * 60 * 60 * 1000

_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_TIME_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*(am|pm)?$", re.IGNORECASE)


def _zone(tz: str | None) -> ZoneInfo:
    return ZoneInfo(tz or settings.TZ)


def now_ms() -> int:
    return int(datetime.now(tz=timezone.utc).timestamp() * 1000)


def from_ms(ms: int, tz: str | None = None) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=_zone(tz))


def to_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def format_time_only(ms: int | None, tz: str | None = None) -> str:
    """``HH:MM`` in the local zone, empty for a missing timestamp."""
    if not ms:
        return ""
    return from_ms(ms, tz).strftime("%H:%M")


def format_date_only(ms: int | None, tz: str | None = None) -> str:
    if not ms:
        return ""
    return from_ms(ms, tz).strftime("%Y-%m-%d")


def format_date_time(ms: int | None, tz: str | None = None) -> str:
    if not ms:
        return ""
    return from_ms(ms, tz).strftime("%Y-%m-%d %H:%M")


def parse_user_datetime(value: str | None, base_ms: int | None = None, tz: str | None = None) -> int | None:
    """Parse what a user types into the time editor.

    Accepts a full ``YYYY-MM-DD HH:MM`` (or ``T`` separated) timestamp, or a
    bare time such as ``3pm``, ``03:30`` or ``11:45 am`` which is applied to
    the calendar day of ``base_ms``. Returns epoch milliseconds or ``None``.
    """

    if not value or not value.strip():
        return None
    text = value.strip().lower()
    zone = _zone(tz)
    if _DATE_RE.search(text):
        iso = re.sub(r"\s+", "T", text, count=1)
        try:
            dt = datetime.fromisoformat(iso)
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=zone)
        return to_ms(dt)

    match = _TIME_RE.match(text)
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2)) if match.group(2) else 0
    meridiem = match.group(3)
    if meridiem:
        if hour == 12:
            hour = 0
        if meridiem == "pm":
            hour += 12
    if hour > 23 or minute > 59:
        return None
    base = from_ms(base_ms if base_ms is not None else now_ms(), tz)
    return to_ms(base.replace(hour=hour, minute=minute, second=0, microsecond=0))
