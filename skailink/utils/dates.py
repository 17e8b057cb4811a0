from datetime import date, datetime
from typing import Optional
import re

import pytz

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
ISO_DURATION_RE = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:[\d.]+S)?)?$")


def get_current_datetime(tz: str = "UTC") -> datetime:
    """Get current datetime with timezone"""
    return datetime.now(pytz.timezone(tz))


def today(tz: str = "UTC") -> date:
    return get_current_datetime(tz).date()


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Strict 'YYYY-MM-DD' parser. Returns None for anything else, including
    well-formed strings that are not calendar dates ('2025-02-30')."""
    if not value or not DATE_RE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def iso_to_minutes(dur: Optional[str]) -> int:
    """'PT2H15M' -> 135. Days are folded in; unknown input -> 0."""
    match = ISO_DURATION_RE.match((dur or "").strip().upper())
    if not match:
        return 0
    days, hours, minutes = (int(g or 0) for g in match.groups())
    return days * 24 * 60 + hours * 60 + minutes


def format_duration_minutes(total_minutes: Optional[int]) -> str:
    """
    Convert duration in minutes to a compact human string, e.g. 135 -> "2h 15m".
    """
    if total_minutes is None or total_minutes <= 0:
        return ""
    h = total_minutes // 60
    m = total_minutes % 60
    if h and m:
        return f"{h}h {m}m"
    if h:
        return f"{h}h"
    return f"{m}m"


def format_duration(dur: Optional[str]) -> str:
    """ISO-8601 duration to display text: 'PT2H15M' -> '2h 15m', 'PT45M' -> '45m'."""
    return format_duration_minutes(iso_to_minutes(dur))


def split_timestamp(value: Optional[str]) -> tuple[str, str]:
    """Split a vendor local timestamp into ('YYYY-MM-DD', 'HH:MM').

    The vendor already reports airport-local time, so no timezone
    conversion happens here; any offset suffix is ignored.
    """
    if not value:
        return "", ""
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return "", ""
    return dt.date().isoformat(), dt.strftime("%H:%M")


def format_time(value: Optional[str]) -> str:
    return split_timestamp(value)[1]
