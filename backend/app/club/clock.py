"""
Europe/Belgrade wall clock <-> UTC instant conversion.

Only UTC instants are persisted. The Belgrade wall clock is used at the edges:
formatting stored instants for display, and turning the naive value of an
HTML datetime-local input ("2024-06-15T18:30") back into a UTC instant.

Resolution of a local value follows two passes: read the zone offset at the
instant obtained by treating the wall clock as UTC, shift by it, then read the
offset again at the shifted instant and redo the shift once if it changed.

Times that fall into the spring-forward gap (e.g. 02:30 on the last Sunday of
March) come out pushed forward by the DST shift, so 02:30 resolves to 01:30Z
and displays as 03:30. Times that occur twice on the fall-back night resolve
to the later, standard-time occurrence.
"""
import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from babel.core import UnknownLocaleError
from babel.dates import format_datetime

logger = logging.getLogger(__name__)

BELGRADE_TIME_ZONE = "Europe/Belgrade"
BELGRADE = ZoneInfo(BELGRADE_TIME_ZONE)
DEFAULT_LOCALE = "sr"

LOCAL_INPUT_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2})$")
# Shapes PostgreSQL emits that fromisoformat is strict about: "16:30:00.5", "+00"
_FRACTION = re.compile(r"(:\d{2})\.(\d+)")
_SHORT_OFFSET = re.compile(r"(\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?[+-]\d{2})$")

DateInput = Union[datetime, str, None]


def parse_instant(value: DateInput) -> Optional[datetime]:
    """
    Parse a stored instant into an aware UTC datetime.

    Accepts aware or naive datetimes (naive ones are taken as UTC) and ISO-8601
    strings, including the trailing "Z" form. Returns None for anything else.
    """
    if not value:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        text = _FRACTION.sub(lambda m: m.group(1) + "." + m.group(2)[:6].ljust(6, "0"), text)
        text = _SHORT_OFFSET.sub(r"\1:00", text)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def offset_minutes_at(instant: datetime, tz: ZoneInfo = BELGRADE) -> int:
    """UTC offset of `tz` at the given instant, in whole minutes"""
    offset = instant.astimezone(tz).utcoffset() or timedelta(0)
    return int(offset.total_seconds() // 60)


def _parse_local_input(value: str) -> Optional[datetime]:
    match = LOCAL_INPUT_PATTERN.match(value)
    if not match:
        return None

    year, month, day, hour, minute = (int(part) for part in match.groups())
    try:
        return datetime(year, month, day, hour, minute)
    except ValueError:
        # Feb 30, hour 24 and friends
        return None


def belgrade_local_input_to_utc(value: Optional[str]) -> Optional[datetime]:
    """
    Resolve a naive Belgrade wall-clock value (YYYY-MM-DDTHH:MM) to UTC.

    Returns None when the value is not a well-formed calendar date-time.
    """
    if not isinstance(value, str):
        return None

    local = _parse_local_input(value.strip())
    if local is None:
        return None

    utc_guess = local.replace(tzinfo=timezone.utc)

    offset = offset_minutes_at(utc_guess)
    resolved = utc_guess - timedelta(minutes=offset)

    resolved_offset = offset_minutes_at(resolved)
    if resolved_offset != offset:
        offset = resolved_offset
        resolved = utc_guess - timedelta(minutes=offset)

    return resolved.replace(second=0, microsecond=0)


def belgrade_local_input_to_utc_iso(value: Optional[str]) -> Optional[str]:
    resolved = belgrade_local_input_to_utc(value)
    if resolved is None:
        return None
    return to_utc_iso(resolved)


def to_utc_iso(instant: datetime) -> str:
    """ISO-8601 UTC string with millisecond precision and a Z suffix"""
    if instant.tzinfo is None:
        # Naive values come back from SQLite and are UTC
        instant = instant.replace(tzinfo=timezone.utc)
    instant = instant.astimezone(timezone.utc)
    return instant.strftime("%Y-%m-%dT%H:%M:%S.") + f"{instant.microsecond // 1000:03d}Z"


def utc_to_belgrade_local_input(value: DateInput) -> str:
    """Format a stored instant for an HTML datetime-local input, "" if unparseable"""
    parsed = parse_instant(value)
    if parsed is None:
        return ""
    return parsed.astimezone(BELGRADE).strftime("%Y-%m-%dT%H:%M")


def belgrade_minute_key(value: DateInput) -> str:
    """Belgrade wall clock to the minute; two instants in the same local minute share a key"""
    parsed = parse_instant(value)
    if parsed is None:
        return value[:16] if isinstance(value, str) else ""
    return utc_to_belgrade_local_input(parsed)


def belgrade_date(value: DateInput) -> Optional[date]:
    parsed = parse_instant(value)
    if parsed is None:
        return None
    return parsed.astimezone(BELGRADE).date()


def format_in_belgrade(value: DateInput, locale: Optional[str] = None, format: str = "medium") -> str:
    """
    Format a stored instant as Belgrade civil time in the given locale.

    `format` is a Babel/CLDR width ("short", "medium", "long", "full") or a
    pattern such as "EEEE, d. MMMM y. HH:mm". Returns "" for empty or
    unparseable input so display code can render a blank cell.
    """
    parsed = parse_instant(value)
    if parsed is None:
        return ""

    locale_name = (locale or DEFAULT_LOCALE).replace("-", "_")
    try:
        return format_datetime(parsed, format=format, tzinfo=BELGRADE, locale=locale_name)
    except (UnknownLocaleError, ValueError):
        logger.warning("[Clock] Unknown locale %r, falling back to %s", locale, DEFAULT_LOCALE)
        return format_datetime(parsed, format=format, tzinfo=BELGRADE, locale=DEFAULT_LOCALE)
