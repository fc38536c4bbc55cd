"""
Mapping helpers shared by both provider adapters.

Handles:
- DateTime parsing and formatting (RFC 3339)
- Time range validation before any provider call
- Default listing window
- Contact de-duplication
- Organizer display name fallback
"""

from datetime import datetime, time, timedelta, timezone
from typing import Iterable, Optional, Union

from dateutil.parser import parse as parse_datetime_string
from dateutil.relativedelta import relativedelta

from calsync.integrations.base import Contact, UserProfile
from calsync.integrations.exceptions import InvalidRequestError

MAX_EVENT_DURATION = timedelta(hours=24)
FALLBACK_ORGANIZER_NAME = "user"


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes; leave aware ones untouched."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def format_datetime(dt: datetime) -> str:
    """
    Format datetime to RFC 3339 in UTC.

    Args:
        dt: Datetime to format (naive values are treated as UTC)

    Returns:
        RFC 3339 formatted string
    """
    dt = ensure_utc(dt)
    if dt.utcoffset() != timedelta(0):
        dt = dt.astimezone(timezone.utc)
    return dt.isoformat()


def parse_datetime(dt_str: str) -> datetime:
    """
    Parse a provider datetime string.

    Provider timestamps without an offset are UTC.

    Args:
        dt_str: ISO-8601 / RFC 3339 datetime string

    Returns:
        Timezone-aware datetime
    """
    return ensure_utc(parse_datetime_string(dt_str))


def parse_date(date_str: str) -> datetime:
    """
    Parse a date string (all-day events) to midnight UTC.

    Args:
        date_str: Date string in YYYY-MM-DD format
    """
    return datetime.strptime(date_str, "%Y-%m-%d").replace(tzinfo=timezone.utc)


def coerce_timestamp(value: Union[str, datetime], field_name: str = "time") -> datetime:
    """
    Convert a boundary value to an aware datetime.

    Raises:
        InvalidRequestError: If a string value is not valid ISO-8601
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    try:
        return parse_datetime(value)
    except (ValueError, OverflowError, TypeError) as e:
        raise InvalidRequestError(
            f"Invalid date format for {field_name}: {value!r}",
            original_error=e,
        )


def validate_time_range(
    start: Union[str, datetime],
    end: Union[str, datetime],
) -> tuple[datetime, datetime]:
    """
    Check an event interval before it is sent to a provider.

    Args:
        start: Event start
        end: Event end

    Returns:
        (start, end) as aware datetimes

    Raises:
        InvalidRequestError: If a value is malformed, start is not before
            end, or the event is longer than 24 hours
    """
    start_dt = coerce_timestamp(start, "start time")
    end_dt = coerce_timestamp(end, "end time")

    if start_dt >= end_dt:
        raise InvalidRequestError("Start time must be before end time")

    if end_dt - start_dt > MAX_EVENT_DURATION:
        raise InvalidRequestError("Event duration cannot exceed 24 hours")

    return start_dt, end_dt


def default_time_range(
    lookahead_months: int,
    now: Optional[datetime] = None,
) -> tuple[datetime, datetime]:
    """
    Default listing window: start of today through end of day N months out.

    Args:
        lookahead_months: Months to look ahead
        now: Reference time (defaults to the current UTC time)

    Returns:
        (range_start, range_end) in UTC
    """
    now = ensure_utc(now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
    end_day = now.date() + relativedelta(months=lookahead_months)
    end = datetime.combine(end_day, time.max, tzinfo=timezone.utc)
    return start, end


def dedupe_contacts(contacts: Iterable[Contact]) -> list[Contact]:
    """
    De-duplicate contacts by case-insensitive email.

    The first occurrence wins and input order is preserved. Contacts with
    no email are dropped.
    """
    seen: set[str] = set()
    unique = []
    for contact in contacts:
        if not contact.email:
            continue
        key = contact.email.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(contact)
    return unique


def emails_match(first: Optional[str], second: Optional[str]) -> bool:
    """Case-insensitive email equality; missing values never match."""
    if not first or not second:
        return False
    return first.strip().lower() == second.strip().lower()


def resolve_organizer_name(
    organizer_email: Optional[str],
    known_name: Optional[str] = None,
    profile: Optional[UserProfile] = None,
) -> str:
    """
    Resolve the organizer display name.

    Order: a name already known for the event, the profile name when the
    profile email matches the organizer, the organizer email, then "user".
    """
    if known_name:
        return known_name
    if profile is not None and profile.name and emails_match(profile.email, organizer_email):
        return profile.name
    if organizer_email:
        return organizer_email
    return FALLBACK_ORGANIZER_NAME
