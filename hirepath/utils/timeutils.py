"""
Time helpers.

MongoDB stores datetimes as UTC and pymongo hands them back naive, so
everything written to or compared against the database goes through
to_storage() first: aware values are converted to UTC, naive values are
taken to already be UTC.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple, Union

TimestampInput = Union[str, datetime, date]


def utcnow() -> datetime:
    """Current instant as a naive UTC datetime (storage form)."""
    return to_storage(datetime.now(timezone.utc))


def to_storage(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC, truncated to milliseconds like BSON."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def to_wire(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a stored datetime so it serializes with an offset."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: TimestampInput) -> datetime:
    """
    Parse an API timestamp into storage form.

    Accepts datetime/date objects and ISO-8601 strings, including date-only
    ("2024-03-01") and "Z"-suffixed values. Raises ValueError otherwise.
    """
    if isinstance(value, datetime):
        try:
            return to_storage(value)
        except OverflowError:
            raise ValueError(f"invalid date: {value!r}") from None
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str) or not value.strip():
        raise ValueError("expected an ISO-8601 date or datetime")

    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        # an offset can push the UTC instant outside datetime's range
        return to_storage(datetime.fromisoformat(text))
    except (ValueError, OverflowError):
        raise ValueError(f"invalid date: {value!r}") from None


def period_starts(now: Optional[datetime] = None) -> Tuple[datetime, datetime, datetime]:
    """
    Start of today, of this week (Sunday) and of this month.

    Boundaries are local midnights of the server's time zone (or of `now`'s
    zone when an aware datetime is passed), returned in storage form.
    A naive `now` is read as server-local wall time.
    """
    if now is None:
        now = datetime.now()
    fixed_zone = now.tzinfo

    def midnight(day: date) -> datetime:
        value = datetime.combine(day, time.min)
        if fixed_zone is not None:
            return to_storage(value.replace(tzinfo=fixed_zone))
        # naive -> system local rules for that particular date (DST aware)
        return to_storage(value.astimezone())

    today = now.date()
    # weekday(): Monday=0 .. Sunday=6
    start_of_week = today - timedelta(days=(today.weekday() + 1) % 7)
    start_of_month = today.replace(day=1)

    return midnight(today), midnight(start_of_week), midnight(start_of_month)
