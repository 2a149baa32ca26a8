from datetime import date, datetime, timezone

from finance_assistant.models import DateValue


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_date(value: DateValue) -> date | None:
    """Calendar date of a snapshot value, or None when it cannot be read."""
    if isinstance(value, datetime):
        return to_naive_utc(value).date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    raw = value.strip()
    try:
        return to_naive_utc(datetime.fromisoformat(raw.replace("Z", "+00:00"))).date()
    except ValueError:
        pass
    # Date-only prefix of a longer timestamp, e.g. "2026-02-10 08:15:00 GMT"
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def resolve_now(now: datetime | None = None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc).replace(tzinfo=None)
    return to_naive_utc(now)


def start_of_month(now: datetime) -> date:
    return now.date().replace(day=1)
