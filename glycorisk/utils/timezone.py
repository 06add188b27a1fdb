from datetime import datetime, timezone as dt_timezone


def utc_now_naive() -> datetime:
    """Current UTC time without tzinfo, the form stored in DateTime columns."""
    return datetime.now(dt_timezone.utc).replace(tzinfo=None)


def to_utc_aware(dt: datetime | None) -> datetime | None:
    """Attach UTC to a stored timestamp before it leaves the API.

    Columns hold naive UTC values; an aware value is converted instead.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=dt_timezone.utc)
    return dt.astimezone(dt_timezone.utc)
