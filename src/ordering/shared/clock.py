from datetime import UTC, datetime


def as_utc(value: datetime | None) -> datetime | None:
    # Some providers hand back naive datetimes; they are always stored in UTC.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)
