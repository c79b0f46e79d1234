"""Column types shared by the ScreenSift models."""

from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import DateTime, Interval
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalise a datetime to aware UTC; naive values are taken to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator[datetime]):
    """
    Timestamp column that always round-trips as aware UTC.

    Values are converted to UTC before they are bound. SQLite keeps no
    offset, so rows read back without one are stamped as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        return as_utc(value)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        return as_utc(value)

    def coerce_compared_value(self, op: Any, value: Any) -> TypeEngine[Any]:
        # timestamp - interval arithmetic must not bind the interval as a datetime
        if isinstance(value, timedelta):
            return Interval()
        return self
