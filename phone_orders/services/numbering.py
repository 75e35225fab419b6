"""
Phone Orders — Day-scoped order numbers

Numbers restart at "1" each calendar day of the restaurant's timezone.

The count-then-insert sequence is not atomic: two submissions that both count
before either inserts receive the same number. Set SERIALIZE_ORDER_NUMBERING
to hold an in-process lock across numbering and insert.
"""
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from phone_orders.db.order_ops import count_orders_between


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite drops tzinfo on the way back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def day_bounds(now: datetime, tz_name: str = "UTC") -> tuple[datetime, datetime]:
    """UTC [start, end) of the local calendar day containing now."""
    tz = ZoneInfo(tz_name)
    local_day = as_utc(now).astimezone(tz).date()
    start = datetime.combine(local_day, time.min, tzinfo=tz)
    end = datetime.combine(local_day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


async def next_order_number(db: AsyncSession, now: datetime, tz_name: str = "UTC") -> str:
    start, end = day_bounds(now, tz_name)
    count = await count_orders_between(db, start, end)
    return str(count + 1)
