from datetime import date, datetime

import pytz

from honesty_store.config import settings


def store_today() -> date:
    """Today's calendar date in the store's timezone."""
    store_tz = pytz.timezone(settings.STORE_TIMEZONE)
    return datetime.now(store_tz).date()


def day_bounds(day: date):
    """Inclusive ``(00:00:00, 23:59:59.999999)`` range for a calendar date."""
    return (
        datetime.combine(day, datetime.min.time()),
        datetime.combine(day, datetime.max.time()),
    )


def utc_day_bounds(day: date):
    """Store-local day bounds expressed as naive UTC, for utcnow-stamped columns."""
    store_tz = pytz.timezone(settings.STORE_TIMEZONE)
    start, end = day_bounds(day)
    return (
        store_tz.localize(start).astimezone(pytz.utc).replace(tzinfo=None),
        store_tz.localize(end).astimezone(pytz.utc).replace(tzinfo=None),
    )
