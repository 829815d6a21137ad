"""Store-local clock.

Dates that the business reads (due dates, overdue checks, closing history
filters) are expressed in the store's time zone, not the server's.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

import pytz

from joyeria.app.core.config import settings


class Clock:
    def __init__(self, tz_name: str) -> None:
        self.tz = pytz.timezone(tz_name)

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return datetime.now(self.tz).date()

    def day_bounds(self, day: date) -> tuple[datetime, datetime]:
        """Return the [start, end) UTC instants of a store-local calendar day."""
        start = self.tz.localize(datetime.combine(day, time.min))
        end = self.tz.localize(datetime.combine(day + timedelta(days=1), time.min))
        return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


clock = Clock(settings.STORE_TIMEZONE)
