from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class MonthWindow:
    key: str    # "YYYY-MM"
    label: str  # "Jan 2026"
    start: date
    end: date

    def bounds(self, tz: tzinfo) -> Tuple[datetime, datetime]:
        return (
            datetime.combine(self.start, time.min, tzinfo=tz),
            datetime.combine(self.end, time.max, tzinfo=tz),
        )


def resolve_now(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> datetime:
    """Reference instant for a report, expressed in the report timezone."""
    tz = tz or timezone.utc
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def local_date(value: Optional[datetime], tz: tzinfo) -> Optional[date]:
    if value is None:
        return None
    return value.astimezone(tz).date()


def start_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def start_of_week(day: date, week_start: int = 0) -> date:
    offset = (day.weekday() - week_start) % 7
    return day - timedelta(days=offset)


def _add_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_window(first: date) -> MonthWindow:
    first = first.replace(day=1)
    last = _add_months(first, 1) - timedelta(days=1)
    return MonthWindow(
        key=first.strftime("%Y-%m"),
        label=first.strftime("%b %Y"),
        start=first,
        end=last,
    )


def last_months(today: date, count: int = 12) -> List[MonthWindow]:
    """`count` calendar months ending with the month of `today`, oldest first."""
    return [month_window(_add_months(today.replace(day=1), -i)) for i in range(count - 1, -1, -1)]
