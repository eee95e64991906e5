"""
Next due date for a recurring task.

Pure calendar arithmetic: the same (base, rule) always yields the same date.
Weekdays follow ISO numbering (1 = Monday .. 7 = Sunday).
"""
import calendar
from datetime import date, timedelta
from typing import Iterable, List, Optional

from taskboard.schemas.task import RecurrenceFrequency, RecurrenceRule

SATURDAY = 6
SUNDAY = 7


def next_due_date(base: Optional[date], rule: Optional[RecurrenceRule]) -> Optional[date]:
    """Return the due date of the next instance, or None when the rule is exhausted."""
    if base is None or rule is None or rule.frequency is None:
        return None

    interval = max(1, rule.interval or 1)

    if rule.frequency == RecurrenceFrequency.WEEKLY:
        candidate = _next_weekly(base, interval, rule.days_of_week)
    elif rule.frequency == RecurrenceFrequency.MONTHLY:
        candidate = _next_monthly(base, interval, rule.nth_business_day_of_month)
    else:
        candidate = base + timedelta(days=interval)

    if rule.weekdays_only:
        candidate = _bump_to_weekday(candidate)

    if rule.end_date is not None and candidate > rule.end_date:
        return None

    return candidate


def _next_weekly(base: date, interval: int, days_of_week: Optional[Iterable[int]]) -> date:
    days = _valid_weekdays(days_of_week)
    if not days:
        return base + timedelta(weeks=interval)

    # Search up to `interval` weeks ahead, plus one week of slack.
    max_days_to_search = interval * 7 + 7
    for offset in range(1, max_days_to_search + 1):
        candidate = base + timedelta(days=offset)
        if candidate.isoweekday() in days:
            return candidate

    return base + timedelta(weeks=interval)


def _valid_weekdays(days_of_week: Optional[Iterable[int]]) -> List[int]:
    return sorted({day for day in (days_of_week or []) if day is not None and 1 <= day <= 7})


def _next_monthly(base: date, interval: int, nth_business_day: Optional[int]) -> date:
    year, month = _add_months(base.year, base.month, interval)

    if nth_business_day is not None and nth_business_day > 0:
        return _nth_business_day(year, month, nth_business_day)

    length = calendar.monthrange(year, month)[1]
    return date(year, month, min(base.day, length))


def _add_months(year: int, month: int, months: int):
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def _nth_business_day(year: int, month: int, nth: int) -> date:
    """Nth Mon-Fri day of the month; the last business day if the month has fewer."""
    length = calendar.monthrange(year, month)[1]
    count = 0
    last_business = None
    for day in range(1, length + 1):
        current = date(year, month, day)
        if current.isoweekday() in (SATURDAY, SUNDAY):
            continue
        last_business = current
        count += 1
        if count == nth:
            return current

    return last_business if last_business is not None else date(year, month, 1)


def _bump_to_weekday(value: date) -> date:
    weekday = value.isoweekday()
    if weekday == SATURDAY:
        return value + timedelta(days=2)
    if weekday == SUNDAY:
        return value + timedelta(days=1)
    return value
