"""Expansion of a recurrence request into concrete reservation occurrences.

The expander walks the calendar one step at a time instead of computing a
closed form so that month lengths and weekday filters are honoured exactly.
The anchor (step 0) is never emitted: it is persisted separately as the
original reservation.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum

# Safety ceiling for date-bounded series; also the upper bound on occurrence counts.
MAX_RECURRENCE_STEPS = 365
MAX_OCCURRENCE_COUNT = 365


class Frequency(str, Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class MonthOverflow(str, Enum):
    # The anchor's day-of-month does not exist in the target month (e.g. the 31st in April).
    skip = "skip"
    clamp = "clamp"


@dataclass(frozen=True)
class RecurrenceRule:
    frequency: Frequency
    days_of_week: frozenset[int] = frozenset()
    end_date: date | None = None
    count: int | None = None
    month_overflow: MonthOverflow = MonthOverflow.skip

    def __post_init__(self) -> None:
        if (self.end_date is None) == (self.count is None):
            raise ValueError("Recurrence requires exactly one of end_date or count")
        if self.count is not None and not 1 <= self.count <= MAX_OCCURRENCE_COUNT:
            raise ValueError(f"Occurrence count must be between 1 and {MAX_OCCURRENCE_COUNT}")
        invalid_days = [day for day in self.days_of_week if not 0 <= day <= 6]
        if invalid_days:
            raise ValueError("days_of_week values must be between 0 (Sunday) and 6 (Saturday)")

    @classmethod
    def build(
        cls,
        frequency: Frequency | str,
        *,
        days_of_week: Iterable[int] = (),
        end_date: date | None = None,
        count: int | None = None,
        month_overflow: MonthOverflow | str = MonthOverflow.skip,
    ) -> "RecurrenceRule":
        return cls(
            frequency=Frequency(frequency),
            days_of_week=frozenset(days_of_week),
            end_date=end_date,
            count=count,
            month_overflow=MonthOverflow(month_overflow),
        )


@dataclass(frozen=True)
class Occurrence:
    start_datetime: datetime
    end_datetime: datetime


def sunday_based_weekday(value: date) -> int:
    """Weekday index with 0=Sunday .. 6=Saturday."""
    return value.isoweekday() % 7


def add_months(anchor: date, months: int, overflow: MonthOverflow) -> date | None:
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    if anchor.day <= last_day:
        return date(year, month, anchor.day)
    if overflow == MonthOverflow.clamp:
        return date(year, month, last_day)
    return None


def iteration_ceiling(rule: RecurrenceRule) -> int:
    if rule.count is None:
        return MAX_RECURRENCE_STEPS
    if rule.frequency == Frequency.daily:
        return rule.count + 1
    if rule.frequency == Frequency.weekly:
        # A non-empty weekday set qualifies at least once in any 7 consecutive days.
        return 7 * rule.count + 1
    # No day-of-month is missing from two consecutive months.
    return 2 * rule.count + 1


def _cursor_at(anchor_date: date, step: int, rule: RecurrenceRule) -> tuple[date, bool]:
    if rule.frequency == Frequency.monthly:
        candidate = add_months(anchor_date, step, rule.month_overflow)
        if candidate is None:
            # Compare the first day of the month against end_date so a skipped month still terminates.
            return add_months(anchor_date.replace(day=1), step, rule.month_overflow), False
        return candidate, True

    cursor = anchor_date + timedelta(days=step)
    if rule.frequency == Frequency.weekly:
        return cursor, sunday_based_weekday(cursor) in rule.days_of_week
    return cursor, True


def _localize(day: date, moment: time, tz: tzinfo | None) -> datetime:
    value = datetime.combine(day, moment.replace(tzinfo=None), tzinfo=tz or timezone.utc)
    return value.astimezone(timezone.utc)


def expand_occurrences(
    anchor_date: date,
    start_time: time,
    end_time: time,
    rule: RecurrenceRule,
    tz: tzinfo | None = None,
) -> Iterator[Occurrence]:
    """Yield the occurrences following ``anchor_date`` in chronological order.

    Times of day are interpreted in ``tz`` (UTC when omitted) and the
    resulting datetimes are returned in UTC, so a series keeps its wall-clock
    time across daylight-saving changes. The generator is finite: it stops
    after ``rule.count`` occurrences, after ``rule.end_date``, or at the
    iteration ceiling, whichever comes first.
    """
    if rule.frequency == Frequency.weekly and not rule.days_of_week:
        return

    emitted = 0
    for step in range(iteration_ceiling(rule)):
        cursor, qualifies = _cursor_at(anchor_date, step, rule)
        if rule.end_date is not None and cursor > rule.end_date:
            break
        if step == 0 or not qualifies:
            continue

        yield Occurrence(
            start_datetime=_localize(cursor, start_time, tz),
            end_datetime=_localize(cursor, end_time, tz),
        )
        emitted += 1
        if rule.count is not None and emitted >= rule.count:
            break
