"""
Time-Entry Aggregator (``payroll_engines.time_aggregation``).

Responsibility
--------------
Reduces one employee's clock entries into categorized hour totals for a
pay period.

Rules
-----
1. Open entries (no clock-out) contribute nothing.
2. Net hours = span - break.
3. ``PUBLIC_HOLIDAY`` entries go entirely to holiday hours.  When the
   calendar has data for the entry's year and the date is not a holiday,
   the calendar wins and the entry is treated as ordinary time.  For a
   year the calendar does not cover, the category is trusted and a
   warning is logged.
4. Ordinary time up to the standard day is regular; the excess is
   overtime, the first ``first_tier_overtime_hours`` in the first tier
   and the rest in the subsequent tier.
5. Each entry is split on its own.  Two entries on one day are not merged.
6. ``OVERTIME``-category entries follow rule 4 like ``REGULAR`` ones: a
   short entry marked overtime is still regular time.  Overtime comes from
   the daily split only.

Failure modes
-------------
* None.  Entries longer than 24 hours are accepted; see
  ``find_overlong_entries`` for callers that want to flag them.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from payroll_engines.holidays import HolidayCalendar
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.values import ZERO
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.models import PayPeriod, TimeCategory, TimeEntry

logger = get_logger("engines.time_aggregation")

STANDARD_DAILY_HOURS = Decimal("8")
FIRST_TIER_OVERTIME_HOURS = Decimal("3")
MAX_ENTRY_HOURS = Decimal("24")


@dataclass(frozen=True)
class HourTotals:
    """Categorized hours for one employee and period."""

    regular_hours: Decimal = ZERO
    overtime_first_tier_hours: Decimal = ZERO
    overtime_subsequent_hours: Decimal = ZERO
    public_holiday_hours: Decimal = ZERO

    @property
    def overtime_hours(self) -> Decimal:
        """Both overtime tiers merged, for reporting."""
        return self.overtime_first_tier_hours + self.overtime_subsequent_hours

    @property
    def total_hours(self) -> Decimal:
        return self.regular_hours + self.overtime_hours + self.public_holiday_hours


def _is_holiday_time(entry: TimeEntry, calendar: HolidayCalendar | None) -> bool:
    if entry.category != TimeCategory.PUBLIC_HOLIDAY:
        return False
    if calendar is None or not calendar.has_year(entry.work_date.year):
        logger.warning(
            "holiday_calendar_year_unknown",
            extra={
                "time_entry_id": entry.id,
                "work_date": entry.work_date,
            },
        )
        return True
    if calendar.is_public_holiday(entry.work_date):
        return True
    logger.info(
        "holiday_category_overridden_by_calendar",
        extra={"time_entry_id": entry.id, "work_date": entry.work_date},
    )
    return False


@traced_engine("time_aggregation", "1.0")
def aggregate_hours(
    entries: Iterable[TimeEntry],
    calendar: HolidayCalendar | None = None,
    standard_daily_hours: Decimal = STANDARD_DAILY_HOURS,
    first_tier_overtime_hours: Decimal = FIRST_TIER_OVERTIME_HOURS,
) -> HourTotals:
    regular = ZERO
    first_tier = ZERO
    subsequent = ZERO
    holiday = ZERO

    for entry in entries:
        if entry.is_open:
            continue
        hours = entry.net_hours

        if _is_holiday_time(entry, calendar):
            holiday += hours
            continue

        if hours <= standard_daily_hours:
            regular += hours
            continue

        regular += standard_daily_hours
        overtime = hours - standard_daily_hours
        tier_one = min(overtime, first_tier_overtime_hours)
        first_tier += tier_one
        subsequent += overtime - tier_one

    return HourTotals(
        regular_hours=regular,
        overtime_first_tier_hours=first_tier,
        overtime_subsequent_hours=subsequent,
        public_holiday_hours=holiday,
    )


def entries_for_period(
    entries: Iterable[TimeEntry],
    employee_id: str,
    period: PayPeriod,
) -> list[TimeEntry]:
    """The employee's entries whose clock-in date falls inside ``period``."""
    return [
        e for e in entries
        if e.employee_id == employee_id and period.contains(e.work_date)
    ]


def find_overlong_entries(
    entries: Iterable[TimeEntry],
    max_hours: Decimal = MAX_ENTRY_HOURS,
) -> list[TimeEntry]:
    """Closed entries whose span exceeds ``max_hours``."""
    return [e for e in entries if not e.is_open and e.span_hours > max_hours]


def hours_by_week(entries: Iterable[TimeEntry]) -> dict[tuple[int, int], Decimal]:
    """Net hours of closed entries keyed by the ISO (year, week) of clock-in."""
    weeks: dict[tuple[int, int], Decimal] = {}
    for entry in entries:
        if entry.is_open:
            continue
        iso = entry.work_date.isocalendar()
        key = (iso.year, iso.week)
        weeks[key] = weeks.get(key, ZERO) + entry.net_hours
    return dict(sorted(weeks.items()))
