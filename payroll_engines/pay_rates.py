"""
Pay-Rate Resolver (``payroll_engines.pay_rates``).

Maps an hour category to a pay multiplier and resolves the effective
hourly rate.  Two multiplier tables exist and disagree on the public
holiday rate:

* ``OVERTIME_MULTIPLIERS`` -- the overtime-rate path: holiday at 2.5x.
* ``GENERIC_MULTIPLIERS`` -- the generic rate table: holiday "double
  time" at 2.0x.

Both are kept; callers choose one explicitly through ``RateTableKind``.
Which one is statutorily correct has not been confirmed, so callers that
pay holiday hours log ``public_holiday_multiplier_unconfirmed``.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum


class HourCategory(str, Enum):
    """Rate category for a block of worked hours."""

    STANDARD = "standard"
    OVERTIME_FIRST_TIER = "overtime_first_tier"
    OVERTIME_SUBSEQUENT = "overtime_subsequent"
    PUBLIC_HOLIDAY = "public_holiday"


class RateTableKind(str, Enum):
    """Which multiplier table to resolve against."""

    OVERTIME = "overtime"
    GENERIC = "generic"


OVERTIME_MULTIPLIERS: dict[HourCategory, Decimal] = {
    HourCategory.STANDARD: Decimal("1.0"),
    HourCategory.OVERTIME_FIRST_TIER: Decimal("1.5"),
    HourCategory.OVERTIME_SUBSEQUENT: Decimal("2.0"),
    HourCategory.PUBLIC_HOLIDAY: Decimal("2.5"),
}

GENERIC_MULTIPLIERS: dict[HourCategory, Decimal] = {
    HourCategory.STANDARD: Decimal("1.0"),
    HourCategory.OVERTIME_FIRST_TIER: Decimal("1.5"),
    HourCategory.OVERTIME_SUBSEQUENT: Decimal("2.0"),
    HourCategory.PUBLIC_HOLIDAY: Decimal("2.0"),
}

_TABLES: dict[RateTableKind, dict[HourCategory, Decimal]] = {
    RateTableKind.OVERTIME: OVERTIME_MULTIPLIERS,
    RateTableKind.GENERIC: GENERIC_MULTIPLIERS,
}


def multiplier_for(
    category: HourCategory,
    table: RateTableKind = RateTableKind.OVERTIME,
) -> Decimal:
    return _TABLES[RateTableKind(table)][HourCategory(category)]


def resolve_pay_rate(
    base_rate: Decimal,
    category: HourCategory,
    table: RateTableKind = RateTableKind.OVERTIME,
) -> Decimal:
    """Effective hourly rate: ``base_rate`` times the category multiplier."""
    return base_rate * multiplier_for(category, table)
