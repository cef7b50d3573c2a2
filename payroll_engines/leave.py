"""
Leave Entitlements (``payroll_engines.leave``).

Minimum statutory leave an employee is entitled to as of a date, shown on
payslips.  Service length is measured from ``start_date``:

* annual leave: 4 weeks once 52 weeks have been worked, pro-rata before
* sick, bereavement and family-violence leave: 10, 3 and 10 days once six
  months (180 days) have been worked, nothing before

Taken leave is not tracked here.  Balances are entitlements.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_kernel.domain.values import ZERO

WEEKS_PER_YEAR = 52
ANNUAL_LEAVE_WEEKS = Decimal("4")
WORKING_DAYS_PER_WEEK = Decimal("5")
SICK_LEAVE_DAYS = Decimal("10")
BEREAVEMENT_LEAVE_DAYS = Decimal("3")
FAMILY_VIOLENCE_LEAVE_DAYS = Decimal("10")
ELIGIBILITY_MONTHS = 6
_DAYS_PER_MONTH = 30


@dataclass(frozen=True)
class LeaveBalances:
    """Leave entitlements in working days."""

    annual: Decimal = ZERO
    sick: Decimal = ZERO
    bereavement: Decimal = ZERO
    family_violence: Decimal = ZERO
    alternative: Decimal = ZERO


def annual_leave_weeks(start_date: date, as_of: date) -> Decimal:
    """Annual leave entitlement in weeks."""
    weeks_employed = max((as_of - start_date).days // 7, 0)
    if weeks_employed >= WEEKS_PER_YEAR:
        return ANNUAL_LEAVE_WEEKS
    return Decimal(weeks_employed) / WEEKS_PER_YEAR * ANNUAL_LEAVE_WEEKS


def calculate_leave_balances(start_date: date | None, as_of: date) -> LeaveBalances:
    """Entitlements as of ``as_of``.  An unknown start date entitles nothing."""
    if start_date is None:
        return LeaveBalances()

    annual_days = (annual_leave_weeks(start_date, as_of) * WORKING_DAYS_PER_WEEK).quantize(
        Decimal("0.01")
    )
    eligible = (as_of - start_date).days >= ELIGIBILITY_MONTHS * _DAYS_PER_MONTH
    return LeaveBalances(
        annual=annual_days,
        sick=SICK_LEAVE_DAYS if eligible else ZERO,
        bereavement=BEREAVEMENT_LEAVE_DAYS if eligible else ZERO,
        family_violence=FAMILY_VIOLENCE_LEAVE_DAYS if eligible else ZERO,
    )
