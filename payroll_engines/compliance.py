"""
Statutory Compliance Validators (``payroll_engines.compliance``).

Responsibility
--------------
Pure checks on employee master data and computed pay:

* tax identifier (IRD number) mod-11 checksum
* bank account format
* tax code membership
* retirement-savings contribution rate membership
* minimum hourly wage
* weekly hours cap, per ISO week or averaged over a period

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.

Failure modes
-------------
* Returns booleans or ``ComplianceViolation`` values, never raises for a
  business-rule breach.  The caller decides what an ERROR means.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from payroll_engines.statutory import ALLOWED_CONTRIBUTION_RATES
from payroll_kernel.domain.values import format_currency
from payroll_kernel.exceptions import InvalidBankAccountError
from payroll_modules.payroll.models import BankAccount

VALID_TAX_CODES: tuple[str, ...] = (
    "M", "M SL", "S", "S SL", "SH", "SH SL", "ST", "ST SL",
)
DEFAULT_WEEKLY_HOURS_CAP = Decimal("50")

_IRD_DIGITS_RE = re.compile(r"^\d{8,9}$")
_IRD_WEIGHTS = (3, 2, 7, 6, 5, 4, 3, 2)
_DAYS_PER_WEEK = Decimal("7")


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ComplianceViolation:
    """One failed check.  ERROR makes a pay record invalid; WARNING does not."""

    code: str
    severity: Severity
    message: str

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR


def is_valid_ird_number(raw: str | None) -> bool:
    """
    Mod-11 check on an 8 or 9 digit IRD number.

    Spaces and dashes are ignored; 8-digit numbers are left-padded with a
    zero.  The first eight digits are weighted 3,2,7,6,5,4,3,2 and the
    check digit is ``(11 - sum % 11) % 11``.
    """
    if not raw:
        return False
    digits = raw.replace(" ", "").replace("-", "")
    if not _IRD_DIGITS_RE.match(digits):
        return False
    digits = digits.zfill(9)
    total = sum(int(d) * w for d, w in zip(digits[:8], _IRD_WEIGHTS))
    check = (11 - total % 11) % 11
    return check == int(digits[8])


def is_valid_bank_account(raw: str | None) -> bool:
    try:
        BankAccount.parse(raw)
    except InvalidBankAccountError:
        return False
    return True


def is_valid_tax_code(
    raw: str | None,
    allowed: Collection[str] = VALID_TAX_CODES,
) -> bool:
    return raw is not None and raw in allowed


def is_valid_contribution_rate(
    rate: Decimal | None,
    allowed: Collection[Decimal] = ALLOWED_CONTRIBUTION_RATES,
) -> bool:
    return rate is not None and rate in allowed


def check_minimum_wage(
    hourly_rate: Decimal,
    minimum: Decimal,
    category: str = "adult",
) -> ComplianceViolation | None:
    """ERROR when ``hourly_rate`` is below ``minimum``.  Equal passes."""
    if hourly_rate >= minimum:
        return None
    return ComplianceViolation(
        code="BELOW_MINIMUM_WAGE",
        severity=Severity.ERROR,
        message=(
            f"Hourly rate {format_currency(hourly_rate)} is below the "
            f"{category} minimum wage of {format_currency(minimum)}"
        ),
    )


def check_contribution_rate(
    rate: Decimal | None,
    allowed: Collection[Decimal] = ALLOWED_CONTRIBUTION_RATES,
) -> ComplianceViolation | None:
    if is_valid_contribution_rate(rate, allowed):
        return None
    allowed_text = ", ".join(f"{r:g}" for r in sorted(allowed))
    return ComplianceViolation(
        code="INVALID_CONTRIBUTION_RATE",
        severity=Severity.ERROR,
        message=f"Contribution rate {rate} is not one of {allowed_text}",
    )


def weekly_hours(total_hours: Decimal, period_days: int) -> Decimal:
    """Average hours per week over a period of ``period_days`` days."""
    return total_hours * _DAYS_PER_WEEK / Decimal(period_days)


def check_weekly_hours(
    total_hours: Decimal,
    period_days: int,
    cap: Decimal = DEFAULT_WEEKLY_HOURS_CAP,
) -> ComplianceViolation | None:
    """WARNING when average weekly hours exceed ``cap``.  Never blocks pay."""
    average = weekly_hours(total_hours, period_days)
    if average <= cap:
        return None
    return ComplianceViolation(
        code="WEEKLY_HOURS_EXCEEDED",
        severity=Severity.WARNING,
        message=(
            f"Average of {average.quantize(Decimal('0.01'))} hours per week "
            f"exceeds the {cap:g} hour cap"
        ),
    )


def check_hours_per_week(
    week_hours: Mapping[tuple[int, int], Decimal],
    cap: Decimal = DEFAULT_WEEKLY_HOURS_CAP,
) -> list[ComplianceViolation]:
    """One WARNING per ISO week, keyed ``(year, week)``, whose hours exceed ``cap``."""
    return [
        ComplianceViolation(
            code="WEEKLY_HOURS_EXCEEDED",
            severity=Severity.WARNING,
            message=(
                f"Week {year}-W{week:02d} has {hours.quantize(Decimal('0.01'))} "
                f"hours, more than the {cap:g} hour cap"
            ),
        )
        for (year, week), hours in sorted(week_hours.items())
        if hours > cap
    ]
