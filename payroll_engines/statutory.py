"""
Statutory Deduction Calculators (``payroll_engines.statutory``).

Responsibility
--------------
Pure functions mapping income to statutory deduction amounts:

* ``compute_bracketed_tax`` -- progressive marginal income tax (PAYE).
* ``compute_levy`` -- flat-rate accident-compensation earner levy (ACC).
* ``compute_contribution`` -- retirement-savings employee/employer split
  (KiwiSaver).
* ``compute_loan_repayment`` -- income-contingent student-loan repayment.
* ``annualize`` / ``periodize`` -- the annual <-> pay-period bridge.
* ``tax_year_for`` -- the 1 April to 31 March tax year of a date.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
Rates default to the module constants below; callers holding a loaded
``StatutoryRates`` pass its values explicitly.

Invariants enforced
-------------------
* Decimal-only arithmetic, no intermediate rounding.  Callers round the
  final per-period figure once with ``quantize_currency``.
* Bracketed tax is never negative: the band loop stops as soon as the
  remaining income is not positive.
* The periodic tax is the annual tax divided by periods-per-year.  This
  is not true cumulative withholding and is reproduced as-is.

Failure modes
-------------
* None.  Negative income yields zero tax and zero loan repayment; levy and
  contributions stay linear in their input.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.values import UNBOUNDED, ZERO, TaxBracket

NZ_TAX_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(upper=Decimal("14000"), rate=Decimal("0.105")),
    TaxBracket(upper=Decimal("48000"), rate=Decimal("0.175")),
    TaxBracket(upper=Decimal("70000"), rate=Decimal("0.30")),
    TaxBracket(upper=Decimal("180000"), rate=Decimal("0.33")),
    TaxBracket(upper=UNBOUNDED, rate=Decimal("0.39")),
)
ACC_LEVY_RATE = Decimal("0.0139")
STUDENT_LOAN_THRESHOLD = Decimal("22828")
STUDENT_LOAN_RATE = Decimal("0.12")
DEFAULT_EMPLOYER_CONTRIBUTION_RATE = Decimal("3")
ALLOWED_CONTRIBUTION_RATES: frozenset[Decimal] = frozenset(
    Decimal(r) for r in ("3", "4", "6", "8", "10")
)
PERIODS_PER_YEAR = 12

STANDARD_WEEKLY_HOURS = Decimal("40")
WEEKS_PER_YEAR = Decimal("52")

_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ContributionAmounts:
    """Employee and employer shares of a retirement-savings contribution."""

    employee: Decimal
    employer: Decimal

    @property
    def total(self) -> Decimal:
        return self.employee + self.employer


@traced_engine("statutory.bracketed_tax", "1.0", fingerprint_fields=("annual_income",))
def compute_bracketed_tax(
    annual_income: Decimal,
    brackets: Sequence[TaxBracket] = NZ_TAX_BRACKETS,
) -> Decimal:
    """
    Progressive marginal tax on ``annual_income``.

    Bands are applied in ascending order; each taxes
    ``min(remaining, band width)`` at its rate.  Income exactly on a
    threshold is taxed entirely in the lower band.

    Example:
        >>> compute_bracketed_tax(Decimal("20000"))
        Decimal('2520.000')
    """
    tax = ZERO
    remaining = annual_income
    previous_upper = ZERO

    for bracket in brackets:
        if remaining <= 0:
            break
        width = bracket.upper - previous_upper
        taxed = min(remaining, width)
        tax += taxed * bracket.rate
        remaining -= taxed
        previous_upper = bracket.upper

    return tax


def compute_levy(earnings: Decimal, rate: Decimal = ACC_LEVY_RATE) -> Decimal:
    """Flat-rate earner levy."""
    return earnings * rate


def compute_contribution(
    earnings: Decimal,
    employee_rate_pct: Decimal,
    employer_rate_pct: Decimal = DEFAULT_EMPLOYER_CONTRIBUTION_RATE,
) -> ContributionAmounts:
    """Split contribution; rates are percentages (``3`` means 3%)."""
    return ContributionAmounts(
        employee=earnings * employee_rate_pct / _HUNDRED,
        employer=earnings * employer_rate_pct / _HUNDRED,
    )


@traced_engine("statutory.loan_repayment", "1.0", fingerprint_fields=("annual_income",))
def compute_loan_repayment(
    annual_income: Decimal,
    threshold: Decimal = STUDENT_LOAN_THRESHOLD,
    rate: Decimal = STUDENT_LOAN_RATE,
) -> Decimal:
    """Annual repayment: ``(income - threshold) * rate`` above the threshold, else 0."""
    if annual_income <= threshold:
        return ZERO
    return (annual_income - threshold) * rate


def annualize(amount: Decimal, periods_per_year: int = PERIODS_PER_YEAR) -> Decimal:
    return amount * periods_per_year


def periodize(amount: Decimal, periods_per_year: int = PERIODS_PER_YEAR) -> Decimal:
    return amount / periods_per_year


def annual_salary_from_hourly(hourly_rate: Decimal) -> Decimal:
    """Annual equivalent of an hourly rate at 40 hours over 52 weeks."""
    return hourly_rate * STANDARD_WEEKLY_HOURS * WEEKS_PER_YEAR


def hourly_rate_from_salary(annual_salary: Decimal) -> Decimal:
    """Hourly equivalent of an annual salary at 40 hours over 52 weeks."""
    return annual_salary / WEEKS_PER_YEAR / STANDARD_WEEKLY_HOURS


@dataclass(frozen=True)
class TaxYear:
    """A tax year running 1 April to 31 March."""

    start: date
    end: date

    @property
    def label(self) -> str:
        return f"{self.start.year}-{self.end.year % 100:02d}"


def tax_year_for(day: date) -> TaxYear:
    """The tax year containing ``day``."""
    start_year = day.year if day.month >= 4 else day.year - 1
    return TaxYear(start=date(start_year, 4, 1), end=date(start_year + 1, 3, 31))
