"""
Payroll Domain Models (``payroll_modules.payroll.models``).

Responsibility
--------------
Frozen dataclass value objects representing the nouns of payroll:
the employee projection the engine reads, tax codes, bank accounts,
time entries, pay periods and the computed payroll entry with its
itemized deductions and additions.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by
the entry builder, the engines, the exporters and the batch processor.
No dependency on the database or on engines.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``PayrollEntry.net_pay == gross_pay - deductions.total``; additions are
  already part of gross.
* A ``TimeEntry`` that is closed ends after it starts, and its break fits
  inside its span.

Failure modes
-------------
* ``ValueError`` on construction for broken invariants.
* ``InvalidTaxCodeError`` / ``InvalidBankAccountError`` /
  ``InvalidPayPeriodError`` from the ``parse``/``from_identifier``
  constructors.

Audit relevance
---------------
* ``Employee`` keeps tax code and bank account as the raw strings it was
  given so that batch validation can report exactly what was wrong.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum

from payroll_kernel.domain.values import ZERO
from payroll_kernel.exceptions import (
    InvalidBankAccountError,
    InvalidPayPeriodError,
    InvalidTaxCodeError,
)
from payroll_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.models")

_SECONDS_PER_HOUR = Decimal("3600")


class PayBasis(Enum):
    """How an employee's pay is computed."""
    SALARY = "salary"
    HOURLY = "hourly"


class WageCategory(Enum):
    """Minimum-wage category."""
    ADULT = "adult"
    STARTING_OUT = "starting_out"
    TRAINING = "training"


class PayrollStatus(Enum):
    """Payroll entry lifecycle."""
    PENDING = "pending"
    PAID = "paid"


class TimeCategory(Enum):
    """Category recorded on a time entry."""
    REGULAR = "regular"
    OVERTIME = "overtime"
    PUBLIC_HOLIDAY = "public_holiday"


class TaxCodeCategory(Enum):
    """Income tax code without its student-loan marker."""
    M = "M"      # main income
    S = "S"      # secondary income
    SH = "SH"    # secondary, higher rate
    ST = "ST"    # secondary, top rate


# =============================================================================
# Tax code and bank account
# =============================================================================


@dataclass(frozen=True)
class TaxCode:
    """A tax code such as ``M`` or ``M SL`` (SL marks a student loan)."""
    category: TaxCodeCategory
    student_loan: bool = False

    @classmethod
    def parse(cls, raw: str | None) -> TaxCode:
        if raw is None:
            raise InvalidTaxCodeError("")
        parts = raw.split()
        if not parts or len(parts) > 2:
            raise InvalidTaxCodeError(raw)
        try:
            category = TaxCodeCategory(parts[0])
        except ValueError:
            raise InvalidTaxCodeError(raw) from None
        if len(parts) == 2 and parts[1] != "SL":
            raise InvalidTaxCodeError(raw)
        return cls(category=category, student_loan=len(parts) == 2)

    def __str__(self) -> str:
        return f"{self.category.value} SL" if self.student_loan else self.category.value


_BANK_ACCOUNT_RE = re.compile(r"^(\d{2})-(\d{4})-(\d{7})-(\d{2,3})$")


@dataclass(frozen=True)
class BankAccount:
    """Structured bank account: ``bank-branch-account-suffix``."""
    bank: str
    branch: str
    account: str
    suffix: str

    @classmethod
    def parse(cls, raw: str | None) -> BankAccount:
        match = _BANK_ACCOUNT_RE.match((raw or "").strip())
        if match is None:
            raise InvalidBankAccountError(raw or "")
        return cls(*match.groups())

    def __str__(self) -> str:
        return f"{self.bank}-{self.branch}-{self.account}-{self.suffix}"


# =============================================================================
# Employee
# =============================================================================


@dataclass(frozen=True)
class Employee:
    """The payroll-relevant projection of an employee record."""
    id: str
    name: str
    pay_basis: PayBasis = PayBasis.SALARY
    annual_salary: Decimal | None = None
    hourly_rate: Decimal | None = None
    tax_code: str | None = None
    contribution_rate: Decimal | None = None  # percent
    has_student_loan: bool = False
    bank_account: str | None = None
    tax_identifier: str | None = None  # IRD number
    start_date: date | None = None
    wage_category: WageCategory = WageCategory.ADULT
    is_active: bool = True

    @property
    def pay_rate_missing(self) -> bool:
        if self.pay_basis == PayBasis.SALARY:
            return not self.annual_salary
        return not self.hourly_rate

    def owes_student_loan(self) -> bool:
        """Loan flag, or an ``SL`` tax code."""
        if self.has_student_loan:
            return True
        try:
            return TaxCode.parse(self.tax_code).student_loan
        except InvalidTaxCodeError:
            return False


# =============================================================================
# Time entries and periods
# =============================================================================


def _hours(delta: timedelta) -> Decimal:
    seconds = Decimal(delta.days * 86400 + delta.seconds)
    seconds += Decimal(delta.microseconds) / Decimal(1_000_000)
    return seconds / _SECONDS_PER_HOUR


@dataclass(frozen=True)
class TimeEntry:
    """One clock-in/clock-out record.  ``clock_out is None`` while clocked in."""
    id: str
    employee_id: str
    clock_in: datetime
    clock_out: datetime | None = None
    break_minutes: int = 0
    category: TimeCategory = TimeCategory.REGULAR

    def __post_init__(self):
        if self.break_minutes < 0:
            raise ValueError("break_minutes cannot be negative")
        if self.clock_out is not None:
            if self.clock_out <= self.clock_in:
                raise ValueError(
                    f"Time entry {self.id}: clock_out must be after clock_in"
                )
            span_minutes = (self.clock_out - self.clock_in) / timedelta(minutes=1)
            if self.break_minutes > span_minutes:
                raise ValueError(
                    f"Time entry {self.id}: break of {self.break_minutes} minutes "
                    f"exceeds the {span_minutes:g} minute span"
                )

    @property
    def is_open(self) -> bool:
        return self.clock_out is None

    @property
    def work_date(self) -> date:
        return self.clock_in.date()

    @property
    def span_hours(self) -> Decimal:
        if self.clock_out is None:
            return ZERO
        return _hours(self.clock_out - self.clock_in)

    @property
    def net_hours(self) -> Decimal:
        """Span less break; zero while the entry is open."""
        if self.clock_out is None:
            return ZERO
        return self.span_hours - Decimal(self.break_minutes) / Decimal(60)


_PERIOD_ID_RE = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass(frozen=True)
class PayPeriod:
    """An inclusive date range; canonically one calendar month."""
    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise InvalidPayPeriodError(
                f"{self.start}..{self.end}", "end date precedes start date"
            )

    @classmethod
    def for_month(cls, year: int, month: int) -> PayPeriod:
        if not 1 <= month <= 12:
            raise InvalidPayPeriodError(f"{year}-{month}", "month must be 1-12")
        last_day = calendar.monthrange(year, month)[1]
        return cls(start=date(year, month, 1), end=date(year, month, last_day))

    @classmethod
    def from_identifier(cls, identifier: str) -> PayPeriod:
        """Parse ``YYYY-MM``."""
        match = _PERIOD_ID_RE.match(identifier.strip())
        if match is None:
            raise InvalidPayPeriodError(identifier, "expected YYYY-MM")
        return cls.for_month(int(match.group(1)), int(match.group(2)))

    @property
    def is_calendar_month(self) -> bool:
        return (
            self.start.day == 1
            and self.start.year == self.end.year
            and self.start.month == self.end.month
            and self.end.day == calendar.monthrange(self.end.year, self.end.month)[1]
        )

    @property
    def identifier(self) -> str:
        if self.is_calendar_month:
            return f"{self.start:%Y-%m}"
        return f"{self.start.isoformat()}_{self.end.isoformat()}"

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return self.identifier


# =============================================================================
# Payroll entry
# =============================================================================


@dataclass(frozen=True)
class ContributionSplit:
    """Retirement-savings contribution; only ``employee`` is deducted from pay."""
    employee: Decimal = ZERO
    employer: Decimal = ZERO


@dataclass(frozen=True)
class OtherDeduction:
    description: str
    amount: Decimal


@dataclass(frozen=True)
class Deductions:
    """Itemized deductions withheld from gross pay."""
    tax: Decimal = ZERO
    levy: Decimal = ZERO
    contribution: ContributionSplit = field(default_factory=ContributionSplit)
    loan_repayment: Decimal = ZERO
    other: tuple[OtherDeduction, ...] = ()

    @property
    def other_total(self) -> Decimal:
        return sum((d.amount for d in self.other), ZERO)

    @property
    def total(self) -> Decimal:
        return (
            self.tax
            + self.levy
            + self.contribution.employee
            + self.loan_repayment
            + self.other_total
        )


@dataclass(frozen=True)
class Allowance:
    description: str
    amount: Decimal


@dataclass(frozen=True)
class Additions:
    """Earnings on top of base pay.  Already included in gross."""
    overtime: Decimal = ZERO
    public_holiday: Decimal = ZERO
    allowances: tuple[Allowance, ...] = ()

    @property
    def allowances_total(self) -> Decimal:
        return sum((a.amount for a in self.allowances), ZERO)

    @property
    def total(self) -> Decimal:
        return self.overtime + self.public_holiday + self.allowances_total


@dataclass(frozen=True)
class PaymentDetails:
    bank_account: str | None
    reference: str
    payment_date: date


def payment_reference(period: PayPeriod, employee_id: str) -> str:
    return f"PAY-{period.identifier}-{employee_id}"


@dataclass(frozen=True)
class PayrollEntry:
    """One employee's computed pay for one period."""
    id: str
    employee_id: str
    employee_name: str
    period: PayPeriod
    gross_pay: Decimal
    net_pay: Decimal
    deductions: Deductions
    additions: Additions
    payment: PaymentDetails
    tax_identifier: str | None = None
    tax_code: str | None = None
    status: PayrollStatus = PayrollStatus.PENDING

    def __post_init__(self):
        expected = self.gross_pay - self.deductions.total
        if self.net_pay != expected:
            logger.warning(
                "payroll_entry_net_mismatch",
                extra={
                    "entry_id": self.id,
                    "employee_id": self.employee_id,
                    "gross_pay": str(self.gross_pay),
                    "net_pay": str(self.net_pay),
                    "expected_net": str(expected),
                },
            )
            raise ValueError(
                f"Payroll entry {self.id}: net pay {self.net_pay} != "
                f"gross {self.gross_pay} - deductions {self.deductions.total}"
            )

    @property
    def base_pay(self) -> Decimal:
        """Gross pay less overtime, holiday pay and allowances."""
        return self.gross_pay - self.additions.total

    @property
    def is_paid(self) -> bool:
        return self.status == PayrollStatus.PAID

    def mark_paid(self, payment_date: date | None = None) -> PayrollEntry:
        """Return a PAID copy; ``payment_date`` overrides the scheduled date."""
        payment = self.payment
        if payment_date is not None:
            payment = replace(payment, payment_date=payment_date)
        return replace(self, status=PayrollStatus.PAID, payment=payment)
