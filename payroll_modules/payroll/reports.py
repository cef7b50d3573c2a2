"""
Payroll Reports (``payroll_modules.payroll.reports``).

Responsibility
--------------
Period reports for the employer, built from computed ``PayrollEntry``
values:

* tax reconciliation: period totals of gross, tax, levy, contributions,
  loan repayments and net pay,
* deductions: per-employee employee-side deductions,
* contributions: per-employee retirement-savings contributions.

Architecture position
---------------------
**Modules layer** -- pure builders and CSV renderers beside
``exporters``.  Nothing here reads the clock or touches the filesystem.

Invariants enforced
-------------------
* Only entries for the requested period are counted.
* Report totals equal the sum of the rows they summarize.
* Every currency field is rendered with exactly two decimal places.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from payroll_kernel.domain.values import ZERO, format_currency
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.models import Employee, PayPeriod, PayrollEntry

logger = get_logger("modules.payroll.reports")


def _render(header: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def _in_period(entries: Iterable[PayrollEntry], period: PayPeriod) -> list[PayrollEntry]:
    return [e for e in entries if e.period == period]


# =============================================================================
# Tax reconciliation
# =============================================================================


@dataclass(frozen=True)
class TaxReconciliation:
    """Period totals across every entry."""
    period: str
    entry_count: int
    gross_earnings: Decimal = ZERO
    tax: Decimal = ZERO
    levy: Decimal = ZERO
    contribution_employee: Decimal = ZERO
    contribution_employer: Decimal = ZERO
    loan_repayment: Decimal = ZERO
    other_deductions: Decimal = ZERO
    net_pay: Decimal = ZERO

    @property
    def deductions_total(self) -> Decimal:
        return (
            self.tax
            + self.levy
            + self.contribution_employee
            + self.loan_repayment
            + self.other_deductions
        )

    @property
    def is_balanced(self) -> bool:
        """Gross less deductions equals net pay."""
        return self.gross_earnings - self.deductions_total == self.net_pay


TAX_RECONCILIATION_HEADER = ("Category", "Amount", "Notes")


def build_tax_reconciliation(
    entries: Iterable[PayrollEntry],
    period: PayPeriod,
) -> TaxReconciliation:
    selected = _in_period(entries, period)
    totals: dict[str, Any] = {
        "gross_earnings": ZERO,
        "tax": ZERO,
        "levy": ZERO,
        "contribution_employee": ZERO,
        "contribution_employer": ZERO,
        "loan_repayment": ZERO,
        "other_deductions": ZERO,
        "net_pay": ZERO,
    }
    for entry in selected:
        d = entry.deductions
        totals["gross_earnings"] += entry.gross_pay
        totals["tax"] += d.tax
        totals["levy"] += d.levy
        totals["contribution_employee"] += d.contribution.employee
        totals["contribution_employer"] += d.contribution.employer
        totals["loan_repayment"] += d.loan_repayment
        totals["other_deductions"] += d.other_total
        totals["net_pay"] += entry.net_pay

    report = TaxReconciliation(period=period.identifier, entry_count=len(selected), **totals)
    logger.info(
        "tax_reconciliation_built",
        extra={
            "period": report.period,
            "entry_count": report.entry_count,
            "gross_earnings": format_currency(report.gross_earnings),
            "net_pay": format_currency(report.net_pay),
        },
    )
    return report


def render_tax_reconciliation_csv(report: TaxReconciliation) -> str:
    """One row per category, in filing order."""
    rows = [
        ("Gross Earnings", report.gross_earnings, "Total taxable earnings"),
        ("PAYE Deducted", report.tax, "Total PAYE tax withheld"),
        ("ACC Levies", report.levy, "Total ACC earner levies"),
        ("KiwiSaver Employee", report.contribution_employee, "Total employee contributions"),
        ("KiwiSaver Employer", report.contribution_employer, "Total employer contributions"),
        ("Student Loan Deductions", report.loan_repayment, "Total student loan repayments"),
        ("Other Deductions", report.other_deductions, "Total other deductions"),
        ("Net Payments", report.net_pay, "Total net payments to employees"),
    ]
    return _render(
        TAX_RECONCILIATION_HEADER,
        ((label, format_currency(amount), note) for label, amount, note in rows),
    )


# =============================================================================
# Deductions
# =============================================================================


@dataclass(frozen=True)
class DeductionsRow:
    employee_id: str
    employee_name: str
    contribution: Decimal
    loan_repayment: Decimal
    other: Decimal

    @property
    def total(self) -> Decimal:
        return self.contribution + self.loan_repayment + self.other


DEDUCTIONS_HEADER = (
    "Employee ID",
    "Name",
    "KiwiSaver",
    "Student Loan",
    "Other Deductions",
    "Total",
)


def build_deductions_report(
    entries: Iterable[PayrollEntry],
    period: PayPeriod,
) -> list[DeductionsRow]:
    """
    Employee-side deductions other than tax and levy, per employee.

    Rows are in first-seen order.  An employee with several entries in the
    period gets one summed row.
    """
    totals: dict[str, dict[str, Any]] = {}
    for entry in _in_period(entries, period):
        d = entry.deductions
        row = totals.setdefault(entry.employee_id, {
            "employee_name": entry.employee_name,
            "contribution": ZERO,
            "loan_repayment": ZERO,
            "other": ZERO,
        })
        row["contribution"] += d.contribution.employee
        row["loan_repayment"] += d.loan_repayment
        row["other"] += d.other_total

    return [
        DeductionsRow(employee_id=employee_id, **values)
        for employee_id, values in totals.items()
    ]


def render_deductions_csv(rows: Sequence[DeductionsRow]) -> str:
    return _render(
        DEDUCTIONS_HEADER,
        (
            (
                row.employee_id,
                row.employee_name,
                format_currency(row.contribution),
                format_currency(row.loan_repayment),
                format_currency(row.other),
                format_currency(row.total),
            )
            for row in rows
        ),
    )


# =============================================================================
# Retirement-savings contributions
# =============================================================================


@dataclass(frozen=True)
class ContributionRow:
    employee_id: str
    employee_name: str
    tax_identifier: str
    rate: Decimal | None  # percent; None when the employee is not supplied
    employee: Decimal
    employer: Decimal

    @property
    def total(self) -> Decimal:
        return self.employee + self.employer


CONTRIBUTION_HEADER = (
    "Employee ID",
    "Name",
    "IRD Number",
    "Rate",
    "Employee Contribution",
    "Employer Contribution",
    "Total",
)


def build_contribution_report(
    entries: Iterable[PayrollEntry],
    period: PayPeriod,
    employees: Iterable[Employee] = (),
) -> list[ContributionRow]:
    """
    Employee and employer contributions per employee for the period.

    ``employees`` supplies the contribution rate.  Entries record amounts
    only.
    """
    rates = {e.id: e.contribution_rate for e in employees}
    totals: dict[str, dict[str, Any]] = {}
    for entry in _in_period(entries, period):
        split = entry.deductions.contribution
        row = totals.setdefault(entry.employee_id, {
            "employee_name": entry.employee_name,
            "tax_identifier": entry.tax_identifier or "",
            "rate": rates.get(entry.employee_id),
            "employee": ZERO,
            "employer": ZERO,
        })
        row["employee"] += split.employee
        row["employer"] += split.employer

    return [
        ContributionRow(employee_id=employee_id, **values)
        for employee_id, values in totals.items()
    ]


def _format_rate(rate: Decimal | None) -> str:
    if rate is None:
        return ""
    return f"{rate.normalize():f}%"


def render_contribution_csv(rows: Sequence[ContributionRow]) -> str:
    return _render(
        CONTRIBUTION_HEADER,
        (
            (
                row.employee_id,
                row.employee_name,
                row.tax_identifier,
                _format_rate(row.rate),
                format_currency(row.employee),
                format_currency(row.employer),
                format_currency(row.total),
            )
            for row in rows
        ),
    )
