"""
Payroll Export Serializers (``payroll_modules.payroll.exporters``).

Responsibility
--------------
Turns computed ``PayrollEntry`` values into the three regulatory artifacts
of a pay run:

* the bank payment batch file (header / one record per payment / footer),
* the monthly employer schedule (IR348) as rows and CSV,
* per-employee payslip data and its JSON-ready dict.

Architecture position
---------------------
**Modules layer** -- pure formatting.  Returns strings and value objects;
writing them to disk is ``payroll_batch.artifacts``' job.

Invariants enforced
-------------------
* Bank file field order is a compatibility contract with the bank's
  import format and must not change.
* Header and footer totals equal the sum of the payment records.
* Every currency field is rendered with exactly two decimal places.

Failure modes
-------------
* ``InvalidBankAccountError`` -- a pending entry's bank account does not
  split into bank/branch/account/suffix.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from payroll_engines.leave import LeaveBalances
from payroll_kernel.domain.values import ZERO, format_currency
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.config import BankFileSettings
from payroll_modules.payroll.models import (
    Allowance,
    BankAccount,
    OtherDeduction,
    PayPeriod,
    PayrollEntry,
    PayrollStatus,
)

logger = get_logger("modules.payroll.exporters")

_MONTH_ABBREVIATIONS = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)


def _field(value: str) -> str:
    """Free text inside a comma-delimited record."""
    return value.replace(",", " ").replace("\n", " ").replace("\r", " ")


# =============================================================================
# Bank payment file
# =============================================================================


def batch_description(batch_date: date, prefix: str = "KIWIHR PAY") -> str:
    """``KIWIHR PAY JUL24`` style batch description."""
    return f"{prefix} {_MONTH_ABBREVIATIONS[batch_date.month - 1]}{batch_date:%y}"


def generate_bank_payment_file(
    entries: Iterable[PayrollEntry],
    batch_date: date,
    settings: BankFileSettings | None = None,
) -> str:
    """
    Build the comma-delimited bank payment batch for PENDING entries.

    Layout::

        0,<bank>,<ddMMyy>,<sequence>,<description>,<total>,<count:06>
        1,<bank>,<branch>,<account>,<suffix>,<amount>,<reference>,<particulars>,<name>
        ...
        9,<bank>,<branch>,<total>,<count:06>

    Records are joined with ``\\n`` and there is no trailing newline.
    """
    settings = settings or BankFileSettings()
    entries = list(entries)
    pending = [e for e in entries if e.status == PayrollStatus.PENDING]

    total = sum((e.net_pay for e in pending), ZERO)
    count = f"{len(pending):06d}"

    records: list[list[str]] = [[
        "0",
        settings.bank_code,
        batch_date.strftime("%d%m%y"),
        settings.sequence,
        batch_description(batch_date, settings.description_prefix),
        format_currency(total),
        count,
    ]]

    for entry in pending:
        account = BankAccount.parse(entry.payment.bank_account)
        records.append([
            "1",
            account.bank,
            account.branch,
            account.account,
            account.suffix,
            format_currency(entry.net_pay),
            _field(entry.payment.reference),
            settings.particulars,
            _field(entry.employee_name[: settings.payee_name_length]),
        ])

    records.append([
        "9",
        settings.bank_code,
        settings.branch_code,
        format_currency(total),
        count,
    ])

    logger.info(
        "bank_payment_file_generated",
        extra={
            "payment_count": len(pending),
            "skipped_paid_count": len(entries) - len(pending),
            "total_amount": format_currency(total),
            "batch_date": batch_date,
        },
    )
    return "\n".join(",".join(record) for record in records)


# =============================================================================
# Monthly schedule (IR348)
# =============================================================================


@dataclass(frozen=True)
class MonthlyScheduleRow:
    """One employee's totals for the period."""
    tax_identifier: str
    employee_id: str
    employee_name: str
    gross_earnings: Decimal
    tax: Decimal
    loan_repayment: Decimal
    contribution_employee: Decimal
    contribution_employer: Decimal


MONTHLY_SCHEDULE_HEADER = (
    "IRD Number",
    "Employee ID",
    "Name",
    "Gross Earnings",
    "PAYE",
    "Student Loan",
    "KiwiSaver Employee",
    "KiwiSaver Employer",
)


def build_monthly_schedule(
    entries: Iterable[PayrollEntry],
    period: PayPeriod,
) -> list[MonthlyScheduleRow]:
    """Sum the period's entries per employee, in first-seen order."""
    totals: dict[str, dict[str, Any]] = {}
    for entry in entries:
        if entry.period != period:
            continue
        row = totals.setdefault(entry.employee_id, {
            "tax_identifier": entry.tax_identifier or "",
            "employee_name": entry.employee_name,
            "gross_earnings": ZERO,
            "tax": ZERO,
            "loan_repayment": ZERO,
            "contribution_employee": ZERO,
            "contribution_employer": ZERO,
        })
        row["gross_earnings"] += entry.gross_pay
        row["tax"] += entry.deductions.tax
        row["loan_repayment"] += entry.deductions.loan_repayment
        row["contribution_employee"] += entry.deductions.contribution.employee
        row["contribution_employer"] += entry.deductions.contribution.employer

    return [
        MonthlyScheduleRow(employee_id=employee_id, **values)
        for employee_id, values in totals.items()
    ]


def render_monthly_schedule_csv(rows: Sequence[MonthlyScheduleRow]) -> str:
    """CSV with a header row; currency columns to two decimal places."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(MONTHLY_SCHEDULE_HEADER)
    for row in rows:
        writer.writerow([
            row.tax_identifier,
            row.employee_id,
            row.employee_name,
            format_currency(row.gross_earnings),
            format_currency(row.tax),
            format_currency(row.loan_repayment),
            format_currency(row.contribution_employee),
            format_currency(row.contribution_employer),
        ])
    return buffer.getvalue()


# =============================================================================
# Payslips
# =============================================================================


@dataclass(frozen=True)
class PayslipEarnings:
    regular: Decimal
    overtime: Decimal
    public_holiday: Decimal
    allowances: tuple[Allowance, ...]
    total: Decimal


@dataclass(frozen=True)
class PayslipDeductions:
    tax: Decimal
    levy: Decimal
    contribution_employee: Decimal
    contribution_employer: Decimal
    loan_repayment: Decimal
    other: tuple[OtherDeduction, ...]
    total: Decimal


@dataclass(frozen=True)
class PayslipData:
    """Everything a rendered payslip shows.  Rendering is external."""
    entry_id: str
    employee_id: str
    employee_name: str
    tax_identifier: str | None
    tax_code: str | None
    period: str
    earnings: PayslipEarnings
    deductions: PayslipDeductions
    net_pay: Decimal
    leave_balances: LeaveBalances
    payment_reference: str
    payment_date: date
    bank_account: str | None


def build_payslip(entry: PayrollEntry, leave_balances: LeaveBalances) -> PayslipData:
    d = entry.deductions
    a = entry.additions
    return PayslipData(
        entry_id=entry.id,
        employee_id=entry.employee_id,
        employee_name=entry.employee_name,
        tax_identifier=entry.tax_identifier,
        tax_code=entry.tax_code,
        period=entry.period.identifier,
        earnings=PayslipEarnings(
            regular=entry.base_pay,
            overtime=a.overtime,
            public_holiday=a.public_holiday,
            allowances=a.allowances,
            total=entry.gross_pay,
        ),
        deductions=PayslipDeductions(
            tax=d.tax,
            levy=d.levy,
            contribution_employee=d.contribution.employee,
            contribution_employer=d.contribution.employer,
            loan_repayment=d.loan_repayment,
            other=d.other,
            total=d.total,
        ),
        net_pay=entry.net_pay,
        leave_balances=leave_balances,
        payment_reference=entry.payment.reference,
        payment_date=entry.payment.payment_date,
        bank_account=entry.payment.bank_account,
    )


def payslip_to_dict(payslip: PayslipData) -> dict[str, Any]:
    """JSON-ready dict: currency as 2dp strings, dates ISO formatted."""
    e = payslip.earnings
    d = payslip.deductions
    leave = payslip.leave_balances
    return {
        "entry_id": payslip.entry_id,
        "employee_id": payslip.employee_id,
        "employee_name": payslip.employee_name,
        "tax_identifier": payslip.tax_identifier,
        "tax_code": payslip.tax_code,
        "period": payslip.period,
        "earnings": {
            "regular": format_currency(e.regular),
            "overtime": format_currency(e.overtime),
            "public_holiday": format_currency(e.public_holiday),
            "allowances": [
                {"description": x.description, "amount": format_currency(x.amount)}
                for x in e.allowances
            ],
            "total": format_currency(e.total),
        },
        "deductions": {
            "tax": format_currency(d.tax),
            "levy": format_currency(d.levy),
            "contribution": {
                "employee": format_currency(d.contribution_employee),
                "employer": format_currency(d.contribution_employer),
            },
            "loan_repayment": format_currency(d.loan_repayment),
            "other": [
                {"description": x.description, "amount": format_currency(x.amount)}
                for x in d.other
            ],
            "total": format_currency(d.total),
        },
        "net_pay": format_currency(payslip.net_pay),
        "leave_balances": {
            "annual": str(leave.annual),
            "sick": str(leave.sick),
            "bereavement": str(leave.bereavement),
            "family_violence": str(leave.family_violence),
            "alternative": str(leave.alternative),
        },
        "payment": {
            "reference": payslip.payment_reference,
            "date": payslip.payment_date.isoformat(),
            "bank_account": payslip.bank_account,
        },
    }
