"""
Tests for the tax reconciliation, deductions and contribution reports.

Covers:
- Period totals and the gross/deductions/net balance
- Per-employee rows, first-seen order, summing several entries
- Entries outside the period ignored
- Contribution rate taken from the employee record
- CSV rendering with a header row and two-decimal currency
"""

import csv
import io
import logging
from datetime import date
from decimal import Decimal

import pytest

from payroll_modules.payroll.models import (
    Additions,
    ContributionSplit,
    Deductions,
    Employee,
    OtherDeduction,
    PaymentDetails,
    PayPeriod,
    PayrollEntry,
    payment_reference,
)
from payroll_modules.payroll.reports import (
    CONTRIBUTION_HEADER,
    DEDUCTIONS_HEADER,
    TAX_RECONCILIATION_HEADER,
    build_contribution_report,
    build_deductions_report,
    build_tax_reconciliation,
    render_contribution_csv,
    render_deductions_csv,
    render_tax_reconciliation_csv,
)

JUNE = PayPeriod.for_month(2024, 6)
JULY = PayPeriod.for_month(2024, 7)


def _entry(
    entry_id: str,
    employee_id: str,
    net: str,
    tax: str = "0",
    levy: str = "0",
    contribution: tuple[str, str] = ("0", "0"),
    loan: str = "0",
    other: tuple[OtherDeduction, ...] = (),
    period: PayPeriod = JULY,
    name: str | None = None,
) -> PayrollEntry:
    deductions = Deductions(
        tax=Decimal(tax),
        levy=Decimal(levy),
        contribution=ContributionSplit(Decimal(contribution[0]), Decimal(contribution[1])),
        loan_repayment=Decimal(loan),
        other=other,
    )
    return PayrollEntry(
        id=entry_id,
        employee_id=employee_id,
        employee_name=name or f"Employee {employee_id}",
        tax_identifier="49-091-850",
        tax_code="M",
        period=period,
        gross_pay=Decimal(net) + deductions.total,
        net_pay=Decimal(net),
        deductions=deductions,
        additions=Additions(),
        payment=PaymentDetails(
            bank_account="12-3456-7890123-00",
            reference=payment_reference(period, employee_id),
            payment_date=date(2024, 7, 31),
        ),
    )


@pytest.fixture
def july_entries() -> list[PayrollEntry]:
    return [
        _entry(
            "e1", "E001", net="5000", tax="1500", levy="80",
            contribution=("150", "150"),
            other=(OtherDeduction("Union fees", Decimal("20")),),
        ),
        _entry(
            "e2", "E002", net="3000", tax="800", levy="40",
            contribution=("120", "120"), loan="200",
        ),
        _entry("e0", "E001", net="999", tax="300", period=JUNE),
    ]


def _rows(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text)))


# ===========================================================================
# Tax reconciliation
# ===========================================================================


class TestTaxReconciliation:

    def test_period_totals(self, july_entries):
        report = build_tax_reconciliation(july_entries, JULY)

        assert report.period == "2024-07"
        assert report.entry_count == 2
        assert report.gross_earnings == Decimal("10910")
        assert report.tax == Decimal("2300")
        assert report.levy == Decimal("120")
        assert report.contribution_employee == Decimal("270")
        assert report.contribution_employer == Decimal("270")
        assert report.loan_repayment == Decimal("200")
        assert report.other_deductions == Decimal("20")
        assert report.net_pay == Decimal("8000")

    def test_balanced(self, july_entries):
        report = build_tax_reconciliation(july_entries, JULY)
        assert report.deductions_total == Decimal("2910")
        assert report.is_balanced

    def test_employer_contribution_not_a_deduction(self):
        report = build_tax_reconciliation(
            [_entry("e1", "E001", net="100", contribution=("3", "3"))], JULY,
        )
        assert report.deductions_total == Decimal("3")
        assert report.gross_earnings == Decimal("103")

    def test_empty_period(self, july_entries):
        report = build_tax_reconciliation(july_entries, PayPeriod.for_month(2024, 8))
        assert report.entry_count == 0
        assert report.net_pay == Decimal("0")
        assert report.is_balanced

    def test_build_logged(self, july_entries, caplog):
        caplog.set_level(logging.INFO, logger="payroll_kernel")
        build_tax_reconciliation(july_entries, JULY)

        records = [r for r in caplog.records if r.getMessage() == "tax_reconciliation_built"]
        assert len(records) == 1
        assert records[0].entry_count == 2
        assert records[0].net_pay == "8000.00"

    def test_csv(self, july_entries):
        rows = _rows(render_tax_reconciliation_csv(build_tax_reconciliation(july_entries, JULY)))

        assert tuple(rows[0]) == TAX_RECONCILIATION_HEADER
        assert rows[1] == ["Gross Earnings", "10910.00", "Total taxable earnings"]
        amounts = {r[0]: r[1] for r in rows[1:]}
        assert amounts == {
            "Gross Earnings": "10910.00",
            "PAYE Deducted": "2300.00",
            "ACC Levies": "120.00",
            "KiwiSaver Employee": "270.00",
            "KiwiSaver Employer": "270.00",
            "Student Loan Deductions": "200.00",
            "Other Deductions": "20.00",
            "Net Payments": "8000.00",
        }


# ===========================================================================
# Deductions report
# ===========================================================================


class TestDeductionsReport:

    def test_rows_per_employee(self, july_entries):
        rows = build_deductions_report(july_entries, JULY)

        assert [r.employee_id for r in rows] == ["E001", "E002"]
        first, second = rows
        assert (first.contribution, first.loan_repayment, first.other) == (
            Decimal("150"), Decimal("0"), Decimal("20"),
        )
        assert first.total == Decimal("170")
        assert second.total == Decimal("320")

    def test_several_entries_summed(self):
        entries = [
            _entry("e1", "E001", net="100", loan="10"),
            _entry("e2", "E002", net="100"),
            _entry("e3", "E001", net="50", loan="5"),
        ]
        rows = build_deductions_report(entries, JULY)
        assert [r.employee_id for r in rows] == ["E001", "E002"]
        assert rows[0].loan_repayment == Decimal("15")

    def test_csv(self, july_entries):
        rows = _rows(render_deductions_csv(build_deductions_report(july_entries, JULY)))
        assert tuple(rows[0]) == DEDUCTIONS_HEADER
        assert rows[1] == ["E001", "Employee E001", "150.00", "0.00", "20.00", "170.00"]
        assert rows[2] == ["E002", "Employee E002", "120.00", "200.00", "0.00", "320.00"]

    def test_empty_csv_has_header_only(self):
        assert render_deductions_csv([]) == ",".join(DEDUCTIONS_HEADER) + "\n"


# ===========================================================================
# Contribution report
# ===========================================================================


class TestContributionReport:

    @pytest.fixture
    def employees(self) -> list[Employee]:
        return [
            Employee(id="E001", name="Employee E001", contribution_rate=Decimal("3")),
            Employee(id="E002", name="Employee E002", contribution_rate=Decimal("10.0")),
        ]

    def test_rows_carry_rate_and_split(self, july_entries, employees):
        rows = build_contribution_report(july_entries, JULY, employees)

        assert [r.employee_id for r in rows] == ["E001", "E002"]
        assert rows[0].rate == Decimal("3")
        assert (rows[0].employee, rows[0].employer) == (Decimal("150"), Decimal("150"))
        assert rows[1].total == Decimal("240")
        assert rows[0].tax_identifier == "49-091-850"

    def test_rate_unknown_without_employee(self, july_entries):
        rows = build_contribution_report(july_entries, JULY)
        assert all(r.rate is None for r in rows)
        assert _rows(render_contribution_csv(rows))[1][3] == ""

    def test_csv(self, july_entries, employees):
        rows = _rows(render_contribution_csv(
            build_contribution_report(july_entries, JULY, employees),
        ))
        assert tuple(rows[0]) == CONTRIBUTION_HEADER
        assert rows[1] == [
            "E001", "Employee E001", "49-091-850", "3%", "150.00", "150.00", "300.00",
        ]
        assert rows[2][3] == "10%"

    def test_other_periods_ignored(self, july_entries, employees):
        rows = build_contribution_report(july_entries, JUNE, employees)
        assert [r.employee_id for r in rows] == ["E001"]
        assert rows[0].total == Decimal("0")
