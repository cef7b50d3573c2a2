"""
Tests for the bank payment file, monthly schedule and payslip exporters.

Covers:
- Bank file header/record/footer layout, totals and count padding
- Name truncation, free-text sanitising, PAID entries skipped
- Monthly schedule aggregation per employee and CSV rendering
- Payslip data and its JSON-ready dict
"""

import csv
import io
from datetime import date
from decimal import Decimal

import pytest

from payroll_engines.leave import LeaveBalances
from payroll_kernel.exceptions import InvalidBankAccountError
from payroll_modules.payroll.config import BankFileSettings
from payroll_modules.payroll.exporters import (
    MONTHLY_SCHEDULE_HEADER,
    batch_description,
    build_monthly_schedule,
    build_payslip,
    generate_bank_payment_file,
    payslip_to_dict,
    render_monthly_schedule_csv,
)
from payroll_modules.payroll.models import (
    Additions,
    Allowance,
    ContributionSplit,
    Deductions,
    OtherDeduction,
    PaymentDetails,
    PayPeriod,
    PayrollEntry,
    payment_reference,
)

JULY = PayPeriod.for_month(2024, 7)
BATCH_DATE = date(2024, 7, 31)


def _entry(
    entry_id: str = "e1",
    employee_id: str = "E001",
    name: str = "Alexandra Smith",
    net: str = "1234.56",
    tax: str = "0",
    loan: str = "0",
    contribution: tuple[str, str] = ("0", "0"),
    bank_account: str = "12-3456-7890123-00",
    period: PayPeriod = JULY,
    tax_identifier: str | None = "49-091-850",
) -> PayrollEntry:
    deductions = Deductions(
        tax=Decimal(tax),
        loan_repayment=Decimal(loan),
        contribution=ContributionSplit(Decimal(contribution[0]), Decimal(contribution[1])),
    )
    return PayrollEntry(
        id=entry_id,
        employee_id=employee_id,
        employee_name=name,
        tax_identifier=tax_identifier,
        tax_code="M",
        period=period,
        gross_pay=Decimal(net) + deductions.total,
        net_pay=Decimal(net),
        deductions=deductions,
        additions=Additions(),
        payment=PaymentDetails(
            bank_account=bank_account,
            reference=payment_reference(period, employee_id),
            payment_date=BATCH_DATE,
        ),
    )


# ===========================================================================
# Bank payment file
# ===========================================================================


class TestBankPaymentFile:

    def test_single_payment_layout(self):
        content = generate_bank_payment_file([_entry()], BATCH_DATE)
        assert content.split("\n") == [
            "0,12,310724,01,KIWIHR PAY JUL24,1234.56,000001",
            "1,12,3456,7890123,00,1234.56,PAY-2024-07-E001,WAGES,Alexandra Sm",
            "9,12,3456,1234.56,000001",
        ]

    def test_no_trailing_newline(self):
        assert not generate_bank_payment_file([_entry()], BATCH_DATE).endswith("\n")

    def test_footer_total_equals_sum_of_records(self):
        entries = [
            _entry("e1", "E001", net="1000.10"),
            _entry("e2", "E002", net="2000.20", bank_account="01-0902-0068389-001"),
            _entry("e3", "E003", net="0.05"),
        ]
        lines = generate_bank_payment_file(entries, BATCH_DATE).split("\n")
        records = [line.split(",") for line in lines]
        payments = [r for r in records if r[0] == "1"]

        assert len(payments) == 3
        total = sum(Decimal(r[5]) for r in payments)
        assert records[0][5] == f"{total:.2f}" == "3000.35"
        assert records[-1][3] == "3000.35"
        assert records[-1][4] == "000003"
        assert payments[1][1:5] == ["01", "0902", "0068389", "001"]

    def test_paid_entries_skipped(self):
        entries = [_entry("e1", "E001"), _entry("e2", "E002", net="50.00").mark_paid()]
        lines = generate_bank_payment_file(entries, BATCH_DATE).split("\n")
        assert len(lines) == 3
        assert lines[-1] == "9,12,3456,1234.56,000001"

    def test_empty_batch(self):
        lines = generate_bank_payment_file([], BATCH_DATE).split("\n")
        assert lines == [
            "0,12,310724,01,KIWIHR PAY JUL24,0.00,000000",
            "9,12,3456,0.00,000000",
        ]

    def test_commas_in_names_replaced(self):
        content = generate_bank_payment_file([_entry(name="Smith, Jo")], BATCH_DATE)
        record = content.split("\n")[1].split(",")
        assert len(record) == 9
        assert record[-1] == "Smith  Jo"

    def test_custom_settings(self):
        settings = BankFileSettings(
            bank_code="01", branch_code="0902", sequence="07",
            description_prefix="ACME PAY", particulars="SALARY", payee_name_length=5,
        )
        lines = generate_bank_payment_file([_entry()], BATCH_DATE, settings).split("\n")
        assert lines[0].startswith("0,01,310724,07,ACME PAY JUL24,")
        assert lines[1].endswith(",SALARY,Alexa")
        assert lines[2].startswith("9,01,0902,")

    def test_invalid_bank_account_raises(self):
        with pytest.raises(InvalidBankAccountError):
            generate_bank_payment_file([_entry(bank_account="12-3456")], BATCH_DATE)

    @pytest.mark.parametrize(
        "day, expected",
        [(date(2024, 1, 5), "KIWIHR PAY JAN24"), (date(2025, 12, 1), "KIWIHR PAY DEC25")],
    )
    def test_batch_description(self, day, expected):
        assert batch_description(day) == expected


class TestBankFileSettings:

    def test_non_numeric_bank_code_rejected(self):
        with pytest.raises(ValueError):
            BankFileSettings(bank_code="AB")

    def test_comma_in_particulars_rejected(self):
        with pytest.raises(ValueError):
            BankFileSettings(particulars="WAGES,JULY")


# ===========================================================================
# Monthly schedule
# ===========================================================================


class TestMonthlySchedule:

    def test_one_row_per_employee(self):
        entries = [
            _entry("e1", "E001", net="1000.00", tax="200.00", loan="50.00",
                   contribution=("30.00", "30.00")),
            _entry("e2", "E002", name="Bob Brown", net="500.00", tax="100.00"),
            _entry("e3", "E001", net="100.00", tax="20.00", contribution=("3.00", "3.00")),
        ]
        rows = build_monthly_schedule(entries, JULY)

        assert [r.employee_id for r in rows] == ["E001", "E002"]
        first = rows[0]
        assert first.gross_earnings == Decimal("1403.00")
        assert first.tax == Decimal("220.00")
        assert first.loan_repayment == Decimal("50.00")
        assert first.contribution_employee == Decimal("33.00")
        assert first.contribution_employer == Decimal("33.00")
        assert first.tax_identifier == "49-091-850"

    def test_other_periods_excluded(self):
        august = PayPeriod.for_month(2024, 8)
        rows = build_monthly_schedule([_entry(period=august)], JULY)
        assert rows == []

    def test_missing_tax_identifier_is_blank(self):
        rows = build_monthly_schedule([_entry(tax_identifier=None)], JULY)
        assert rows[0].tax_identifier == ""

    def test_csv_rendering(self):
        rows = build_monthly_schedule(
            [_entry(tax="200.5", contribution=("30", "30"))], JULY,
        )
        parsed = list(csv.reader(io.StringIO(render_monthly_schedule_csv(rows))))

        assert tuple(parsed[0]) == MONTHLY_SCHEDULE_HEADER
        assert parsed[1] == [
            "49-091-850", "E001", "Alexandra Smith",
            "1465.06", "200.50", "0.00", "30.00", "30.00",
        ]

    def test_csv_header_only_when_empty(self):
        assert render_monthly_schedule_csv([]) == ",".join(MONTHLY_SCHEDULE_HEADER) + "\n"


# ===========================================================================
# Payslips
# ===========================================================================


class TestPayslip:

    def _rich_entry(self) -> PayrollEntry:
        deductions = Deductions(
            tax=Decimal("150.00"),
            levy=Decimal("15.29"),
            contribution=ContributionSplit(Decimal("33.00"), Decimal("33.00")),
            loan_repayment=Decimal("12.00"),
            other=(OtherDeduction("Union fees", Decimal("5.00")),),
        )
        gross = Decimal("1100.00")
        return PayrollEntry(
            id="e1",
            employee_id="H001",
            employee_name="Tane Walker",
            period=JULY,
            gross_pay=gross,
            net_pay=gross - deductions.total,
            deductions=deductions,
            additions=Additions(
                overtime=Decimal("45.00"),
                public_holiday=Decimal("30.00"),
                allowances=(Allowance("Tools", Decimal("25.00")),),
            ),
            payment=PaymentDetails(
                bank_account="12-3456-7890123-00",
                reference="PAY-2024-07-H001",
                payment_date=BATCH_DATE,
            ),
            tax_identifier="123456785",
            tax_code="M SL",
        )

    def test_breakdown(self):
        leave = LeaveBalances(annual=Decimal("20.00"), sick=Decimal("10"))
        payslip = build_payslip(self._rich_entry(), leave)

        assert payslip.earnings.regular == Decimal("1000.00")
        assert payslip.earnings.overtime == Decimal("45.00")
        assert payslip.earnings.public_holiday == Decimal("30.00")
        assert payslip.earnings.total == Decimal("1100.00")
        assert payslip.deductions.total == Decimal("215.29")
        assert payslip.net_pay == Decimal("884.71")
        assert payslip.leave_balances is leave
        assert payslip.period == "2024-07"

    def test_to_dict(self):
        leave = LeaveBalances(annual=Decimal("11.54"), sick=Decimal("10"))
        data = payslip_to_dict(build_payslip(self._rich_entry(), leave))

        assert data["net_pay"] == "884.71"
        assert data["earnings"]["allowances"] == [{"description": "Tools", "amount": "25.00"}]
        assert data["deductions"]["contribution"] == {"employee": "33.00", "employer": "33.00"}
        assert data["deductions"]["other"] == [{"description": "Union fees", "amount": "5.00"}]
        assert data["leave_balances"]["annual"] == "11.54"
        assert data["leave_balances"]["bereavement"] == "0"
        assert data["payment"] == {
            "reference": "PAY-2024-07-H001",
            "date": "2024-07-31",
            "bank_account": "12-3456-7890123-00",
        }
        assert data["tax_code"] == "M SL"
