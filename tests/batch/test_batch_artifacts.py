"""Tests for writing a batch run's artifacts to disk."""

import csv
import json
import threading
from decimal import Decimal

import pytest

from payroll_batch.artifacts import write_batch_artifacts
from payroll_modules.payroll.models import PayPeriod

JULY = PayPeriod.for_month(2024, 7)


@pytest.fixture
def completed_run(processor, make_employee):
    return processor.process_period(
        [
            make_employee(id="E001"),
            make_employee(id="E002", name="Mere Parata", annual_salary=Decimal("60000")),
        ],
        JULY,
    )


class TestWriteBatchArtifacts:

    def test_writes_every_artifact(self, completed_run, tmp_path):
        written = write_batch_artifacts(completed_run, tmp_path)

        assert set(written) == {
            "bank_payment_file", "monthly_schedule", "payslips",
            "tax_reconciliation", "deductions", "contributions",
        }
        assert written["bank_payment_file"].name == "bank-payments-2024-07.csv"
        assert written["monthly_schedule"].name == "ir348-2024-07.csv"
        assert written["payslips"].name == "payslips-2024-07.json"
        assert written["tax_reconciliation"].name == "tax-reconciliation-2024-07.csv"
        assert written["deductions"].name == "deductions-2024-07.csv"
        assert written["contributions"].name == "kiwisaver-2024-07.csv"
        assert all(p.exists() for p in written.values())

    def test_reports_are_csv(self, completed_run, tmp_path):
        written = write_batch_artifacts(completed_run, tmp_path)

        with written["tax_reconciliation"].open(newline="", encoding="utf-8") as fh:
            categories = [r[0] for r in csv.reader(fh)]
        assert categories[0] == "Category"
        assert "Net Payments" in categories

        with written["contributions"].open(newline="", encoding="utf-8") as fh:
            rows = list(csv.reader(fh))
        assert [r[0] for r in rows[1:]] == ["E001", "E002"]
        assert rows[1][3] == "3%"

    def test_bank_file_content_unchanged(self, completed_run, tmp_path):
        written = write_batch_artifacts(completed_run, tmp_path)
        text = written["bank_payment_file"].read_text(encoding="utf-8")
        assert text == completed_run.artifacts.bank_payment_file

    def test_schedule_is_csv(self, completed_run, tmp_path):
        written = write_batch_artifacts(completed_run, tmp_path)
        with written["monthly_schedule"].open(newline="", encoding="utf-8") as fh:
            rows = list(csv.reader(fh))
        assert len(rows) == 3
        assert [r[1] for r in rows[1:]] == ["E001", "E002"]

    def test_payslips_are_json(self, completed_run, tmp_path):
        written = write_batch_artifacts(completed_run, tmp_path)
        payload = json.loads(written["payslips"].read_text(encoding="utf-8"))
        assert [p["employee_id"] for p in payload] == ["E001", "E002"]
        assert payload[0]["net_pay"] == "5713.30"

    def test_creates_missing_directory(self, completed_run, tmp_path):
        target = tmp_path / "runs" / "2024-07"
        write_batch_artifacts(completed_run, target)
        assert (target / "payslips-2024-07.json").exists()

    def test_cancelled_run_has_nothing_to_write(self, processor, make_employee, tmp_path):
        cancel = threading.Event()
        cancel.set()
        result = processor.process_period([make_employee()], JULY, cancel_event=cancel)

        with pytest.raises(ValueError, match="cancelled"):
            write_batch_artifacts(result, tmp_path)
