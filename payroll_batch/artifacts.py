"""
Batch artifact writer -- the file-I/O boundary of a payroll run.

Writes the artifacts held on a ``BatchRunResult`` to a directory:

    bank-payments-<period>.csv
    ir348-<period>.csv
    payslips-<period>.json
    tax-reconciliation-<period>.csv
    deductions-<period>.csv
    kiwisaver-<period>.csv

Nothing else in the payroll engine touches the filesystem.
"""

from __future__ import annotations

import json
from pathlib import Path

from payroll_batch.domain.types import BatchRunResult
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.exporters import payslip_to_dict

logger = get_logger("batch.artifacts")


def write_batch_artifacts(result: BatchRunResult, directory: Path) -> dict[str, Path]:
    """
    Write the run's artifacts; returns the written paths keyed by artifact.

    The bank file is skipped when it could not be generated.

    Raises:
        ValueError: The run produced no artifacts (INVALID or CANCELLED).
    """
    if result.artifacts is None:
        raise ValueError(
            f"Batch {result.batch_id} ended {result.status.value} and has no artifacts"
        )

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    period = result.period.identifier
    artifacts = result.artifacts
    written: dict[str, Path] = {}

    if artifacts.bank_payment_file is not None:
        path = directory / f"bank-payments-{period}.csv"
        path.write_text(artifacts.bank_payment_file, encoding="utf-8")
        written["bank_payment_file"] = path

    path = directory / f"ir348-{period}.csv"
    path.write_text(artifacts.monthly_schedule_csv, encoding="utf-8")
    written["monthly_schedule"] = path

    path = directory / f"payslips-{period}.json"
    payload = [payslip_to_dict(p) for p in artifacts.payslips]
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    written["payslips"] = path

    reports = (
        ("tax_reconciliation", "tax-reconciliation", artifacts.tax_reconciliation_csv),
        ("deductions", "deductions", artifacts.deductions_csv),
        ("contributions", "kiwisaver", artifacts.contribution_csv),
    )
    for key, stem, text in reports:
        path = directory / f"{stem}-{period}.csv"
        path.write_text(text, encoding="utf-8")
        written[key] = path

    logger.info(
        "batch_artifacts_written",
        extra={
            "batch_id": result.batch_id,
            "directory": str(directory),
            "files": sorted(p.name for p in written.values()),
        },
    )
    return written
