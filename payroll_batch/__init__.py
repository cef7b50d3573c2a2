"""
payroll_batch -- Period-wide payroll runs.

Validates every active employee, builds one payroll entry each, and
produces the bank payment file, monthly schedule and payslips for the
period.  ``payroll_batch.artifacts`` writes those to disk.

Architecture:
    payroll_batch/ is a top-level package.  Nothing in kernel/, engines/
    or modules/ imports from payroll_batch.

Invariants:
    - All-or-nothing pre-validation gate.
    - Best-effort per-employee generation after the gate.
    - Clock injection (no datetime.now() calls).
    - Cancellation only at employee boundaries.
"""

from payroll_batch.domain.types import (
    BatchArtifacts,
    BatchItemResult,
    BatchItemStatus,
    BatchRunResult,
    BatchRunState,
    BatchRunStatus,
    EmployeeValidationError,
    ProgressTotals,
)
from payroll_batch.processor import PayrollBatchProcessor, process_period

__all__ = [
    "BatchArtifacts",
    "BatchItemResult",
    "BatchItemStatus",
    "BatchRunResult",
    "BatchRunState",
    "BatchRunStatus",
    "EmployeeValidationError",
    "PayrollBatchProcessor",
    "ProgressTotals",
    "process_period",
]
