"""Pure batch-run DTOs.  No I/O."""

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

__all__ = [
    "BatchArtifacts",
    "BatchItemResult",
    "BatchItemStatus",
    "BatchRunResult",
    "BatchRunState",
    "BatchRunStatus",
    "EmployeeValidationError",
    "ProgressTotals",
]
