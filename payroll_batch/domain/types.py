"""
payroll_batch.domain.types -- Pure frozen dataclasses for payroll batch runs.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples for
immutable collections.

Invariants enforced:
    - All DTOs are frozen (immutable).
    - ``ProgressTotals`` is only advanced by returning a new value, so the
      processor loop is the single writer of the running totals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from payroll_kernel.domain.values import ZERO
from payroll_modules.payroll.exporters import MonthlyScheduleRow, PayslipData
from payroll_modules.payroll.reports import TaxReconciliation
from payroll_modules.payroll.models import PayPeriod, PayrollEntry


# =============================================================================
# Status enums
# =============================================================================


class BatchRunState(str, Enum):
    """Lifecycle state of one batch run."""

    IDLE = "idle"
    VALIDATING = "validating"
    INVALID = "invalid"  # Pre-validation failed; nothing was calculated
    CALCULATING = "calculating"
    GENERATING_ARTIFACTS = "generating_artifacts"
    DONE = "done"
    CANCELLED = "cancelled"  # Stopped at an employee boundary


class BatchRunStatus(str, Enum):
    """Outcome of a batch run."""

    COMPLETED = "completed"  # Every employee succeeded
    PARTIALLY_COMPLETED = "partially_completed"  # Some employees failed
    FAILED = "failed"  # No employee succeeded
    INVALID = "invalid"
    CANCELLED = "cancelled"


class BatchItemStatus(str, Enum):
    """Per-employee outcome."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


# =============================================================================
# DTOs
# =============================================================================


@dataclass(frozen=True)
class EmployeeValidationError:
    """A structural problem with an employee record found before calculation."""

    employee_id: str
    employee_name: str
    code: str
    message: str

    @property
    def display(self) -> str:
        return f"{self.employee_name}: {self.message}"

    def __str__(self) -> str:
        return self.display


@dataclass(frozen=True)
class BatchItemResult:
    """Result of processing one employee (or one artifact)."""

    item_index: int
    item_key: str  # employee id, or the artifact name
    status: BatchItemStatus
    error_code: str | None = None
    error_message: str | None = None
    warnings: tuple[str, ...] = ()
    entry_id: str | None = None
    duration_ms: int = 0


@dataclass(frozen=True)
class ProgressTotals:
    """Running totals reported to the progress callback."""

    processed_count: int = 0
    amount_total: Decimal = ZERO  # net pay of processed entries
    error_count: int = 0

    def with_entry(self, net_pay: Decimal) -> ProgressTotals:
        return ProgressTotals(
            processed_count=self.processed_count + 1,
            amount_total=self.amount_total + net_pay,
            error_count=self.error_count,
        )

    def with_error(self) -> ProgressTotals:
        return ProgressTotals(
            processed_count=self.processed_count,
            amount_total=self.amount_total,
            error_count=self.error_count + 1,
        )


@dataclass(frozen=True)
class BatchArtifacts:
    """The regulatory artifacts and employer reports produced from a run's entries."""

    bank_payment_file: str | None = None
    monthly_schedule: tuple[MonthlyScheduleRow, ...] = ()
    monthly_schedule_csv: str = ""
    payslips: tuple[PayslipData, ...] = ()
    tax_reconciliation: TaxReconciliation | None = None
    tax_reconciliation_csv: str = ""
    deductions_csv: str = ""
    contribution_csv: str = ""
    failures: tuple[BatchItemResult, ...] = ()


@dataclass(frozen=True)
class BatchRunResult:
    """Immutable result of one ``process_period`` call."""

    batch_id: str
    period: PayPeriod
    status: BatchRunStatus
    entries: tuple[PayrollEntry, ...] = ()
    validation_errors: tuple[EmployeeValidationError, ...] = ()
    item_results: tuple[BatchItemResult, ...] = ()
    totals: ProgressTotals = field(default_factory=ProgressTotals)
    artifacts: BatchArtifacts | None = None
    state_history: tuple[BatchRunState, ...] = ()
    summary_message: str = ""
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    @property
    def failed_items(self) -> tuple[BatchItemResult, ...]:
        return tuple(r for r in self.item_results if r.status == BatchItemStatus.FAILED)

    @property
    def validation_messages(self) -> list[str]:
        return [e.display for e in self.validation_errors]
