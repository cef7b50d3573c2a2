"""
PayrollBatchProcessor -- period-wide payroll run.

Contract:
    ``process_period()`` takes every employee record and the period's time
    entries and returns a ``BatchRunResult``: the pending payroll entries,
    per-employee item results, running totals, and the bank payment file,
    monthly schedule, payslips and employer reports built from those entries.

State machine::

    IDLE -> VALIDATING -> INVALID
                       -> CALCULATING -> GENERATING_ARTIFACTS -> DONE
                                      -> CANCELLED

Invariants enforced:
    - Pre-validation is all-or-nothing: one structural error on any active
      employee stops the run before a single entry is calculated.
    - Generation is best-effort: an exception or ERROR violation for one
      employee is logged, counted and skipped; the rest of the run goes on
      (unless ``continue_on_error=False``).
    - Running totals are advanced only by the processing loop.
    - Cancellation is checked between employees, never inside one.
    - All timestamps come from the injected Clock.

Non-goals:
    - Does NOT persist entries -- hand ``result.entries`` to
      ``PayrollEntryStore`` if they should be stored.
    - Does NOT write files -- see ``payroll_batch.artifacts``.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from uuid import uuid4

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
from payroll_engines.compliance import (
    is_valid_bank_account,
    is_valid_contribution_rate,
    is_valid_ird_number,
    is_valid_tax_code,
)
from payroll_engines.leave import calculate_leave_balances
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.exceptions import PayrollGenerationError
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_modules.payroll.builder import PayrollEntryBuilder
from payroll_modules.payroll.config import PayrollConfig
from payroll_modules.payroll.exporters import (
    build_monthly_schedule,
    build_payslip,
    generate_bank_payment_file,
    render_monthly_schedule_csv,
)
from payroll_modules.payroll.models import (
    Allowance,
    Employee,
    OtherDeduction,
    PayBasis,
    PayPeriod,
    PayrollEntry,
    TimeEntry,
)
from payroll_modules.payroll.reports import (
    build_contribution_report,
    build_deductions_report,
    build_tax_reconciliation,
    render_contribution_csv,
    render_deductions_csv,
    render_tax_reconciliation_csv,
)

logger = get_logger("batch.processor")

ProgressCallback = Callable[[ProgressTotals], None]


class PayrollBatchProcessor:
    """Runs payroll for every active employee in a period.

    Contract:
        - ``validate_employees()`` returns the structural errors that
          would stop a run, without running it.
        - ``process_period()`` runs the full state machine.
    """

    def __init__(
        self,
        builder: PayrollEntryBuilder | None = None,
        clock: Clock | None = None,
        config: PayrollConfig | None = None,
    ):
        self._clock = clock or SystemClock()
        self._config = config or (builder.config if builder else PayrollConfig())
        self._builder = builder or PayrollEntryBuilder(
            config=self._config, clock=self._clock,
        )
        self._state = BatchRunState.IDLE
        self._history: list[BatchRunState] = []

    @property
    def state(self) -> BatchRunState:
        return self._state

    # -------------------------------------------------------------------------
    # Validation gate
    # -------------------------------------------------------------------------

    def validate_employees(
        self, employees: Iterable[Employee],
    ) -> list[EmployeeValidationError]:
        """Structural checks on every active employee.  Returns all problems."""
        statutory = self._builder.statutory
        errors: list[EmployeeValidationError] = []

        for employee in employees:
            if not employee.is_active:
                continue

            def add(code: str, message: str) -> None:
                errors.append(EmployeeValidationError(
                    employee_id=employee.id,
                    employee_name=employee.name,
                    code=code,
                    message=message,
                ))

            if employee.pay_rate_missing:
                if employee.pay_basis == PayBasis.SALARY:
                    add("MISSING_SALARY", "Missing salary information")
                else:
                    add("MISSING_HOURLY_RATE", "Missing hourly rate")

            if not employee.bank_account:
                add("MISSING_BANK_ACCOUNT", "Missing bank account")
            elif not is_valid_bank_account(employee.bank_account):
                add("INVALID_BANK_ACCOUNT", "Invalid bank account format")

            if not employee.tax_code:
                add("MISSING_TAX_CODE", "Missing tax code")
            elif not is_valid_tax_code(employee.tax_code, statutory.tax_codes):
                add("INVALID_TAX_CODE", "Invalid tax code")

            if not employee.tax_identifier:
                add("MISSING_IRD_NUMBER", "Missing IRD number")
            elif not is_valid_ird_number(employee.tax_identifier):
                add("INVALID_IRD_NUMBER", "Invalid IRD number format")

            if employee.contribution_rate is None:
                add("MISSING_CONTRIBUTION_RATE", "Missing KiwiSaver rate")
            elif not is_valid_contribution_rate(
                employee.contribution_rate, statutory.contribution_rates,
            ):
                add("INVALID_CONTRIBUTION_RATE", "Invalid KiwiSaver rate")

        return errors

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def process_period(
        self,
        employees: Sequence[Employee],
        period: PayPeriod,
        time_entries: Iterable[TimeEntry] = (),
        allowances: Mapping[str, Sequence[Allowance]] | None = None,
        other_deductions: Mapping[str, Sequence[OtherDeduction]] | None = None,
        continue_on_error: bool | None = None,
        cancel_event: threading.Event | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchRunResult:
        """
        Run payroll for ``period``.

        Args:
            employees: Every employee record; inactive ones are ignored.
            period: The pay period.
            time_entries: Clock entries for hourly employees (any employee,
                any date; each employee's entries in the period are used).
            allowances: Allowances keyed by employee id.
            other_deductions: Other deductions keyed by employee id.
            continue_on_error: Skip failing employees (default from config).
                When false the first failure raises.
            cancel_event: Set to stop the run at the next employee boundary.
            on_progress: Called with the running totals after each employee.

        Raises:
            PayrollGenerationError: Only when ``continue_on_error`` is false
                and an employee fails.
        """
        if continue_on_error is None:
            continue_on_error = self._config.continue_on_error
        allowances = allowances or {}
        other_deductions = other_deductions or {}
        time_entries = tuple(time_entries)

        batch_id = str(uuid4())
        started_at = self._clock.now()
        t0 = time.monotonic()
        self._history = []
        self._transition(BatchRunState.IDLE)

        def finish(status: BatchRunStatus, summary: str, **fields) -> BatchRunResult:
            result = BatchRunResult(
                batch_id=batch_id,
                period=period,
                status=status,
                state_history=tuple(self._history),
                summary_message=summary,
                started_at=started_at,
                completed_at=self._clock.now(),
                duration_ms=int((time.monotonic() - t0) * 1000),
                **fields,
            )
            logger.info(
                "payroll_batch_finished",
                extra={
                    "status": status.value,
                    "entry_count": len(result.entries),
                    "error_count": result.totals.error_count,
                    "summary": summary,
                },
            )
            return result

        with LogContext.bind(batch_id=batch_id, period=period.identifier):
            active = [e for e in employees if e.is_active]
            logger.info(
                "payroll_batch_started",
                extra={
                    "employee_count": len(employees),
                    "active_count": len(active),
                    "time_entry_count": len(time_entries),
                },
            )

            # Validating
            self._transition(BatchRunState.VALIDATING)
            validation_errors = self.validate_employees(active)
            if validation_errors:
                self._transition(BatchRunState.INVALID)
                logger.warning(
                    "payroll_batch_invalid",
                    extra={
                        "validation_error_count": len(validation_errors),
                        "employee_ids": sorted({e.employee_id for e in validation_errors}),
                    },
                )
                return finish(
                    BatchRunStatus.INVALID,
                    f"Payroll validation failed ({len(validation_errors)} errors found)",
                    validation_errors=tuple(validation_errors),
                )

            # Calculating
            self._transition(BatchRunState.CALCULATING)
            entries: list[PayrollEntry] = []
            item_results: list[BatchItemResult] = []
            totals = ProgressTotals()

            for index, employee in enumerate(active):
                if cancel_event is not None and cancel_event.is_set():
                    self._transition(BatchRunState.CANCELLED)
                    logger.warning(
                        "payroll_batch_cancelled",
                        extra={
                            "processed_count": totals.processed_count,
                            "remaining_count": len(active) - index,
                        },
                    )
                    return finish(
                        BatchRunStatus.CANCELLED,
                        f"Payroll cancelled after {totals.processed_count} "
                        f"of {len(active)} employees",
                        entries=tuple(entries),
                        item_results=tuple(item_results),
                        totals=totals,
                    )

                item, entry = self._process_employee(
                    index, employee, period, time_entries,
                    allowances.get(employee.id, ()),
                    other_deductions.get(employee.id, ()),
                    continue_on_error,
                )
                item_results.append(item)
                if entry is not None:
                    entries.append(entry)
                    totals = totals.with_entry(entry.net_pay)
                else:
                    totals = totals.with_error()

                if on_progress is not None:
                    on_progress(totals)

            # Generating artifacts
            self._transition(BatchRunState.GENERATING_ARTIFACTS)
            artifacts = self._generate_artifacts(entries, period, employees)
            for _ in artifacts.failures:
                totals = totals.with_error()
            if artifacts.failures and on_progress is not None:
                on_progress(totals)

            self._transition(BatchRunState.DONE)

            if totals.error_count == 0:
                status = BatchRunStatus.COMPLETED
                summary = "Payroll processed successfully"
            elif entries:
                status = BatchRunStatus.PARTIALLY_COMPLETED
                summary = (
                    f"Payroll processed successfully "
                    f"({totals.error_count} errors occurred)"
                )
            else:
                status = BatchRunStatus.FAILED
                summary = f"Payroll processing failed ({totals.error_count} errors occurred)"

            return finish(
                status,
                summary,
                entries=tuple(entries),
                item_results=tuple(item_results),
                totals=totals,
                artifacts=artifacts,
            )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _transition(self, state: BatchRunState) -> None:
        previous = self._state
        self._state = state
        self._history.append(state)
        logger.info(
            "payroll_batch_state_changed",
            extra={"from_state": previous.value, "to_state": state.value},
        )

    def _process_employee(
        self,
        index: int,
        employee: Employee,
        period: PayPeriod,
        time_entries: tuple[TimeEntry, ...],
        allowances: Sequence[Allowance],
        other_deductions: Sequence[OtherDeduction],
        continue_on_error: bool,
    ) -> tuple[BatchItemResult, PayrollEntry | None]:
        item_start = time.monotonic()

        with LogContext.bind(employee_id=employee.id):
            try:
                result = self._builder.build(
                    employee, period, time_entries, allowances, other_deductions,
                )
            except Exception as exc:
                logger.exception(
                    "payroll_employee_failed",
                    extra={"employee_name": employee.name, "stage": "calculation"},
                )
                if not continue_on_error:
                    raise PayrollGenerationError(
                        employee.id, "calculation", str(exc),
                    ) from exc
                return BatchItemResult(
                    item_index=index,
                    item_key=employee.id,
                    status=BatchItemStatus.FAILED,
                    error_code="UNHANDLED_EXCEPTION",
                    error_message=str(exc),
                    duration_ms=int((time.monotonic() - item_start) * 1000),
                ), None

            warnings = tuple(v.message for v in result.warnings)
            if not result.is_valid:
                message = "; ".join(v.message for v in result.errors)
                logger.warning(
                    "payroll_employee_rejected",
                    extra={
                        "employee_name": employee.name,
                        "error_codes": [v.code for v in result.errors],
                    },
                )
                if not continue_on_error:
                    raise PayrollGenerationError(employee.id, "validation", message)
                return BatchItemResult(
                    item_index=index,
                    item_key=employee.id,
                    status=BatchItemStatus.FAILED,
                    error_code=result.errors[0].code,
                    error_message=message,
                    warnings=warnings,
                    duration_ms=int((time.monotonic() - item_start) * 1000),
                ), None

        return BatchItemResult(
            item_index=index,
            item_key=employee.id,
            status=BatchItemStatus.SUCCEEDED,
            warnings=warnings,
            entry_id=result.entry.id,
            duration_ms=int((time.monotonic() - item_start) * 1000),
        ), result.entry

    def _generate_artifacts(
        self,
        entries: list[PayrollEntry],
        period: PayPeriod,
        employees: Sequence[Employee],
    ) -> BatchArtifacts:
        failures: list[BatchItemResult] = []

        bank_file: str | None = None
        try:
            bank_file = generate_bank_payment_file(
                entries, self._clock.today(), self._config.bank_file,
            )
        except Exception as exc:
            logger.exception("bank_payment_file_failed")
            failures.append(BatchItemResult(
                item_index=len(failures),
                item_key="bank_payment_file",
                status=BatchItemStatus.FAILED,
                error_code=getattr(exc, "code", "UNHANDLED_EXCEPTION"),
                error_message=str(exc),
            ))

        schedule = build_monthly_schedule(entries, period)
        schedule_csv = render_monthly_schedule_csv(schedule)
        reconciliation = build_tax_reconciliation(entries, period)
        deductions_csv = render_deductions_csv(build_deductions_report(entries, period))
        contribution_csv = render_contribution_csv(
            build_contribution_report(entries, period, employees),
        )

        start_dates = {e.id: e.start_date for e in employees}
        payslips = []
        for entry in entries:
            with LogContext.bind(employee_id=entry.employee_id):
                try:
                    leave = calculate_leave_balances(
                        start_dates.get(entry.employee_id), period.end,
                    )
                    payslips.append(build_payslip(entry, leave))
                except Exception as exc:
                    logger.exception(
                        "payslip_generation_failed",
                        extra={"entry_id": entry.id},
                    )
                    failures.append(BatchItemResult(
                        item_index=len(failures),
                        item_key=entry.employee_id,
                        status=BatchItemStatus.FAILED,
                        error_code=PayrollGenerationError.code,
                        error_message=str(PayrollGenerationError(
                            entry.employee_id, "payslip", str(exc),
                        )),
                    ))

        logger.info(
            "payroll_artifacts_generated",
            extra={
                "payslip_count": len(payslips),
                "schedule_row_count": len(schedule),
                "failure_count": len(failures),
            },
        )
        return BatchArtifacts(
            bank_payment_file=bank_file,
            monthly_schedule=tuple(schedule),
            monthly_schedule_csv=schedule_csv,
            payslips=tuple(payslips),
            tax_reconciliation=reconciliation,
            tax_reconciliation_csv=render_tax_reconciliation_csv(reconciliation),
            deductions_csv=deductions_csv,
            contribution_csv=contribution_csv,
            failures=tuple(failures),
        )


def process_period(
    employees: Sequence[Employee],
    period: PayPeriod,
    time_entries: Iterable[TimeEntry] = (),
    **kwargs,
) -> BatchRunResult:
    """Run a batch with a default-configured ``PayrollBatchProcessor``."""
    return PayrollBatchProcessor().process_period(
        employees, period, time_entries, **kwargs,
    )
