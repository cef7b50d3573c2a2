"""
Module: payroll_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    payroll calculators.  This is the canonical import surface for the
    module and batch layers.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import ``payroll_kernel`` and the payroll value types; MUST NOT
    import ``payroll_config`` or ``payroll_batch``.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Dates are passed in as explicit parameters.
    - Decimal-only arithmetic: all monetary amounts use ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Calculator invocations are traced via ``@traced_engine`` (see
    ``payroll_engines.tracer``), emitting PAYROLL_ENGINE_TRACE records.

Usage:
    from payroll_engines import compute_bracketed_tax, aggregate_hours
    from payroll_engines.compliance import is_valid_ird_number
"""

from payroll_engines.pay_rates import (
    GENERIC_MULTIPLIERS,
    OVERTIME_MULTIPLIERS,
    HourCategory,
    RateTableKind,
    multiplier_for,
    resolve_pay_rate,
)
from payroll_engines.statutory import (
    ACC_LEVY_RATE,
    ALLOWED_CONTRIBUTION_RATES,
    DEFAULT_EMPLOYER_CONTRIBUTION_RATE,
    NZ_TAX_BRACKETS,
    PERIODS_PER_YEAR,
    STUDENT_LOAN_RATE,
    STUDENT_LOAN_THRESHOLD,
    ContributionAmounts,
    TaxYear,
    annual_salary_from_hourly,
    annualize,
    compute_bracketed_tax,
    compute_contribution,
    compute_levy,
    compute_loan_repayment,
    hourly_rate_from_salary,
    periodize,
    tax_year_for,
)
from payroll_engines.holidays import HolidayCalendar
from payroll_engines.leave import LeaveBalances, calculate_leave_balances
from payroll_engines.time_aggregation import (
    HourTotals,
    aggregate_hours,
    entries_for_period,
    find_overlong_entries,
    hours_by_week,
)
from payroll_engines.compliance import (
    VALID_TAX_CODES,
    ComplianceViolation,
    Severity,
    check_contribution_rate,
    check_hours_per_week,
    check_minimum_wage,
    check_weekly_hours,
    is_valid_bank_account,
    is_valid_contribution_rate,
    is_valid_ird_number,
    is_valid_tax_code,
)
from payroll_engines.tracer import traced_engine

__all__ = [
    "ACC_LEVY_RATE",
    "ALLOWED_CONTRIBUTION_RATES",
    "DEFAULT_EMPLOYER_CONTRIBUTION_RATE",
    "GENERIC_MULTIPLIERS",
    "NZ_TAX_BRACKETS",
    "OVERTIME_MULTIPLIERS",
    "PERIODS_PER_YEAR",
    "STUDENT_LOAN_RATE",
    "STUDENT_LOAN_THRESHOLD",
    "VALID_TAX_CODES",
    "ComplianceViolation",
    "ContributionAmounts",
    "HolidayCalendar",
    "HourCategory",
    "HourTotals",
    "LeaveBalances",
    "RateTableKind",
    "Severity",
    "TaxYear",
    "aggregate_hours",
    "annual_salary_from_hourly",
    "annualize",
    "calculate_leave_balances",
    "check_contribution_rate",
    "check_hours_per_week",
    "check_minimum_wage",
    "check_weekly_hours",
    "compute_bracketed_tax",
    "compute_contribution",
    "compute_levy",
    "compute_loan_repayment",
    "entries_for_period",
    "find_overlong_entries",
    "hourly_rate_from_salary",
    "hours_by_week",
    "is_valid_bank_account",
    "is_valid_contribution_rate",
    "is_valid_ird_number",
    "is_valid_tax_code",
    "multiplier_for",
    "periodize",
    "resolve_pay_rate",
    "tax_year_for",
    "traced_engine",
]
