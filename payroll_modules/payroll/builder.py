"""
Payroll Entry Builder (``payroll_modules.payroll.builder``).

Responsibility
--------------
Combines aggregated hours (or an annual salary), pay-rate multipliers and
the statutory calculators into one ``PayrollEntry`` per employee and
period, and checks the result against minimum wage, contribution-rate and
working-hours rules.

Architecture position
---------------------
**Modules layer** -- composes ``payroll_engines`` calculators with the
loaded ``StatutoryRates``.  No I/O apart from loading the default rates
and holiday calendar when none are supplied.

Invariants enforced
-------------------
* Tax and loan repayment are computed on the ANNUALIZED gross and divided
  back to the period.  Levy and contributions are linear and computed on
  the period gross directly.
* Every component is rounded to cents (half-up) before it is summed, so
  ``net == gross - deductions.total`` holds exactly.
* Validation never aborts: every violation for the employee is collected
  and returned with the entry.
* Minimum wage is an ERROR for hourly staff.  For salaried staff the rate
  is derived from a 40-hour week and a shortfall is only a WARNING.

Failure modes
-------------
* No exceptions for business-rule breaches; they are ``ComplianceViolation``
  values on the ``BuildResult``.  ERROR violations make ``is_valid`` false.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from decimal import Decimal
from uuid import uuid4

from payroll_config import StatutoryRates, get_active_config, get_holiday_calendar
from payroll_engines.compliance import (
    ComplianceViolation,
    Severity,
    check_contribution_rate,
    check_hours_per_week,
    check_minimum_wage,
    check_weekly_hours,
)
from payroll_engines.holidays import HolidayCalendar
from payroll_engines.pay_rates import HourCategory, resolve_pay_rate
from payroll_engines.statutory import (
    annualize,
    compute_bracketed_tax,
    compute_contribution,
    compute_levy,
    compute_loan_repayment,
    hourly_rate_from_salary,
    periodize,
)
from payroll_engines.time_aggregation import (
    HourTotals,
    aggregate_hours,
    entries_for_period,
    find_overlong_entries,
    hours_by_week,
)
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.values import ZERO, quantize_currency
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.config import PayrollConfig
from payroll_modules.payroll.models import (
    Additions,
    Allowance,
    ContributionSplit,
    Deductions,
    Employee,
    OtherDeduction,
    PayBasis,
    PaymentDetails,
    PayPeriod,
    PayrollEntry,
    TimeEntry,
    payment_reference,
)

logger = get_logger("modules.payroll.builder")


@dataclass(frozen=True)
class BuildResult:
    """A built entry plus every violation found while building it."""

    entry: PayrollEntry
    violations: tuple[ComplianceViolation, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not any(v.is_error for v in self.violations)

    @property
    def errors(self) -> tuple[ComplianceViolation, ...]:
        return tuple(v for v in self.violations if v.is_error)

    @property
    def warnings(self) -> tuple[ComplianceViolation, ...]:
        return tuple(v for v in self.violations if not v.is_error)


def _missing_rate(employee: Employee) -> ComplianceViolation:
    what = "annual salary" if employee.pay_basis == PayBasis.SALARY else "hourly rate"
    return ComplianceViolation(
        code="MISSING_PAY_RATE",
        severity=Severity.ERROR,
        message=f"Employee {employee.id} has no {what}",
    )


class PayrollEntryBuilder:
    """
    Builds payroll entries for one set of statutory rates.

    Args:
        config: Operational settings.  Defaults to ``PayrollConfig()``.
        statutory: Statutory rates.  Defaults to ``get_active_config()``.
        clock: Supplies the payment date.  Defaults to ``SystemClock``.
        calendar: Public holidays.  Defaults to the configured calendar.
    """

    def __init__(
        self,
        config: PayrollConfig | None = None,
        statutory: StatutoryRates | None = None,
        clock: Clock | None = None,
        calendar: HolidayCalendar | None = None,
    ):
        self._config = config or PayrollConfig()
        self._statutory = statutory or get_active_config()
        self._clock = clock or SystemClock()
        if calendar is None:
            calendar = HolidayCalendar.from_definitions(get_holiday_calendar().holidays)
        self._calendar = calendar

    @property
    def config(self) -> PayrollConfig:
        return self._config

    @property
    def statutory(self) -> StatutoryRates:
        return self._statutory

    @property
    def calendar(self) -> HolidayCalendar:
        return self._calendar

    # =========================================================================
    # Entry points
    # =========================================================================

    def build(
        self,
        employee: Employee,
        period: PayPeriod,
        time_entries: Iterable[TimeEntry] = (),
        allowances: Sequence[Allowance] = (),
        other_deductions: Sequence[OtherDeduction] = (),
    ) -> BuildResult:
        """Dispatch on the employee's pay basis."""
        if employee.pay_basis == PayBasis.SALARY:
            return self.build_salaried(employee, period, allowances, other_deductions)
        return self.build_from_time_entries(
            employee, period, time_entries, allowances, other_deductions,
        )

    def build_salaried(
        self,
        employee: Employee,
        period: PayPeriod,
        allowances: Sequence[Allowance] = (),
        other_deductions: Sequence[OtherDeduction] = (),
    ) -> BuildResult:
        """Monthly salary is annual salary / periods-per-year, plus allowances."""
        periods = self._statutory.periods_per_year
        violations: list[ComplianceViolation] = []

        annual_salary = employee.annual_salary or ZERO
        if not employee.annual_salary:
            violations.append(_missing_rate(employee))
        else:
            self._check_salary_minimum_wage(employee, annual_salary, violations)

        allowances = self._quantize_allowances(allowances)
        additions = Additions(allowances=allowances)
        base_pay = quantize_currency(periodize(annual_salary, periods))
        gross = base_pay + additions.allowances_total
        annualized = annual_salary + annualize(additions.allowances_total, periods)

        return self._finish(
            employee, period, gross, annualized, additions, other_deductions, violations,
        )

    def build_hourly(
        self,
        employee: Employee,
        period: PayPeriod,
        hours: HourTotals,
        allowances: Sequence[Allowance] = (),
        other_deductions: Sequence[OtherDeduction] = (),
        week_hours: Mapping[tuple[int, int], Decimal] | None = None,
    ) -> BuildResult:
        """
        Gross is the sum of hours times the resolved rate per category.

        ``week_hours`` (ISO week -> hours) checks the cap week by week.
        Without it the cap is checked against the period average.
        """
        periods = self._statutory.periods_per_year
        table = self._config.holiday_rate_table
        violations: list[ComplianceViolation] = []

        rate = employee.hourly_rate or ZERO
        if not employee.hourly_rate:
            violations.append(_missing_rate(employee))
        else:
            self._check_minimum_wage(employee, rate, violations)

        cap = self._config.weekly_hours_cap
        if week_hours is not None:
            violations.extend(check_hours_per_week(week_hours, cap))
        else:
            weekly = check_weekly_hours(hours.total_hours, period.days, cap)
            if weekly is not None:
                violations.append(weekly)

        regular_pay = quantize_currency(
            hours.regular_hours * resolve_pay_rate(rate, HourCategory.STANDARD, table)
        )
        overtime_pay = quantize_currency(
            hours.overtime_first_tier_hours
            * resolve_pay_rate(rate, HourCategory.OVERTIME_FIRST_TIER, table)
            + hours.overtime_subsequent_hours
            * resolve_pay_rate(rate, HourCategory.OVERTIME_SUBSEQUENT, table)
        )
        holiday_pay = quantize_currency(
            hours.public_holiday_hours
            * resolve_pay_rate(rate, HourCategory.PUBLIC_HOLIDAY, table)
        )
        if hours.public_holiday_hours > 0:
            logger.warning(
                "public_holiday_multiplier_unconfirmed",
                extra={
                    "employee_id": employee.id,
                    "period": period.identifier,
                    "rate_table": table.value,
                    "public_holiday_hours": str(hours.public_holiday_hours),
                },
            )

        additions = Additions(
            overtime=overtime_pay,
            public_holiday=holiday_pay,
            allowances=self._quantize_allowances(allowances),
        )
        gross = regular_pay + additions.total
        annualized = annualize(gross, periods)

        return self._finish(
            employee, period, gross, annualized, additions, other_deductions, violations,
        )

    def build_from_time_entries(
        self,
        employee: Employee,
        period: PayPeriod,
        entries: Iterable[TimeEntry],
        allowances: Sequence[Allowance] = (),
        other_deductions: Sequence[OtherDeduction] = (),
    ) -> BuildResult:
        """Aggregate the employee's entries for ``period``, then ``build_hourly``."""
        relevant = entries_for_period(entries, employee.id, period)
        hours = aggregate_hours(
            relevant,
            calendar=self._calendar,
            standard_daily_hours=self._config.standard_daily_hours,
            first_tier_overtime_hours=self._config.first_tier_overtime_hours,
        )

        overlong = [
            ComplianceViolation(
                code="ENTRY_EXCEEDS_MAX_HOURS",
                severity=Severity.WARNING,
                message=(
                    f"Time entry {entry.id} spans {entry.span_hours:.2f} hours, "
                    f"more than {self._config.max_entry_hours:g}"
                ),
            )
            for entry in find_overlong_entries(relevant, self._config.max_entry_hours)
        ]

        result = self.build_hourly(
            employee, period, hours, allowances, other_deductions,
            week_hours=hours_by_week(relevant),
        )
        if not overlong:
            return result
        return BuildResult(
            entry=result.entry,
            violations=tuple(overlong) + result.violations,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _check_minimum_wage(
        self,
        employee: Employee,
        hourly_rate: Decimal,
        violations: list[ComplianceViolation],
    ) -> None:
        category = employee.wage_category.value
        violation = check_minimum_wage(
            hourly_rate, self._statutory.minimum_wage_for(category), category,
        )
        if violation is not None:
            violations.append(violation)

    def _check_salary_minimum_wage(
        self,
        employee: Employee,
        annual_salary: Decimal,
        violations: list[ComplianceViolation],
    ) -> None:
        # Hours are not recorded for salaried staff, so the derived rate
        # assumes a 40-hour week and a shortfall only warns.
        category = employee.wage_category.value
        violation = check_minimum_wage(
            hourly_rate_from_salary(annual_salary),
            self._statutory.minimum_wage_for(category),
            category,
        )
        if violation is not None:
            violations.append(replace(
                violation,
                code="SALARY_BELOW_MINIMUM_WAGE",
                severity=Severity.WARNING,
                message=f"{violation.message} at 40 hours a week",
            ))

    @staticmethod
    def _quantize_allowances(allowances: Sequence[Allowance]) -> tuple[Allowance, ...]:
        return tuple(
            Allowance(description=a.description, amount=quantize_currency(a.amount))
            for a in allowances
        )

    def _finish(
        self,
        employee: Employee,
        period: PayPeriod,
        gross: Decimal,
        annualized: Decimal,
        additions: Additions,
        other_deductions: Sequence[OtherDeduction],
        violations: list[ComplianceViolation],
    ) -> BuildResult:
        rates = self._statutory
        periods = rates.periods_per_year

        if gross < 0:
            violations.append(ComplianceViolation(
                code="NEGATIVE_GROSS_PAY",
                severity=Severity.ERROR,
                message=f"Gross pay {gross} is negative",
            ))

        contribution_rate = employee.contribution_rate
        rate_violation = check_contribution_rate(
            contribution_rate, rates.contribution_rates,
        )
        if rate_violation is not None:
            violations.append(rate_violation)

        tax = quantize_currency(
            periodize(compute_bracketed_tax(annualized, rates.tax_brackets), periods)
        )
        loan = ZERO
        if employee.owes_student_loan():
            loan = quantize_currency(periodize(
                compute_loan_repayment(annualized, rates.loan_threshold, rates.loan_rate),
                periods,
            ))
        levy = quantize_currency(compute_levy(gross, rates.levy_rate))
        contribution = compute_contribution(
            gross,
            contribution_rate or ZERO,
            rates.default_employer_contribution_rate,
        )

        deductions = Deductions(
            tax=tax,
            levy=levy,
            contribution=ContributionSplit(
                employee=quantize_currency(contribution.employee),
                employer=quantize_currency(contribution.employer),
            ),
            loan_repayment=loan,
            other=tuple(
                OtherDeduction(description=d.description, amount=quantize_currency(d.amount))
                for d in other_deductions
            ),
        )

        entry = PayrollEntry(
            id=str(uuid4()),
            employee_id=employee.id,
            employee_name=employee.name,
            tax_identifier=employee.tax_identifier,
            tax_code=employee.tax_code,
            period=period,
            gross_pay=gross,
            net_pay=gross - deductions.total,
            deductions=deductions,
            additions=additions,
            payment=PaymentDetails(
                bank_account=employee.bank_account,
                reference=payment_reference(period, employee.id),
                payment_date=self._clock.today(),
            ),
        )

        logger.info(
            "payroll_entry_built",
            extra={
                "employee_id": employee.id,
                "period": period.identifier,
                "gross_pay": str(entry.gross_pay),
                "tax": str(tax),
                "levy": str(levy),
                "contribution_employee": str(deductions.contribution.employee),
                "loan_repayment": str(loan),
                "net_pay": str(entry.net_pay),
                "violation_count": len(violations),
            },
        )
        return BuildResult(entry=entry, violations=tuple(violations))
