"""
Payroll Module (``payroll_modules.payroll``).

Responsibility
--------------
Turns employee master data and clock entries into payroll entries:
salaried and hourly gross pay, income tax, earner levy, retirement-savings
contributions, student-loan repayment and net pay, plus the bank payment
file, the monthly employer schedule, payslip data and the tax reconciliation,
deductions and contribution reports.

Architecture position
---------------------
**Modules layer** -- domain models, operational config, the entry
builder and exporters, and ORM persistence.  Calculations are delegated
to ``payroll_engines``; statutory rates come from ``payroll_config``.

Invariants enforced
-------------------
* Net pay equals gross pay less itemized deductions, to the cent.
* A PAID entry is immutable in the store.

Failure modes
-------------
* Builder violations are returned on ``BuildResult``, never raised.
* Malformed tax codes, bank accounts and period identifiers raise the
  ``ValidationError`` family when parsed directly.
"""

from payroll_modules.payroll.models import (
    Additions,
    Allowance,
    BankAccount,
    ContributionSplit,
    Deductions,
    Employee,
    OtherDeduction,
    PayBasis,
    PaymentDetails,
    PayPeriod,
    PayrollEntry,
    PayrollStatus,
    TaxCode,
    TaxCodeCategory,
    TimeCategory,
    TimeEntry,
    WageCategory,
)
from payroll_modules.payroll.config import BankFileSettings, PayrollConfig

__all__ = [
    "Additions",
    "Allowance",
    "BankAccount",
    "BankFileSettings",
    "ContributionSplit",
    "Deductions",
    "Employee",
    "OtherDeduction",
    "PayBasis",
    "PaymentDetails",
    "PayPeriod",
    "PayrollConfig",
    "PayrollEntry",
    "PayrollStatus",
    "TaxCode",
    "TaxCodeCategory",
    "TimeCategory",
    "TimeEntry",
    "WageCategory",
]
