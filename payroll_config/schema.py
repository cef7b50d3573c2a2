"""
Statutory Configuration Schema (``payroll_config.schema``).

Frozen dataclasses describing one statutory rate set (income tax brackets,
levy, student loan, retirement-savings contribution rates, minimum wages,
recognised tax codes) and the public-holiday calendar.  Instances are built
only by ``payroll_config.loader``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from payroll_kernel.domain.values import TaxBracket


@dataclass(frozen=True)
class MinimumWage:
    """Statutory minimum hourly rate for one wage category."""
    category: str  # "adult", "starting_out", "training"
    hourly_rate: Decimal


@dataclass(frozen=True)
class StatutoryRates:
    """One effective-dated statutory rate set."""

    name: str
    effective_from: date
    tax_brackets: tuple[TaxBracket, ...]
    levy_rate: Decimal
    loan_threshold: Decimal
    loan_rate: Decimal
    contribution_rates: tuple[Decimal, ...]
    default_employer_contribution_rate: Decimal
    minimum_wages: tuple[MinimumWage, ...]
    tax_codes: tuple[str, ...]
    periods_per_year: int = 12
    effective_to: date | None = None
    checksum: str = ""

    def __post_init__(self) -> None:
        if not self.tax_brackets:
            raise ValueError(f"Rate set {self.name!r} has no tax brackets")
        uppers = [b.upper for b in self.tax_brackets]
        if uppers != sorted(uppers):
            raise ValueError(
                f"Rate set {self.name!r}: tax brackets must be sorted by upper threshold"
            )
        if not self.tax_brackets[-1].is_unbounded:
            raise ValueError(
                f"Rate set {self.name!r}: top tax bracket must be unbounded"
            )
        if self.periods_per_year <= 0:
            raise ValueError("periods_per_year must be positive")
        if self.effective_to is not None and self.effective_to < self.effective_from:
            raise ValueError(
                f"Rate set {self.name!r}: effective_to precedes effective_from"
            )

    def is_effective(self, on_date: date) -> bool:
        if on_date < self.effective_from:
            return False
        if self.effective_to is not None and on_date > self.effective_to:
            return False
        return True

    def minimum_wage_for(self, category: str) -> Decimal:
        """Minimum hourly rate for ``category``; raises ``KeyError`` if unknown."""
        for wage in self.minimum_wages:
            if wage.category == category:
                return wage.hourly_rate
        raise KeyError(f"No minimum wage configured for category {category!r}")


@dataclass(frozen=True)
class PublicHoliday:
    """A gazetted public holiday."""
    date: date
    name: str


@dataclass(frozen=True)
class HolidayCalendarDef:
    """Known public holidays, grouped by the years they cover."""
    holidays: tuple[PublicHoliday, ...] = field(default_factory=tuple)
    checksum: str = ""
