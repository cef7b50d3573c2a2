"""
Values -- Decimal currency helpers and rate-table value objects.

Responsibility:
    The single place that defines how payroll amounts are converted to
    ``Decimal``, rounded to cents, and formatted for export files, plus the
    ``TaxBracket`` row type shared by the config and engine layers.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Imported by
    ``payroll_config``, ``payroll_engines`` and ``payroll_modules``.

Invariants enforced:
    - No floats.  ``to_decimal`` converts via ``str`` so a float literal
      such as ``22.7`` becomes ``Decimal("22.7")`` and not its binary
      approximation.
    - ``quantize_currency`` is the ONLY sanctioned rounding for amounts that
      land on a payroll entry (cents, ROUND_HALF_UP).

Failure modes:
    - ``ValueError`` from ``to_decimal`` on non-numeric input.
    - ``ValueError`` from ``TaxBracket`` on a negative rate or threshold.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
CURRENCY_QUANTUM = Decimal("0.01")
UNBOUNDED = Decimal("Infinity")


def to_decimal(value: Any) -> Decimal:
    """
    Convert ``value`` to ``Decimal`` without binary floating-point drift.

    ``None`` is treated as zero, matching how optional deduction fields
    default in employee records.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert boolean to Decimal: {value!r}")
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Not a numeric value: {value!r}") from exc


def quantize_currency(amount: Decimal) -> Decimal:
    """Round to whole cents, half-up."""
    return amount.quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal) -> str:
    """Format to exactly two decimal places for export files."""
    return f"{quantize_currency(amount):.2f}"


@dataclass(frozen=True)
class TaxBracket:
    """
    One row of a progressive marginal schedule.

    ``upper`` is the inclusive upper income threshold of the band;
    ``UNBOUNDED`` (``Decimal("Infinity")``) marks the top band.
    """

    upper: Decimal
    rate: Decimal

    def __post_init__(self) -> None:
        if self.upper < 0:
            raise ValueError("Bracket threshold cannot be negative")
        if self.rate < 0:
            raise ValueError("Bracket rate cannot be negative")

    @property
    def is_unbounded(self) -> bool:
        return self.upper == UNBOUNDED
