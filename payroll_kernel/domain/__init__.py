"""
Pure domain layer.

Value helpers and the clock abstraction.  NO dependencies on ORM,
database, or I/O.  Everything here is immutable and deterministic
(except ``SystemClock``, the sanctioned boundary for time).
"""

from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payroll_kernel.domain.values import (
    CURRENCY_QUANTUM,
    ZERO,
    UNBOUNDED,
    TaxBracket,
    format_currency,
    quantize_currency,
    to_decimal,
)

__all__ = [
    "CURRENCY_QUANTUM",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "TaxBracket",
    "UNBOUNDED",
    "ZERO",
    "format_currency",
    "quantize_currency",
    "to_decimal",
]
