"""
payroll_config -- single public entrypoint for statutory configuration.

Responsibility:
    Provides the ONLY way to obtain statutory rate tables at runtime through
    ``get_active_config()``, and the public-holiday calendar through
    ``get_holiday_calendar()``.  No other component reads the YAML sets.

Architecture position:
    Configuration -- sits above ``payroll_kernel`` and below
    ``payroll_modules`` / ``payroll_batch``.  Engines never import from
    here; the module layer hands them plain values.

Invariants enforced:
    - Exactly one rate set is returned for a date; sets are selected by
      their effective range.
    - Deterministic: the same YAML always produces the same checksum.

Failure modes:
    - ``StatutoryConfigNotFoundError`` -- no set is effective on the
      requested date.
    - ``FileNotFoundError`` -- the sets directory is missing.
    - ``ValueError`` / ``KeyError`` -- a set fails to parse.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``PAYROLL_CONFIG_TRACE`` log entry with the set name, effective date
    and checksum, tying each payroll run to the exact rates it used.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from payroll_config.loader import load_holiday_calendar, load_statutory_rates
from payroll_config.schema import (
    HolidayCalendarDef,
    MinimumWage,
    PublicHoliday,
    StatutoryRates,
)
from payroll_kernel.exceptions import StatutoryConfigNotFoundError
from payroll_kernel.logging_config import get_logger

__all__ = [
    "HolidayCalendarDef",
    "MinimumWage",
    "PublicHoliday",
    "StatutoryRates",
    "get_active_config",
    "get_holiday_calendar",
]

logger = get_logger("config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(
    as_of: date | None = None,
    config_dir: Path | None = None,
) -> StatutoryRates:
    """The ONLY public statutory-rate entrypoint.

    Args:
        as_of: Date the rates must be effective on.  ``None`` selects the
            most recent set.
        config_dir: Override path to the sets directory.  Defaults to
            ``payroll_config/sets/``.

    Raises:
        StatutoryConfigNotFoundError: If no set is effective on ``as_of``.
        FileNotFoundError: If the rates directory does not exist.
    """
    rates_dir = (config_dir or _DEFAULT_CONFIG_DIR) / "rates"
    if not rates_dir.is_dir():
        raise FileNotFoundError(f"Statutory rates directory not found: {rates_dir}")

    sets = [load_statutory_rates(path) for path in sorted(rates_dir.glob("*.yaml"))]
    if as_of is None:
        candidates = sets
    else:
        candidates = [s for s in sets if s.is_effective(as_of)]

    if not candidates:
        raise StatutoryConfigNotFoundError(
            as_of=str(as_of),
            available=[s.name for s in sets],
        )

    rates = max(candidates, key=lambda s: s.effective_from)

    logger.info(
        "PAYROLL_CONFIG_TRACE",
        extra={
            "trace_type": "PAYROLL_CONFIG_TRACE",
            "config_set": rates.name,
            "effective_from": rates.effective_from,
            "as_of": as_of,
            "checksum": rates.checksum,
            "bracket_count": len(rates.tax_brackets),
        },
    )
    return rates


def get_holiday_calendar(config_dir: Path | None = None) -> HolidayCalendarDef:
    """Load the gazetted public-holiday list."""
    path = (config_dir or _DEFAULT_CONFIG_DIR) / "public_holidays.yaml"
    calendar = load_holiday_calendar(path)
    logger.debug(
        "holiday_calendar_loaded",
        extra={
            "holiday_count": len(calendar.holidays),
            "checksum": calendar.checksum,
        },
    )
    return calendar
