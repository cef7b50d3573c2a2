"""
Configuration Loader (``payroll_config.loader``).

Responsibility
--------------
Loads YAML rate-set files and the public-holiday file and parses them into
the frozen dataclasses in ``payroll_config.schema``.  Callers go through
``payroll_config.get_active_config()`` / ``get_holiday_calendar()``; this
module is the parsing layer underneath them and the tests.

Invariants enforced
-------------------
* Every rate, threshold and wage is read as ``Decimal`` via ``str`` --
  YAML floats never reach arithmetic.
* Missing required keys raise ``KeyError``; there are no silent defaults
  for statutory values.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  document, recorded on the parsed object for traceability.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid date  -> ``ValueError`` from ``date.fromisoformat``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import (
    HolidayCalendarDef,
    MinimumWage,
    PublicHoliday,
    StatutoryRates,
)
from payroll_kernel.domain.values import UNBOUNDED, TaxBracket, to_decimal


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_tax_brackets(rows: list[dict[str, Any]]) -> tuple[TaxBracket, ...]:
    """Parse bracket rows; a null ``upper`` marks the unbounded top band."""
    return tuple(
        TaxBracket(
            upper=UNBOUNDED if row.get("upper") is None else to_decimal(row["upper"]),
            rate=to_decimal(row["rate"]),
        )
        for row in rows
    )


def parse_statutory_rates(data: dict[str, Any]) -> StatutoryRates:
    """
    Parse a ``StatutoryRates`` set from a loaded YAML dict.

    Raises:
        KeyError: if required keys are missing.
        ValueError: if dates or numbers cannot be parsed, or the bracket
            table is not ascending with an unbounded top band.
    """
    contribution = data["contribution"]
    loan = data["student_loan"]
    return StatutoryRates(
        name=data["name"],
        effective_from=parse_date(data["effective_from"]),
        effective_to=parse_date(data["effective_to"]) if data.get("effective_to") else None,
        periods_per_year=int(data.get("periods_per_year", 12)),
        tax_brackets=parse_tax_brackets(data["income_tax"]["brackets"]),
        levy_rate=to_decimal(data["levy"]["rate"]),
        loan_threshold=to_decimal(loan["threshold"]),
        loan_rate=to_decimal(loan["rate"]),
        contribution_rates=tuple(
            to_decimal(rate) for rate in contribution["employee_rates"]
        ),
        default_employer_contribution_rate=to_decimal(
            contribution["default_employer_rate"]
        ),
        minimum_wages=tuple(
            MinimumWage(category=category, hourly_rate=to_decimal(rate))
            for category, rate in data["minimum_wage"].items()
        ),
        tax_codes=tuple(data["tax_codes"]),
        checksum=compute_checksum(data),
    )


def parse_holiday_calendar(data: dict[str, Any]) -> HolidayCalendarDef:
    """Parse the ``years: {YYYY: [{date, name}, ...]}`` holiday document."""
    holidays: list[PublicHoliday] = []
    for year, rows in sorted((data.get("years") or {}).items()):
        for row in rows:
            holiday = PublicHoliday(date=parse_date(row["date"]), name=row["name"])
            if holiday.date.year != int(year):
                raise ValueError(
                    f"Holiday {holiday.name!r} on {holiday.date} listed under year {year}"
                )
            holidays.append(holiday)
    return HolidayCalendarDef(
        holidays=tuple(sorted(holidays, key=lambda h: h.date)),
        checksum=compute_checksum(data),
    )


def load_statutory_rates(path: Path) -> StatutoryRates:
    """Load and parse one rate-set file."""
    return parse_statutory_rates(load_yaml_file(path))


def load_holiday_calendar(path: Path) -> HolidayCalendarDef:
    """Load and parse the public-holiday file."""
    return parse_holiday_calendar(load_yaml_file(path))
