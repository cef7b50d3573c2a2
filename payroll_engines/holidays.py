"""
Public-Holiday Calendar (``payroll_engines.holidays``).

A read-only lookup over a fixed list of gazetted holiday dates.  The
calendar only has an opinion about years it has data for: ``has_year``
lets callers tell "not a holiday" apart from "unknown year".
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date


class HolidayCalendar:
    """Known public holidays keyed by date."""

    def __init__(self, holidays: Iterable[tuple[date, str]] = ()):
        self._holidays: dict[date, str] = dict(holidays)
        self._years = frozenset(d.year for d in self._holidays)

    @classmethod
    def from_definitions(cls, definitions: Iterable) -> HolidayCalendar:
        """Build from objects carrying ``date`` and ``name`` attributes."""
        return cls((d.date, d.name) for d in definitions)

    @property
    def years(self) -> frozenset[int]:
        return self._years

    def has_year(self, year: int) -> bool:
        return year in self._years

    def is_public_holiday(self, day: date) -> bool:
        return day in self._holidays

    def holiday_name(self, day: date) -> str | None:
        return self._holidays.get(day)

    def holidays_between(self, start: date, end: date) -> list[tuple[date, str]]:
        """Holidays in ``[start, end]``, in date order."""
        return sorted(
            (d, name) for d, name in self._holidays.items() if start <= d <= end
        )

    def __len__(self) -> int:
        return len(self._holidays)
