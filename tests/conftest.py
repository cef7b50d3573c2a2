"""
Pytest fixtures for the payroll engine test suite.

Provides:
- In-memory SQLite sessions for store and ORM tests
- The packaged statutory rate set and holiday calendar
- A deterministic clock, builder and batch processor
- Employee and time-entry factories

DESIGN RULE: Every fixture is opt-in.  No autouse.
"""

from collections.abc import Callable, Generator
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from payroll_batch import PayrollBatchProcessor
from payroll_config import StatutoryRates, get_active_config, get_holiday_calendar
from payroll_engines.holidays import HolidayCalendar
from payroll_kernel.db.base import Base
from payroll_kernel.domain.clock import DeterministicClock
from payroll_modules.payroll.builder import PayrollEntryBuilder
from payroll_modules.payroll.config import PayrollConfig
from payroll_modules.payroll.models import (
    Employee,
    PayBasis,
    TimeCategory,
    TimeEntry,
)

# ---------------------------------------------------------------------------
# Well-known values
# ---------------------------------------------------------------------------

TEST_ACTOR_ID = UUID("00000000-0000-4000-a000-000000000001")

# Both pass the mod-11 check.
VALID_IRD_NUMBER = "49-091-850"
VALID_IRD_NUMBER_ALT = "123456785"

VALID_BANK_ACCOUNT = "12-3456-7890123-00"

RUN_TIME = datetime(2024, 7, 31, 17, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Configuration and collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def statutory() -> StatutoryRates:
    """The packaged 2024-25 statutory rate set."""
    return get_active_config(as_of=date(2024, 7, 31))


@pytest.fixture
def holiday_calendar() -> HolidayCalendar:
    return HolidayCalendar.from_definitions(get_holiday_calendar().holidays)


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(RUN_TIME)


@pytest.fixture
def payroll_config() -> PayrollConfig:
    return PayrollConfig()


@pytest.fixture
def builder(payroll_config, statutory, clock, holiday_calendar) -> PayrollEntryBuilder:
    return PayrollEntryBuilder(
        config=payroll_config,
        statutory=statutory,
        clock=clock,
        calendar=holiday_calendar,
    )


@pytest.fixture
def processor(builder, clock, payroll_config) -> PayrollBatchProcessor:
    return PayrollBatchProcessor(builder=builder, clock=clock, config=payroll_config)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
def actor_id() -> UUID:
    return TEST_ACTOR_ID


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """A fresh in-memory database with the payroll tables."""
    import payroll_modules.payroll.orm  # noqa: F401

    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine)()
    yield session
    session.close()
    engine.dispose()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def _make_employee(**overrides) -> Employee:
    fields = {
        "id": "E001",
        "name": "Aroha Ngata",
        "pay_basis": PayBasis.SALARY,
        "annual_salary": Decimal("95000"),
        "tax_code": "M",
        "contribution_rate": Decimal("3"),
        "bank_account": VALID_BANK_ACCOUNT,
        "tax_identifier": VALID_IRD_NUMBER,
        "start_date": date(2020, 1, 6),
    }
    fields.update(overrides)
    return Employee(**fields)


def _make_hourly_employee(**overrides) -> Employee:
    fields = {
        "id": "H001",
        "name": "Tane Walker",
        "pay_basis": PayBasis.HOURLY,
        "annual_salary": None,
        "hourly_rate": Decimal("25.00"),
    }
    fields.update(overrides)
    return _make_employee(**fields)


def _make_time_entry(
    employee_id: str = "H001",
    day: date = date(2024, 7, 8),
    start_hour: int = 9,
    hours: int = 8,
    break_minutes: int = 0,
    category: TimeCategory = TimeCategory.REGULAR,
    entry_id: str | None = None,
) -> TimeEntry:
    clock_in = datetime(day.year, day.month, day.day, start_hour, 0)
    clock_out = clock_in + timedelta(hours=hours, minutes=break_minutes)
    return TimeEntry(
        id=entry_id or f"T-{employee_id}-{day.isoformat()}-{start_hour}",
        employee_id=employee_id,
        clock_in=clock_in,
        clock_out=clock_out,
        break_minutes=break_minutes,
        category=category,
    )


@pytest.fixture
def make_employee() -> Callable[..., Employee]:
    """Salaried employee with valid master data; override any field."""
    return _make_employee


@pytest.fixture
def make_hourly_employee() -> Callable[..., Employee]:
    """Hourly employee at $25.00 with valid master data."""
    return _make_hourly_employee


@pytest.fixture
def make_time_entry() -> Callable[..., TimeEntry]:
    """Closed entry of ``hours`` net hours (plus ``break_minutes``)."""
    return _make_time_entry
