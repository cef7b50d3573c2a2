"""
Module: payroll_kernel.db.base
Responsibility: Declarative base classes for the payroll ORM models.  Provides
    the UUID primary key convention, the type annotation map for consistent
    column types, and the TrackedBase mixin for row timestamps and actors.
Architecture position: Kernel > DB.  Lowest-level import target for every
    ORM model.  MUST NOT import from payroll_modules or payroll_batch.

Invariants enforced:
    - UUID primary keys stored as String(36) for portability (SQLite in
      tests, any SQLAlchemy backend in deployment).
    - Decimal maps to Numeric(18, 6).  NEVER use float for amounts.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as its 36-character string form."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """
    Declarative base for all payroll models.

    Guarantees:
        - id is always a uuid4-generated UUID.
        - Decimal columns are Numeric(18, 6).
        - datetime columns are timezone-aware.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 6),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TrackedBase(Base):
    """
    Abstract base recording who created and last modified a row, and when.

    ``created_by_id`` is required: every stored payroll record has an actor.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    created_by_id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    updated_by_id: Mapped[PyUUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )
