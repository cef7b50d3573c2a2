"""
Payroll Entry Store (``payroll_modules.payroll.store``).

Responsibility:
    Persists and queries computed payroll entries through a caller-owned
    SQLAlchemy ``Session``.  Enforces that a PAID entry is never changed
    or deleted.

Architecture position:
    **Modules layer** -- the only persistence boundary of the payroll
    module.  The builder, exporters and batch processor never touch it;
    the embedding application decides what to store.

Failure modes:
    - ``PayrollEntryNotFoundError`` -- unknown entry id.
    - ``PayrollEntryImmutableError`` -- mark_paid or delete on a PAID entry.

Transaction boundary:
    The store flushes but never commits.  Callers wrap it in
    ``payroll_kernel.db.session_scope()`` or commit themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from payroll_kernel.domain.values import ZERO, quantize_currency
from payroll_kernel.exceptions import (
    PayrollEntryImmutableError,
    PayrollEntryNotFoundError,
)
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.models import PayPeriod, PayrollEntry, PayrollStatus
from payroll_modules.payroll.orm import PayrollEntryModel

logger = get_logger("modules.payroll.store")


@dataclass(frozen=True)
class PayrollStats:
    """Totals across every stored entry."""
    total_payroll: Decimal          # gross
    pending_payments: int
    tax_liability: Decimal          # tax + levy
    contribution_liability: Decimal  # employee + employer
    loan_liability: Decimal


class PayrollEntryStore:
    """CRUD and queries for ``PayrollEntry`` rows."""

    def __init__(self, session: Session):
        self._session = session

    def add(self, entry: PayrollEntry, actor_id: UUID) -> PayrollEntry:
        model = PayrollEntryModel.from_dto(entry, created_by_id=actor_id)
        self._session.add(model)
        self._session.flush()
        logger.info(
            "payroll_entry_stored",
            extra={
                "entry_id": entry.id,
                "employee_id": entry.employee_id,
                "period": entry.period.identifier,
                "net_pay": str(entry.net_pay),
            },
        )
        return model.to_dto()

    def add_all(self, entries: list[PayrollEntry], actor_id: UUID) -> list[PayrollEntry]:
        return [self.add(entry, actor_id) for entry in entries]

    def get(self, entry_id: str) -> PayrollEntry:
        return self._load(entry_id).to_dto()

    def mark_paid(
        self,
        entry_id: str,
        actor_id: UUID,
        payment_date: date | None = None,
    ) -> PayrollEntry:
        """Transition PENDING -> PAID.  A second call raises."""
        model = self._load(entry_id)
        if model.status == PayrollStatus.PAID.value:
            raise PayrollEntryImmutableError(entry_id, "mark paid")

        model.status = PayrollStatus.PAID.value
        if payment_date is not None:
            model.payment_date = payment_date
        model.updated_by_id = actor_id
        self._session.flush()

        logger.info(
            "payroll_entry_marked_paid",
            extra={"entry_id": entry_id, "payment_date": model.payment_date},
        )
        return model.to_dto()

    def delete(self, entry_id: str) -> None:
        """Remove a PENDING entry."""
        model = self._load(entry_id)
        if model.status == PayrollStatus.PAID.value:
            raise PayrollEntryImmutableError(entry_id, "delete")
        self._session.delete(model)
        self._session.flush()
        logger.info("payroll_entry_deleted", extra={"entry_id": entry_id})

    def history(self, employee_id: str) -> list[PayrollEntry]:
        """The employee's entries, newest payment date first."""
        stmt = (
            select(PayrollEntryModel)
            .where(PayrollEntryModel.employee_id == employee_id)
            .order_by(
                PayrollEntryModel.payment_date.desc(),
                PayrollEntryModel.period_start.desc(),
            )
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def for_period(self, period: PayPeriod) -> list[PayrollEntry]:
        stmt = (
            select(PayrollEntryModel)
            .where(
                PayrollEntryModel.period_start == period.start,
                PayrollEntryModel.period_end == period.end,
            )
            .order_by(PayrollEntryModel.employee_id)
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def stats(self) -> PayrollStats:
        m = PayrollEntryModel
        row = self._session.execute(
            select(
                func.coalesce(func.sum(m.gross_pay), 0),
                func.coalesce(func.sum(m.tax + m.levy), 0),
                func.coalesce(
                    func.sum(m.contribution_employee + m.contribution_employer), 0
                ),
                func.coalesce(func.sum(m.loan_repayment), 0),
            )
        ).one()
        pending = self._session.scalar(
            select(func.count()).select_from(m).where(
                m.status == PayrollStatus.PENDING.value
            )
        )
        gross, tax, contribution, loan = (
            quantize_currency(Decimal(str(value or ZERO))) for value in row
        )
        return PayrollStats(
            total_payroll=gross,
            pending_payments=pending or 0,
            tax_liability=tax,
            contribution_liability=contribution,
            loan_liability=loan,
        )

    def _load(self, entry_id: str) -> PayrollEntryModel:
        try:
            key = UUID(str(entry_id))
        except ValueError:
            raise PayrollEntryNotFoundError(str(entry_id)) from None
        model = self._session.get(PayrollEntryModel, key)
        if model is None:
            raise PayrollEntryNotFoundError(str(entry_id))
        return model
