"""
Payroll ORM Persistence Models (``payroll_modules.payroll.orm``).

Responsibility:
    SQLAlchemy ORM models that persist computed ``PayrollEntry`` values.
    Scalar amounts live on ``PayrollEntryModel``; allowances and other
    deductions are ``PayrollLineItemModel`` children.  Both provide
    ``to_dto()`` / ``from_dto()`` conversion.

Architecture position:
    **Modules layer** -- persistence companions to the pure DTO models.
    Inherits from ``TrackedBase`` (kernel DB base) which provides:
    id (UUID PK), created_at, updated_at, created_by_id (NOT NULL UUID),
    updated_by_id (nullable UUID).

Invariants enforced:
    - All monetary fields use Decimal (Numeric) -- NEVER float.  Values
      read back are re-quantized to cents so the entry's net-pay
      invariant holds on reload.
    - Enum fields stored as String containing the enum ``.value``.
    - The period is stored as its start and end dates plus its identifier.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_kernel.db.base import TrackedBase
from payroll_kernel.domain.values import quantize_currency

LINE_KIND_ALLOWANCE = "allowance"
LINE_KIND_DEDUCTION = "deduction"


# ---------------------------------------------------------------------------
# PayrollEntryModel
# ---------------------------------------------------------------------------

class PayrollEntryModel(TrackedBase):
    """
    ORM model for ``PayrollEntry`` -- one employee's pay for one period.

    Contract:
        ``status`` moves from ``pending`` to ``paid`` only through
        ``PayrollEntryStore.mark_paid``.  Paid rows are not updated or
        deleted by the store.
    """

    __tablename__ = "payroll_entries"

    employee_id: Mapped[str] = mapped_column(String(100), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(200), nullable=False)
    tax_identifier: Mapped[str | None] = mapped_column(String(20), nullable=True)
    tax_code: Mapped[str | None] = mapped_column(String(10), nullable=True)
    period_key: Mapped[str] = mapped_column(String(30), nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    gross_pay: Mapped[Decimal] = mapped_column(nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(nullable=False)
    tax: Mapped[Decimal] = mapped_column(nullable=False)
    levy: Mapped[Decimal] = mapped_column(nullable=False)
    contribution_employee: Mapped[Decimal] = mapped_column(nullable=False)
    contribution_employer: Mapped[Decimal] = mapped_column(nullable=False)
    loan_repayment: Mapped[Decimal] = mapped_column(nullable=False)
    overtime: Mapped[Decimal] = mapped_column(nullable=False)
    public_holiday: Mapped[Decimal] = mapped_column(nullable=False)

    bank_account: Mapped[str | None] = mapped_column(String(30), nullable=True)
    payment_reference: Mapped[str] = mapped_column(String(100), nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)

    lines: Mapped[list["PayrollLineItemModel"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="PayrollLineItemModel.position",
    )

    __table_args__ = (
        Index("idx_payroll_entry_employee", "employee_id"),
        Index("idx_payroll_entry_period", "period_key"),
        Index("idx_payroll_entry_status", "status"),
    )

    def to_dto(self):
        from payroll_modules.payroll.models import (
            Additions,
            Allowance,
            ContributionSplit,
            Deductions,
            OtherDeduction,
            PaymentDetails,
            PayPeriod,
            PayrollEntry,
            PayrollStatus,
        )
        allowances = tuple(
            Allowance(description=line.description, amount=quantize_currency(line.amount))
            for line in self.lines if line.kind == LINE_KIND_ALLOWANCE
        )
        other = tuple(
            OtherDeduction(description=line.description, amount=quantize_currency(line.amount))
            for line in self.lines if line.kind == LINE_KIND_DEDUCTION
        )
        return PayrollEntry(
            id=str(self.id),
            employee_id=self.employee_id,
            employee_name=self.employee_name,
            tax_identifier=self.tax_identifier,
            tax_code=self.tax_code,
            period=PayPeriod(start=self.period_start, end=self.period_end),
            gross_pay=quantize_currency(self.gross_pay),
            net_pay=quantize_currency(self.net_pay),
            status=PayrollStatus(self.status),
            deductions=Deductions(
                tax=quantize_currency(self.tax),
                levy=quantize_currency(self.levy),
                contribution=ContributionSplit(
                    employee=quantize_currency(self.contribution_employee),
                    employer=quantize_currency(self.contribution_employer),
                ),
                loan_repayment=quantize_currency(self.loan_repayment),
                other=other,
            ),
            additions=Additions(
                overtime=quantize_currency(self.overtime),
                public_holiday=quantize_currency(self.public_holiday),
                allowances=allowances,
            ),
            payment=PaymentDetails(
                bank_account=self.bank_account,
                reference=self.payment_reference,
                payment_date=self.payment_date,
            ),
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "PayrollEntryModel":
        lines = [
            PayrollLineItemModel(
                kind=LINE_KIND_ALLOWANCE,
                position=i,
                description=a.description,
                amount=a.amount,
                created_by_id=created_by_id,
            )
            for i, a in enumerate(dto.additions.allowances)
        ]
        lines += [
            PayrollLineItemModel(
                kind=LINE_KIND_DEDUCTION,
                position=i,
                description=d.description,
                amount=d.amount,
                created_by_id=created_by_id,
            )
            for i, d in enumerate(dto.deductions.other)
        ]
        return cls(
            id=UUID(str(dto.id)),
            employee_id=dto.employee_id,
            employee_name=dto.employee_name,
            tax_identifier=dto.tax_identifier,
            tax_code=dto.tax_code,
            period_key=dto.period.identifier,
            period_start=dto.period.start,
            period_end=dto.period.end,
            status=dto.status.value if hasattr(dto.status, "value") else dto.status,
            gross_pay=dto.gross_pay,
            net_pay=dto.net_pay,
            tax=dto.deductions.tax,
            levy=dto.deductions.levy,
            contribution_employee=dto.deductions.contribution.employee,
            contribution_employer=dto.deductions.contribution.employer,
            loan_repayment=dto.deductions.loan_repayment,
            overtime=dto.additions.overtime,
            public_holiday=dto.additions.public_holiday,
            bank_account=dto.payment.bank_account,
            payment_reference=dto.payment.reference,
            payment_date=dto.payment.payment_date,
            lines=lines,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<PayrollEntryModel {self.period_key} {self.employee_id}: "
            f"net={self.net_pay} ({self.status})>"
        )


# ---------------------------------------------------------------------------
# PayrollLineItemModel
# ---------------------------------------------------------------------------

class PayrollLineItemModel(TrackedBase):
    """
    ORM model for an allowance or other deduction on a payroll entry.

    ``kind`` is ``allowance`` or ``deduction``; ``position`` keeps the
    order the lines had on the DTO.
    """

    __tablename__ = "payroll_entry_lines"

    entry_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_entries.id", ondelete="CASCADE"), nullable=False,
    )
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    position: Mapped[int] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    entry: Mapped[PayrollEntryModel] = relationship(back_populates="lines")

    __table_args__ = (
        Index("idx_payroll_entry_line_entry", "entry_id"),
    )

    def __repr__(self) -> str:
        return f"<PayrollLineItemModel {self.kind} {self.description}: {self.amount}>"
