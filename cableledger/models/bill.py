"""Bill model module."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cableledger.models.base import AuditMixin, Base, ScopeOwnedMixin, utcnow
from cableledger.models.enums import BillStatus


class Bill(Base, AuditMixin, ScopeOwnedMixin):
    __tablename__ = "bills"
    __table_args__ = (
        UniqueConstraint("subscriber_id", "month", "year", name="uq_bills_subscriber_period"),
        CheckConstraint("paid_amount >= 0", name="ck_bills_paid_amount_non_negative"),
        Index("idx_bills_scope_status", "scope_id", "status"),
        Index("idx_bills_scope_period", "scope_id", "year", "month_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subscriber_id: Mapped[int] = mapped_column(
        ForeignKey("subscribers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    month: Mapped[str] = mapped_column(String(16), nullable=False)
    month_number: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    package_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    previous_balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_payable: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    remaining_balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[BillStatus] = mapped_column(Enum(BillStatus), default=BillStatus.UNPAID, nullable=False)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    # Null when the bill came from the scheduled pass rather than a tenant action.
    generated_by: Mapped[int | None] = mapped_column(ForeignKey("tenants.id", ondelete="SET NULL"))

    subscriber = relationship("Subscriber", back_populates="bills")
    payments = relationship("Payment", back_populates="bill", order_by="Payment.id")
