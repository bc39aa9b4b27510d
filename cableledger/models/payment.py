"""Payment model module."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cableledger.models.base import AuditMixin, Base, ScopeOwnedMixin, utcnow
from cableledger.models.enums import DeliveryStatus, PaymentMode


class Payment(Base, AuditMixin, ScopeOwnedMixin):
    """Append-only record of funds applied to a bill.

    Only the delivery fields (`receipt_sent`, `whatsapp_status`,
    `whatsapp_message_id`) may change after insert.
    """

    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("receipt_id", name="uq_payments_receipt_id"),
        CheckConstraint("paid_amount > 0", name="ck_payments_paid_amount_positive"),
        Index("idx_payments_scope_date", "scope_id", "payment_date"),
        Index("idx_payments_scope_mode", "scope_id", "payment_mode"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    receipt_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    subscriber_id: Mapped[int] = mapped_column(
        ForeignKey("subscribers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    bill_id: Mapped[int] = mapped_column(ForeignKey("bills.id", ondelete="RESTRICT"), nullable=False, index=True)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # Bill's remaining balance right after this payment; negative means advance credit.
    remaining_balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_mode: Mapped[PaymentMode] = mapped_column(Enum(PaymentMode), nullable=False)
    transaction_ref: Mapped[str | None] = mapped_column(String(120))
    notes: Mapped[str | None] = mapped_column(Text)
    collected_by: Mapped[int] = mapped_column(ForeignKey("tenants.id", ondelete="RESTRICT"), nullable=False, index=True)
    payment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    receipt_sent: Mapped[bool] = mapped_column(default=False, nullable=False)
    whatsapp_status: Mapped[DeliveryStatus] = mapped_column(
        Enum(DeliveryStatus), default=DeliveryStatus.PENDING, nullable=False
    )
    whatsapp_message_id: Mapped[str | None] = mapped_column(String(120))

    subscriber = relationship("Subscriber")
    bill = relationship("Bill", back_populates="payments")
