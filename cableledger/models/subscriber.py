"""Subscriber model module."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cableledger.models.base import AuditMixin, Base, ScopeOwnedMixin
from cableledger.models.enums import ServiceType, SubscriberStatus


class Subscriber(Base, AuditMixin, ScopeOwnedMixin):
    __tablename__ = "subscribers"
    __table_args__ = (
        UniqueConstraint("scope_id", "subscriber_code", name="uq_subscribers_scope_code"),
        UniqueConstraint("scope_id", "phone_number", name="uq_subscribers_scope_phone"),
        CheckConstraint("package_amount >= 0", name="ck_subscribers_package_amount_non_negative"),
        Index("idx_subscribers_scope_status", "scope_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subscriber_code: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    address: Mapped[str | None] = mapped_column(String(500))
    area: Mapped[str | None] = mapped_column(String(120), index=True)
    service_type: Mapped[ServiceType | None] = mapped_column(Enum(ServiceType))
    set_top_box_id: Mapped[str | None] = mapped_column(String(120))
    package_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # Signed running balance: positive is owed, negative is advance credit.
    previous_balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    status: Mapped[SubscriberStatus] = mapped_column(
        Enum(SubscriberStatus), default=SubscriberStatus.ACTIVE, nullable=False
    )
    whatsapp_enabled: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_by: Mapped[int] = mapped_column(ForeignKey("tenants.id", ondelete="RESTRICT"), nullable=False)

    bills = relationship("Bill", back_populates="subscriber", order_by="Bill.id")
