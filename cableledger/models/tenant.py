"""Tenant (operator account) model module."""

from __future__ import annotations

from sqlalchemy import Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cableledger.models.base import AuditMixin, Base
from cableledger.models.enums import TenantRole, TenantStatus


class Tenant(Base, AuditMixin):
    """An operator account. Tenant admins own a scope; operators inherit their parent's."""

    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    role: Mapped[TenantRole] = mapped_column(Enum(TenantRole), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(ForeignKey("tenants.id", ondelete="SET NULL"), nullable=True)
    status: Mapped[TenantStatus] = mapped_column(Enum(TenantStatus), default=TenantStatus.ACTIVE, nullable=False)

    parent = relationship("Tenant", remote_side=[id])
