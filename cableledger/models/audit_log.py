"""Audit log model module."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Enum, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from cableledger.models.base import AuditMixin, Base
from cableledger.models.enums import AuditAction


class AuditLog(Base, AuditMixin):
    """Write-only trail of mutating ledger operations."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("idx_audit_logs_actor_created", "actor_id", "created_at"),
        Index("idx_audit_logs_entity", "entity_type", "entity_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # No FK: the scheduled pass and deleted rows still need a trail.
    actor_id: Mapped[int | None] = mapped_column(Integer)
    action: Mapped[AuditAction] = mapped_column(Enum(AuditAction), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(40), nullable=False)
    entity_id: Mapped[int | None] = mapped_column(Integer)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
