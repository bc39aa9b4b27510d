"""Monotonic counter rows backing receipt and subscriber-code sequences."""

from __future__ import annotations

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from cableledger.models.base import AuditMixin, Base


class SequenceCounter(Base, AuditMixin):
    __tablename__ = "sequence_counters"

    key: Mapped[str] = mapped_column(String(120), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
