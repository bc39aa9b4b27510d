"""Audit trail sink for mutating ledger operations."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import sessionmaker

from cableledger.models import AuditAction, AuditLog

logger = logging.getLogger(__name__)


class AuditSink(Protocol):
    def record(
        self,
        actor_id: int | None,
        action: AuditAction,
        entity_type: str,
        entity_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None: ...


class AuditService:
    """Writes audit rows through a dedicated session.

    Recording is fire-and-forget: a failed write is logged and dropped so
    it can never fail the operation being audited.
    """

    def __init__(self, bind: Engine | Connection) -> None:
        self._session_factory = sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)

    def record(
        self,
        actor_id: int | None,
        action: AuditAction,
        entity_type: str,
        entity_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        session = self._session_factory()
        try:
            session.add(
                AuditLog(
                    actor_id=actor_id,
                    action=action,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    details=details or {},
                )
            )
            session.commit()
        except Exception:
            session.rollback()
            logger.exception(
                "audit.write_failed",
                extra={"event": "audit.write_failed", "action": str(action.value), "entity_type": entity_type},
            )
        finally:
            session.close()


class NullAuditSink:
    """Discards audit events."""

    def record(
        self,
        actor_id: int | None,
        action: AuditAction,
        entity_type: str,
        entity_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        return None
