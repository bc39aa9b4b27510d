"""Dependency providers for API handlers and background workers."""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass

from sqlalchemy.orm import Session

from cableledger.auth.jwt import verify_access_token
from cableledger.auth.scope import ScopeFilter, resolve_scope
from cableledger.core.config import Config, get_config
from cableledger.core.exceptions import AuthenticationError
from cableledger.database.db import get_db
from cableledger.models import AuditAction, Tenant
from cableledger.services.audit_service import AuditService, AuditSink


@dataclass(frozen=True)
class RequestContext:
    principal: Tenant
    scope: ScopeFilter

    @property
    def actor_id(self) -> int:
        return int(self.principal.id)


def get_settings() -> Config:
    """Return validated application configuration."""
    return get_config()


def get_db_session() -> Generator[Session, None, None]:
    """Yield SQLAlchemy session for dependency injection."""
    yield from get_db()


def load_principal(db: Session, token: str, settings: Config | None = None) -> Tenant:
    """Verify a bearer token and load the tenant account it names."""
    cfg = settings or get_settings()
    tenant_id = verify_access_token(token, secret=cfg.JWT_SECRET, permissions_version=cfg.JWT_PERMISSIONS_VERSION)
    principal = db.get(Tenant, tenant_id)
    if principal is None:
        raise AuthenticationError("Unknown principal.")
    return principal


def get_request_context(
    db: Session,
    principal: Tenant,
    target_scope_id: int | None = None,
    audit: AuditSink | None = None,
) -> RequestContext:
    """Resolve the request scope, auditing orphaned-operator fallbacks."""
    scope = resolve_scope(principal, target_scope_id=target_scope_id)
    if scope.orphan_fallback:
        sink = audit or AuditService(bind=db.get_bind())
        sink.record(
            principal.id,
            AuditAction.ORPHAN_SCOPE_FALLBACK,
            "Tenant",
            principal.id,
            {"resolved_scope_id": scope.scope_id},
        )
    return RequestContext(principal=principal, scope=scope)
