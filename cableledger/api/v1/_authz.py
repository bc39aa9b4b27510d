"""Shared authorization helpers for API v1 route modules."""

from __future__ import annotations

from sqlalchemy.orm import Session

from cableledger.auth.rbac import require_permissions
from cableledger.core.config import get_config
from cableledger.core.dependencies import RequestContext, get_request_context, load_principal
from cableledger.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CableLedgerException,
    DatabaseError,
    DuplicateConflictError,
    InvalidInputError,
    NotFoundError,
)


def _extract_bearer_token(authorization: str | None) -> str:
    if authorization is None or not authorization.strip():
        raise AuthenticationError("Authorization header is required.")
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Authorization header must use Bearer token.")
    return parts[1].strip()


def authorize(
    authorization: str | None,
    permissions: list[str],
    db: Session,
    target_scope_id: int | None = None,
) -> RequestContext:
    token = _extract_bearer_token(authorization)
    principal = load_principal(db, token, settings=get_config())
    require_permissions(principal.role, permissions)
    return get_request_context(db, principal, target_scope_id=target_scope_id)


def map_auth_error(exc: Exception) -> tuple[int, str]:
    if isinstance(exc, AuthenticationError):
        return 401, str(exc)
    if isinstance(exc, AuthorizationError):
        return 403, str(exc)
    return 401, "Unauthorized."


def map_domain_error(exc: CableLedgerException) -> tuple[int, str]:
    if isinstance(exc, NotFoundError):
        return 404, str(exc)
    if isinstance(exc, InvalidInputError):
        return 400, str(exc)
    if isinstance(exc, DuplicateConflictError):
        return 409, str(exc)
    if isinstance(exc, (AuthenticationError, AuthorizationError)):
        return map_auth_error(exc)
    if isinstance(exc, DatabaseError):
        return 500, "Storage failure."
    return 500, "Internal error."
