"""Tenant scope resolution and enforcement.

Every ledger read and write is filtered through a `ScopeFilter` produced by
`resolve_scope`. Services never build their own tenant filters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import Select

from cableledger.core.exceptions import AuthorizationError, InvalidInputError, ScopeResolutionError
from cableledger.models.enums import TenantRole, TenantStatus

logger = logging.getLogger(__name__)


class Principal(Protocol):
    id: int
    role: TenantRole
    parent_id: int | None
    status: TenantStatus


@dataclass(frozen=True)
class ScopeFilter:
    """Resolved tenant boundary. `scope_id=None` means unrestricted (owner only)."""

    scope_id: int | None
    unrestricted: bool = False
    orphan_fallback: bool = False

    def __post_init__(self) -> None:
        if self.scope_id is None and not self.unrestricted:
            raise ScopeResolutionError("A scoped filter requires a scope id.")
        if self.scope_id is not None and self.unrestricted:
            raise ScopeResolutionError("An unrestricted filter cannot carry a scope id.")

    @classmethod
    def for_scope(cls, scope_id: int) -> "ScopeFilter":
        return cls(scope_id=int(scope_id))

    @classmethod
    def everything(cls) -> "ScopeFilter":
        return cls(scope_id=None, unrestricted=True)

    def apply(self, query: Select, model: Any) -> Select:
        """Narrow a select over a scope-owned model to this scope."""
        if self.unrestricted:
            return query
        return query.where(model.scope_id == self.scope_id)

    def owns(self, entity: Any) -> bool:
        return self.unrestricted or int(entity.scope_id) == self.scope_id

    def require_write_scope(self) -> int:
        """Return the concrete scope id a write must be tagged with."""
        if self.scope_id is None:
            raise InvalidInputError("A target scope is required for this operation.")
        return self.scope_id


def resolve_scope(principal: Principal, target_scope_id: int | None = None) -> ScopeFilter:
    """Map a persisted principal to the scope every query must be filtered by.

    Owners see everything unless they name a `target_scope_id`. Tenant admins
    own their own scope. Operators inherit their parent's scope and fall back
    to their own id when orphaned; scoped roles never resolve to an
    unrestricted filter.
    """
    if principal.status == TenantStatus.BLOCKED:
        raise AuthorizationError("Account is blocked.")

    if principal.role == TenantRole.OWNER:
        if target_scope_id is None:
            return ScopeFilter.everything()
        return ScopeFilter.for_scope(target_scope_id)

    if principal.role == TenantRole.TENANT_ADMIN:
        resolved = ScopeFilter(scope_id=_require_id(principal.id, principal))
    elif principal.role == TenantRole.OPERATOR:
        if principal.parent_id is not None:
            resolved = ScopeFilter(scope_id=int(principal.parent_id))
        else:
            logger.warning(
                "scope.orphan_operator_fallback",
                extra={"event": "scope.orphan_operator_fallback", "tenant_id": principal.id},
            )
            resolved = ScopeFilter(scope_id=_require_id(principal.id, principal), orphan_fallback=True)
    else:
        raise ScopeResolutionError(f"Unknown tenant role: {principal.role!r}")

    if target_scope_id is not None and int(target_scope_id) != resolved.scope_id:
        raise AuthorizationError("Cross-tenant access denied.")
    return resolved


def _require_id(value: int | None, principal: Principal) -> int:
    if value is None:
        raise ScopeResolutionError(f"Principal with role {principal.role!r} has no persisted id.")
    return int(value)
