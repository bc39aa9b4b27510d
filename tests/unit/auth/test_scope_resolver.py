from __future__ import annotations

import logging
from dataclasses import dataclass

import pytest
from sqlalchemy import select

from cableledger.auth.scope import ScopeFilter, resolve_scope
from cableledger.core.exceptions import AuthorizationError, InvalidInputError, ScopeResolutionError
from cableledger.models import Subscriber, TenantRole, TenantStatus


@dataclass
class _Principal:
    id: int | None
    role: object
    parent_id: int | None = None
    status: TenantStatus = TenantStatus.ACTIVE


def test_owner_is_unrestricted_unless_targeting():
    scope = resolve_scope(_Principal(id=1, role=TenantRole.OWNER))
    assert scope.unrestricted is True
    assert scope.scope_id is None

    targeted = resolve_scope(_Principal(id=1, role=TenantRole.OWNER), target_scope_id=42)
    assert targeted == ScopeFilter.for_scope(42)


def test_tenant_admin_scope_is_own_id():
    assert resolve_scope(_Principal(id=7, role=TenantRole.TENANT_ADMIN)).scope_id == 7


def test_operator_inherits_parent_scope():
    scope = resolve_scope(_Principal(id=9, role=TenantRole.OPERATOR, parent_id=7))
    assert scope.scope_id == 7
    assert scope.orphan_fallback is False


def test_orphan_operator_falls_back_to_self_with_warning(caplog):
    with caplog.at_level(logging.WARNING):
        scope = resolve_scope(_Principal(id=9, role=TenantRole.OPERATOR, parent_id=None))

    assert scope.scope_id == 9
    assert scope.orphan_fallback is True
    assert any(record.getMessage() == "scope.orphan_operator_fallback" for record in caplog.records)


def test_scoped_roles_cannot_target_other_scopes():
    with pytest.raises(AuthorizationError, match="Cross-tenant"):
        resolve_scope(_Principal(id=7, role=TenantRole.TENANT_ADMIN), target_scope_id=8)
    assert resolve_scope(_Principal(id=7, role=TenantRole.TENANT_ADMIN), target_scope_id=7).scope_id == 7


def test_blocked_accounts_and_unknown_roles_are_rejected():
    with pytest.raises(AuthorizationError):
        resolve_scope(_Principal(id=7, role=TenantRole.TENANT_ADMIN, status=TenantStatus.BLOCKED))
    with pytest.raises(ScopeResolutionError):
        resolve_scope(_Principal(id=7, role="auditor"))
    with pytest.raises(ScopeResolutionError):
        resolve_scope(_Principal(id=None, role=TenantRole.TENANT_ADMIN))


def test_scope_filter_invariants():
    with pytest.raises(ScopeResolutionError):
        ScopeFilter(scope_id=None)
    with pytest.raises(ScopeResolutionError):
        ScopeFilter(scope_id=3, unrestricted=True)
    with pytest.raises(InvalidInputError):
        ScopeFilter.everything().require_write_scope()
    assert ScopeFilter.for_scope("5").require_write_scope() == 5


def test_apply_adds_scope_predicate():
    scoped = str(ScopeFilter.for_scope(3).apply(select(Subscriber), Subscriber))
    unscoped = str(ScopeFilter.everything().apply(select(Subscriber), Subscriber))
    assert "subscribers.scope_id = :scope_id_1" in scoped
    assert "WHERE" not in unscoped


def test_owns_checks_loaded_rows():
    entity = Subscriber(scope_id=3)
    assert ScopeFilter.for_scope(3).owns(entity)
    assert ScopeFilter.everything().owns(entity)
    assert not ScopeFilter.for_scope(4).owns(entity)
