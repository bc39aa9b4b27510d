"""Role-based authorization helpers."""

from __future__ import annotations

from cableledger.core.exceptions import AuthorizationError

# Permission strings are kept explicit for endpoint-level declarations.
ROLE_PERMISSIONS: dict[str, set[str]] = {
    "owner": {
        "*",
    },
    "tenant_admin": {
        "bills.generate",
        "bills.read",
        "payments.record",
        "payments.read",
        "payments.delivery",
        "subscribers.read",
        "subscribers.write",
        "subscribers.delete",
    },
    "operator": {
        "bills.generate",
        "bills.read",
        "payments.record",
        "payments.read",
        "payments.delivery",
        "subscribers.read",
        "subscribers.write",
    },
}


def _role_key(role: object) -> str:
    return str(getattr(role, "value", role)).lower()


def get_permissions_for_role(role: object) -> set[str]:
    """Return permissions granted to a role."""
    return ROLE_PERMISSIONS.get(_role_key(role), set())


def has_permissions(role: object, required: list[str] | set[str] | tuple[str, ...]) -> bool:
    """Check if role includes every required permission."""
    granted = get_permissions_for_role(role)
    if "*" in granted:
        return True
    return set(required).issubset(granted)


def require_permissions(role: object, required: list[str] | set[str] | tuple[str, ...]) -> None:
    """Raise when a role lacks required permissions."""
    if has_permissions(role=role, required=required):
        return
    missing = sorted(set(required) - get_permissions_for_role(role))
    raise AuthorizationError(f"Missing required permissions: {', '.join(missing)}")
