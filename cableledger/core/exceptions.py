"""Custom exceptions for the CableLedger application."""


class CableLedgerException(Exception):
    """Base exception for CableLedger application."""

    pass


class InvalidInputError(CableLedgerException):
    """Raised when request input fails validation."""

    pass


class InvalidAmountError(InvalidInputError):
    """Raised when a monetary amount is missing, malformed or not positive."""

    pass


class NotFoundError(CableLedgerException):
    """Raised when a resource is not found (or lies outside the caller's scope)."""

    pass


class DuplicateConflictError(CableLedgerException):
    """Raised when a write violates a uniqueness rule."""

    pass


class DatabaseError(CableLedgerException):
    """Raised when a database operation fails."""

    pass


class ConfigurationError(CableLedgerException):
    """Raised when configuration is invalid."""

    pass


class AuthenticationError(CableLedgerException):
    """Raised when authentication fails."""

    pass


class AuthorizationError(CableLedgerException):
    """Raised when an authenticated principal is not allowed to act."""

    pass


class ScopeResolutionError(AuthorizationError):
    """Raised when a scoped principal cannot be mapped to a tenant scope."""

    pass
