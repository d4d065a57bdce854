"""Marketplace error taxonomy.

Each error carries the HTTP status it maps to; the app-level exception
handler renders them as ``{"detail": message}``.
"""


class MarketplaceError(Exception):
    """Base error for marketplace operations."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class UnauthenticatedError(MarketplaceError):
    """No valid session."""

    status_code = 401


class UnauthorizedError(MarketplaceError):
    """Caller lacks the role or approval the operation requires."""

    status_code = 403


class NotFoundError(MarketplaceError):
    """Entity does not exist."""

    status_code = 404


class InvalidStateError(MarketplaceError):
    """Entity exists but is not in a state permitting the operation."""

    status_code = 404


class IneligibleError(MarketplaceError):
    """Target user exists but is not approved."""

    status_code = 404


class RoleMismatchError(MarketplaceError):
    """Target user's role flags don't match the job type."""

    status_code = 400


class ConflictError(MarketplaceError):
    """Duplicate record, or a concurrent request changed the state first."""

    status_code = 409


class ValidationFailedError(MarketplaceError):
    """Request data rejected before touching storage."""

    status_code = 400


class PersistenceError(MarketplaceError):
    """An underlying write failed."""

    status_code = 500
