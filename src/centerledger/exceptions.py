"""Custom exception hierarchy for the centerledger package."""

from __future__ import annotations

from typing import Optional, Sequence


class CenterLedgerError(Exception):
    """Base class for all centerledger specific errors."""


class UnknownLedgerError(CenterLedgerError, KeyError):
    """Raised when a ledger schema key is not registered."""


class ValidationError(CenterLedgerError, ValueError):
    """Raised when a form is submitted with required fields missing."""

    def __init__(self, message: str, *, missing: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.missing = tuple(missing)


class PermissionDeniedError(CenterLedgerError):
    """Raised when the current role may not perform an action."""


class MissingCredentialsError(CenterLedgerError):
    """Raised before any network call when no access token is available."""


class StoreError(CenterLedgerError):
    """Raised when the backend answers with a non-success status."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class AuthorizationError(StoreError):
    """Raised on ``401``/``403`` responses or rejected sign-in attempts."""


class RecordNotFoundError(StoreError):
    """Raised when an update or delete targets a record the backend does not have."""


class StoreUnavailableError(StoreError):
    """Raised when the backend cannot be reached at all."""
