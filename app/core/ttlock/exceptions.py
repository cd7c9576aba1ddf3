"""TTLock-specific exceptions for error handling."""
from __future__ import annotations


class TTLockError(Exception):
    """Base exception for all TTLock operations."""
    pass


class NotAuthenticatedError(TTLockError):
    """No access token is held, or no refresh token when one is required."""
    pass


class AuthenticationError(TTLockError):
    """Login or refresh-token exchange with the OAuth endpoints failed."""
    pass


class TransportError(TTLockError):
    """Failure below the TTLock application protocol.

    Connection errors, timeouts, unparseable bodies and non-2xx responses
    that carry no TTLock error code all end up here.

    Attributes:
        status_code: HTTP status code, when a response was received
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class RemoteServiceError(TTLockError):
    """Business-level failure reported by TTLock inside a response body.

    Attributes:
        code: Nonzero ``errcode`` reported by TTLock
        message: ``errmsg`` reported by TTLock (or a generated default)
    """

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")
