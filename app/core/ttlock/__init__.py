"""TTLock Open API client library.

Architecture:
- tokens.py: Access/refresh token pair and its atomic state holder
- client.py: HTTP client with OAuth exchange, request signing and error decoding
- session.py: Session manager and the guard run before privileged calls
- locks.py: Lock listing and remote lock/unlock
- cards.py: IC card provisioning (list, add, delete, clear)
- records.py: Unlock record retrieval
- exceptions.py: Typed exceptions for error handling

Usage:
    from app.core.ttlock import TTLockClient, SessionManager, LockService

    client = TTLockClient("https://api.sciener.com", "client-id", "client-secret")
    session = SessionManager(client)
    session.login("owner@example.com", "5f4dcc3b5aa765d61d8327deb882cf99")

    locks = LockService(client).list_locks()
"""
from .client import (
    TTLockClient,
    ApiSuccess,
    ApiFailure,
    decode_response,
    REQUEST_TIMEOUT,
    DEFAULT_API_BASE,
)
from .exceptions import (
    TTLockError,
    NotAuthenticatedError,
    AuthenticationError,
    TransportError,
    RemoteServiceError,
)
from .tokens import TokenPair, TokenState
from .session import (
    SessionManager,
    LoginStrategy,
    default_credentials_login,
    no_implicit_login,
)
from .locks import LockService
from .cards import CardService, DeleteType, ADD_TYPE_GATEWAY
from .records import RecordService

__all__ = [
    # Client
    "TTLockClient",
    "ApiSuccess",
    "ApiFailure",
    "decode_response",
    "REQUEST_TIMEOUT",
    "DEFAULT_API_BASE",

    # Exceptions
    "TTLockError",
    "NotAuthenticatedError",
    "AuthenticationError",
    "TransportError",
    "RemoteServiceError",

    # Session
    "TokenPair",
    "TokenState",
    "SessionManager",
    "LoginStrategy",
    "default_credentials_login",
    "no_implicit_login",

    # Services
    "LockService",
    "CardService",
    "DeleteType",
    "ADD_TYPE_GATEWAY",
    "RecordService",
]
