"""Session management and the authentication guard for privileged calls."""
from __future__ import annotations
import logging
from typing import Callable, Optional

from .client import TTLockClient
from .exceptions import NotAuthenticatedError
from .tokens import TokenPair

logger = logging.getLogger(__name__)

# Called with the client when a privileged call finds no token; may log in.
LoginStrategy = Callable[[TTLockClient], None]


def no_implicit_login(client: TTLockClient) -> None:
    """Strategy that never logs in on the caller's behalf."""
    return None


def default_credentials_login(username: str, password_md5: str) -> LoginStrategy:
    """Build a strategy that logs in with preconfigured account credentials.

    When either value is empty the strategy does nothing, so the guard
    reports NotAuthenticatedError instead.
    """
    def _login(client: TTLockClient) -> None:
        if not username or not password_md5:
            return
        logger.info("No TTLock session - logging in with configured default credentials")
        client.login(username, password_md5)

    return _login


class SessionManager:
    """Owns the login lifecycle of one TTLockClient.

    Usage:
        session = SessionManager(client, default_credentials_login(user, md5))
        session.ensure_authenticated()
        LockService(client).list_locks()
    """

    def __init__(self, client: TTLockClient, implicit_login: Optional[LoginStrategy] = None):
        self.client = client
        self._implicit_login = implicit_login or no_implicit_login

    def is_authenticated(self) -> bool:
        return self.client.is_authenticated()

    def login(self, username: str, password_md5: str) -> TokenPair:
        return self.client.login(username, password_md5)

    def refresh(self) -> TokenPair:
        return self.client.refresh()

    def ensure_authenticated(self) -> None:
        """Guard run once before every privileged operation.

        Raises:
            NotAuthenticatedError: If no token is held and implicit login
                is unavailable
            AuthenticationError: If the implicit login was attempted and failed
        """
        if self.client.is_authenticated():
            return
        self._implicit_login(self.client)
        if self.client.is_authenticated():
            return
        raise NotAuthenticatedError(
            "Not authenticated with TTLock. Call the auth.login tool or set "
            "TTLOCK_USERNAME and TTLOCK_PASSWORD_MD5."
        )
