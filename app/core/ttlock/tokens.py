"""Access/refresh token state for a TTLock client."""
from __future__ import annotations
import threading
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TokenPair:
    """Tokens returned by a successful OAuth exchange."""
    access_token: str
    refresh_token: str
    uid: Optional[int] = None
    expires_in: Optional[int] = None


class TokenState:
    """Holds at most one TokenPair, replaced as a whole.

    Expiry is not tracked here: an expired token is only discovered through
    a remote error on a later call.
    """

    def __init__(self):
        self._pair: Optional[TokenPair] = None
        self._lock = threading.Lock()

    @property
    def pair(self) -> Optional[TokenPair]:
        return self._pair

    @property
    def access_token(self) -> Optional[str]:
        pair = self._pair
        return pair.access_token if pair else None

    @property
    def refresh_token(self) -> Optional[str]:
        pair = self._pair
        return pair.refresh_token if pair else None

    def is_authenticated(self) -> bool:
        return self._pair is not None

    def replace(self, pair: TokenPair) -> None:
        with self._lock:
            self._pair = pair
