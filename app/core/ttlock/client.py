"""Low-level HTTP client for the TTLock Open API.

Handles OAuth token exchange, request signing, and response decoding.
"""
from __future__ import annotations
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

import requests

from .exceptions import (
    AuthenticationError,
    NotAuthenticatedError,
    RemoteServiceError,
    TransportError,
)
from .tokens import TokenPair, TokenState

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10
DEFAULT_API_BASE = "https://api.sciener.com"
FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}

TOKEN_PATH = "/oauth2/token"
REFRESH_TOKEN_PATH = "/oauth2/refreshToken"


# ─────────────────────────────────────────────────────────────────────────────
# Response decoding
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ApiSuccess:
    """Decoded body without an error code; payload is returned untouched."""
    payload: Dict[str, Any]


@dataclass(frozen=True)
class ApiFailure:
    """Decoded body carrying a nonzero ``errcode``."""
    code: int
    message: str


ApiResult = Union[ApiSuccess, ApiFailure]


def decode_response(body: Dict[str, Any]) -> ApiResult:
    """Classify a decoded TTLock body by its reserved ``errcode`` field.

    Args:
        body: JSON object returned by TTLock

    Returns:
        ApiFailure when ``errcode`` is a nonzero integral number (``-3`` or
        ``-3.0``), ApiSuccess otherwise
    """
    code = body.get("errcode")
    if isinstance(code, float) and code.is_integer():
        code = int(code)
    if isinstance(code, int) and not isinstance(code, bool) and code != 0:
        message = body.get("errmsg") or f"remote error {code}"
        return ApiFailure(code=code, message=str(message))
    return ApiSuccess(payload=body)


def _now_ms() -> int:
    return int(time.time() * 1000)


class TTLockClient:
    """HTTP client for the TTLock Open API with token management.

    Features:
    - Password-grant login and refresh-token exchange
    - Signs every v3 call with clientId, accessToken and a millisecond timestamp
    - Uniform remote error surfacing via RemoteServiceError

    Usage:
        client = TTLockClient("https://api.sciener.com", "client-id", "secret")
        client.login("owner@example.com", hash_password("secret"))
        locks = client.post_form("/v3/lock/list", {"pageNo": 1, "pageSize": 50})
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT,
        tokens: Optional[TokenState] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        """Initialize TTLock client.

        Args:
            base_url: API base URL (defaults to TTLOCK_API_BASE env var)
            client_id: Application client id (defaults to TTLOCK_CLIENT_ID env var)
            client_secret: Application client secret (defaults to TTLOCK_CLIENT_SECRET env var)
            timeout: Per-request timeout in seconds, handed to requests
            tokens: Token state to use (a fresh, empty one by default)
            clock: Returns the current time in epoch milliseconds
        """
        self.base_url = (base_url or os.environ.get("TTLOCK_API_BASE", DEFAULT_API_BASE)).rstrip("/")
        self.client_id = client_id if client_id is not None else os.environ.get("TTLOCK_CLIENT_ID", "")
        self.client_secret = (
            client_secret if client_secret is not None else os.environ.get("TTLOCK_CLIENT_SECRET", "")
        )
        self.timeout = timeout
        self.tokens = tokens if tokens is not None else TokenState()
        self._clock = clock or _now_ms

    def is_authenticated(self) -> bool:
        return self.tokens.is_authenticated()

    # ─────────────────────────────────────────────────────────────────────────
    # OAuth
    # ─────────────────────────────────────────────────────────────────────────
    def login(self, username: str, password_md5: str) -> TokenPair:
        """Exchange account credentials for a token pair.

        Args:
            username: TTLock account username
            password_md5: Lowercase MD5 hex digest of the account password

        Returns:
            The stored token pair

        Raises:
            AuthenticationError: If the exchange fails for any reason; the
                previously held tokens are kept
        """
        pair = self._exchange_token(TOKEN_PATH, {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "username": username,
            "password": password_md5,
        })
        self.tokens.replace(pair)
        logger.info("TTLock login succeeded (uid=%s)", pair.uid)
        return pair

    def refresh(self) -> TokenPair:
        """Exchange the stored refresh token for a new token pair.

        Raises:
            NotAuthenticatedError: If no refresh token is held (no request is made)
            AuthenticationError: If the exchange fails; stale tokens are kept
        """
        refresh_token = self.tokens.refresh_token
        if not refresh_token:
            raise NotAuthenticatedError("No refresh token - call login() first")
        pair = self._exchange_token(REFRESH_TOKEN_PATH, {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": refresh_token,
        })
        self.tokens.replace(pair)
        logger.info("TTLock token refreshed (uid=%s)", pair.uid)
        return pair

    def _exchange_token(self, path: str, form: Dict[str, Any]) -> TokenPair:
        """POST an OAuth form and extract the token pair from the answer."""
        url = f"{self.base_url}{path}"
        try:
            resp = self._send(url, form)
            body = self._parse_body(resp)
        except TransportError as exc:
            logger.warning("TTLock token exchange at %s failed: %s", path, exc)
            raise AuthenticationError(f"Token exchange failed: {exc}") from exc

        result = decode_response(body)
        if isinstance(result, ApiFailure):
            logger.warning("TTLock token exchange at %s rejected: errcode %s", path, result.code)
            raise AuthenticationError(f"Token exchange rejected: [{result.code}] {result.message}")
        if not 200 <= resp.status_code < 300:
            raise AuthenticationError(f"Token exchange failed: HTTP {resp.status_code}")

        access_token = body.get("access_token")
        refresh_token = body.get("refresh_token")
        if not access_token or not refresh_token:
            reason = body.get("error_description") or body.get("error") or "no token pair in response"
            raise AuthenticationError(f"Token exchange failed: {reason}")

        return TokenPair(
            access_token=str(access_token),
            refresh_token=str(refresh_token),
            uid=body.get("uid"),
            expires_in=body.get("expires_in"),
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Signed v3 requests
    # ─────────────────────────────────────────────────────────────────────────
    def post_form(self, path: str, form: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute a signed form POST against a v3 endpoint.

        Caller fields with a value of None are dropped. ``clientId``,
        ``accessToken`` and ``date`` are always injected and override any
        caller-supplied value for those keys.

        Args:
            path: API endpoint path (e.g., "/v3/lock/list")
            form: Endpoint-specific form fields

        Returns:
            Decoded response body, unmodified

        Raises:
            NotAuthenticatedError: If no access token is held (no request is made)
            RemoteServiceError: If the body carries a nonzero errcode
            TransportError: On network, parsing or HTTP status failure
        """
        access_token = self.tokens.access_token
        if not access_token:
            raise NotAuthenticatedError("Not authenticated - call login() first")

        payload = {key: value for key, value in (form or {}).items() if value is not None}
        payload.update({
            "clientId": self.client_id,
            "accessToken": access_token,
            "date": self._clock(),
        })

        logger.debug("TTLock POST %s", path)
        resp = self._send(f"{self.base_url}{path}", payload)
        body = self._parse_body(resp)

        result = decode_response(body)
        if isinstance(result, ApiFailure):
            logger.warning("TTLock %s returned errcode %s: %s", path, result.code, result.message)
            raise RemoteServiceError(result.code, result.message)
        if not 200 <= resp.status_code < 300:
            raise TransportError(f"HTTP {resp.status_code} from {path}", status_code=resp.status_code)
        return result.payload

    def _send(self, url: str, form: Dict[str, Any]) -> requests.Response:
        try:
            return requests.post(url, data=form, headers=dict(FORM_HEADERS), timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc

    @staticmethod
    def _parse_body(resp: requests.Response) -> Dict[str, Any]:
        """Decode a JSON object body, or raise TransportError."""
        try:
            body = resp.json()
        except ValueError as exc:
            raise TransportError(
                f"HTTP {resp.status_code}: unparseable response body",
                status_code=resp.status_code,
            ) from exc
        if not isinstance(body, dict):
            raise TransportError(
                f"HTTP {resp.status_code}: expected a JSON object",
                status_code=resp.status_code,
            )
        return body
