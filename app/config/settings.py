"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path

from app.core.ttlock.client import DEFAULT_API_BASE, REQUEST_TIMEOUT
from app.core.validators import validate_password_md5


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


@dataclass
class AppConfig:
    """Application configuration container."""
    # TTLock application
    client_id: str
    client_secret: str
    api_base: str = DEFAULT_API_BASE
    request_timeout: float = REQUEST_TIMEOUT

    # Default account for implicit login (optional)
    username: str = ""
    password_md5: str = ""

    # Tool server
    server_name: str = "ttlock-gateway"

    # Audit
    audit_operator: str = "ttlock-gateway"

    @property
    def has_default_credentials(self) -> bool:
        """True when both default username and password digest are configured."""
        return bool(self.username and self.password_md5)


def _require(var_name: str, value: str | None) -> str:
    if value:
        return value
    raise RuntimeError(f"Environment variable {var_name} is required.")


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError:
        raise ValueError(f"TTLOCK_REQUEST_TIMEOUT must be a number, got {raw!r}") from None
    if timeout <= 0:
        raise ValueError("TTLOCK_REQUEST_TIMEOUT must be greater than 0")
    return timeout


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets.

    Raises:
        RuntimeError: If a required value is missing
        ValueError: If a value is malformed
    """
    client_id = _require("TTLOCK_CLIENT_ID", os.environ.get("TTLOCK_CLIENT_ID", "").strip())
    client_secret = _require(
        "TTLOCK_CLIENT_SECRET",
        _load_secret_from_file("ttlock_client_secret", "TTLOCK_CLIENT_SECRET"),
    )

    password_md5 = _load_secret_from_file("ttlock_password_md5", "TTLOCK_PASSWORD_MD5") or ""
    if password_md5:
        password_md5 = validate_password_md5(password_md5, "TTLOCK_PASSWORD_MD5")

    api_base = os.environ.get("TTLOCK_API_BASE", "").strip() or DEFAULT_API_BASE

    return AppConfig(
        client_id=client_id,
        client_secret=client_secret,
        api_base=api_base.rstrip("/"),
        request_timeout=_parse_timeout(os.environ.get("TTLOCK_REQUEST_TIMEOUT", str(REQUEST_TIMEOUT))),
        username=os.environ.get("TTLOCK_USERNAME", "").strip(),
        password_md5=password_md5,
        server_name=os.environ.get("TTLOCK_SERVER_NAME", "ttlock-gateway"),
        audit_operator=os.environ.get("AUDIT_OPERATOR", "ttlock-gateway"),
    )
