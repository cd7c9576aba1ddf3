"""Input validation helpers for tool and CLI arguments.

Every helper raises ValueError with a message naming the offending field.
"""
from __future__ import annotations
import hashlib
import re
from typing import Any, Optional

_MISSING = object()
MD5_PATTERN = re.compile(r"^[0-9a-f]{32}$")

MAX_PAGE_SIZE = 100
MAX_DELAY_MS = 5000
DELETE_TYPES = (1, 2, 3)


def hash_password(plain: str) -> str:
    """Return the lowercase MD5 hex digest TTLock expects as password."""
    return hashlib.md5(plain.encode("utf-8")).hexdigest()


def validate_password_md5(value: Any, field: str = "passwordMd5") -> str:
    """Validate a pre-hashed password.

    Args:
        value: Candidate MD5 hex digest
        field: Field name for error messages

    Returns:
        Lowercased digest

    Raises:
        ValueError: If value is not a 32-character hex string
    """
    if not isinstance(value, str) or len(value) != 32:
        raise ValueError(f"{field} must be a 32-character MD5 hex digest")
    digest = value.lower()
    if not MD5_PATTERN.match(digest):
        raise ValueError(f"{field} must be a 32-character MD5 hex digest")
    return digest


def require_int(
    args: dict,
    field: str,
    default: Any = _MISSING,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> int:
    """Read an integer argument, applying a default when absent."""
    value = args.get(field, _MISSING)
    if value is _MISSING or value is None:
        if default is _MISSING:
            raise ValueError(f"{field} is required")
        return default
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field} must be an integer")
    if minimum is not None and value < minimum:
        raise ValueError(f"{field} must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise ValueError(f"{field} must be <= {maximum}")
    return value


def optional_int(args: dict, field: str, minimum: Optional[int] = None) -> Optional[int]:
    if args.get(field) is None:
        return None
    return require_int(args, field, minimum=minimum)


def require_str(args: dict, field: str, default: Any = _MISSING) -> str:
    value = args.get(field, _MISSING)
    if value is _MISSING or value is None:
        if default is _MISSING:
            raise ValueError(f"{field} is required")
        return default
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    return value


def optional_str(args: dict, field: str) -> Optional[str]:
    if args.get(field) is None:
        return None
    return require_str(args, field)


def require_bool(args: dict, field: str, default: bool) -> bool:
    value = args.get(field)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"{field} must be a boolean")
    return value


def validate_card_number(value: Any, field: str = "cardNumber") -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    if not value.strip():
        raise ValueError(f"{field} is required")
    return value


def validate_delete_type(args: dict, field: str = "deleteType") -> int:
    delete_type = require_int(args, field, default=2)
    if delete_type not in DELETE_TYPES:
        raise ValueError(f"{field} must be 1 (BLE), 2 (gateway) or 3 (NB-IoT)")
    return delete_type


def validate_card_entries(value: Any, field: str = "cards") -> list[dict]:
    """Validate the card list of a bulk add.

    Returns:
        List of dicts with card_number, card_name, start_date, end_date
    """
    if not isinstance(value, list) or not value:
        raise ValueError(f"{field} must be a non-empty list")
    entries = []
    for index, raw in enumerate(value):
        if not isinstance(raw, dict):
            raise ValueError(f"{field}[{index}] must be an object")
        prefix = f"{field}[{index}]."
        try:
            entries.append({
                "card_number": validate_card_number(raw.get("cardNumber")),
                "card_name": optional_str(raw, "cardName"),
                "start_date": optional_int(raw, "startDate", minimum=0),
                "end_date": optional_int(raw, "endDate", minimum=0),
            })
        except ValueError as exc:
            raise ValueError(prefix + str(exc)) from exc
    return entries


def validate_card_ids(value: Any, field: str = "cardIds") -> list[int]:
    if not isinstance(value, list) or not value:
        raise ValueError(f"{field} must be a non-empty list")
    for card_id in value:
        if isinstance(card_id, bool) or not isinstance(card_id, int):
            raise ValueError(f"{field} must contain integers only")
    return list(value)


def parse_card_line(line: str) -> Optional[dict]:
    """Parse ``cardNumber[,cardName[,startDate[,endDate]]]`` from a bulk file.

    Blank lines and ``#`` comments return None.
    """
    line = line.strip()
    if not line or line.startswith("#"):
        return None
    parts = [part.strip() for part in line.split(",")]
    if len(parts) > 4:
        raise ValueError(f"Too many fields in card line: {line!r}")
    parts += [""] * (4 - len(parts))
    card_number, card_name, start_date, end_date = parts

    def _date(raw: str, field: str) -> Optional[int]:
        if not raw:
            return None
        if not raw.isdigit():
            raise ValueError(f"{field} must be epoch milliseconds: {raw!r}")
        return int(raw)

    return {
        "card_number": validate_card_number(card_number),
        "card_name": card_name or None,
        "start_date": _date(start_date, "startDate"),
        "end_date": _date(end_date, "endDate"),
    }
