"""Signed audit trail for IC card changes and remote lock operations.

Each event is one JSON object per line in ``card-events.jsonl``. When a
signing key is configured the event carries an HMAC-SHA256 ``signature``
over its canonical JSON form (sorted keys, no whitespace).

Verify a trail:
    python -m scripts.audit [path/to/card-events.jsonl]
"""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import os
import sys
from pathlib import Path
from typing import Any, Iterator, Literal

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "card-events.jsonl"

EventType = Literal[
    "card_add",
    "card_delete",
    "card_clear",
    "card_bulk_add",
    "card_bulk_delete",
    "lock",
    "unlock",
]


def _signing_key_paths() -> list[Path]:
    paths = []
    override = os.environ.get("AUDIT_LOG_SIGNING_KEY_FILE")
    if override:
        paths.append(Path(override))
    paths.append(Path("/run/secrets/audit_log_signing_key"))
    paths.append(Path(".runtime/secrets/audit_log_signing_key"))
    return paths


def _signing_key() -> bytes:
    """AUDIT_LOG_SIGNING_KEY wins (even when empty), then the first readable key file."""
    if "AUDIT_LOG_SIGNING_KEY" in os.environ:
        return os.environ["AUDIT_LOG_SIGNING_KEY"].strip().encode("utf-8")
    for key_file in _signing_key_paths():
        if not key_file.is_file():
            continue
        try:
            return key_file.read_text(encoding="utf-8").strip().encode("utf-8")
        except OSError:
            continue
    return b""


def sign_event(event: dict[str, Any]) -> str:
    """HMAC-SHA256 hex digest of the event, or "" when no key is configured."""
    key = _signing_key()
    if not key:
        return ""
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hmac.new(key, canonical, hashlib.sha256).hexdigest()


def log_card_event(
    event_type: EventType,
    lock_id: int,
    identifier: Any = None,
    *,
    operator: str = "system",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append a signed event to the audit trail.

    Args:
        event_type: Kind of operation (card_add, card_delete, unlock, ...)
        lock_id: Lock the operation targeted
        identifier: Card number or card id, when the event concerns one card
        operator: Who performed the operation
        details: Additional context (validity window, batch counts, error)
        success: Whether the operation succeeded
    """
    event: dict[str, Any] = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "lock_id": lock_id,
        "identifier": identifier,
        "operator": operator,
        "success": success,
        "details": dict(details or {}),
    }
    signature = sign_event(event)
    if signature:
        event["signature"] = signature

    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)
    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as trail:
        trail.write(json.dumps(event, ensure_ascii=False) + "\n")
    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_card_event(
    event_type: EventType,
    lock_id: int,
    identifier: Any = None,
    *,
    operator: str = "system",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> bool:
    """Like log_card_event, but a write failure is reported on stderr instead of raised.

    The operation being audited has already reached the lock by the time this
    runs, so its result must still reach the caller.

    Returns:
        True if the event was written
    """
    try:
        log_card_event(
            event_type,
            lock_id,
            identifier,
            operator=operator,
            details=details,
            success=success,
        )
    except Exception as e:
        print(f"[audit] Warning: could not record {event_type} on lock {lock_id}: {e}", file=sys.stderr)
        return False
    return True


def iter_events(path: Path | None = None) -> Iterator[tuple[int, dict[str, Any] | None]]:
    """Yield ``(line_number, event)`` for each non-blank line; event is None when unparseable."""
    trail = path or AUDIT_LOG_FILE
    if not trail.exists():
        return
    with trail.open("r", encoding="utf-8") as lines:
        for number, raw in enumerate(lines, start=1):
            if not raw.strip():
                continue
            try:
                event = json.loads(raw)
            except json.JSONDecodeError:
                yield number, None
                continue
            yield number, event if isinstance(event, dict) else None


def verify_audit_log(path: Path | None = None) -> tuple[int, int]:
    """Check every event signature in the trail.

    Returns:
        (events, events with a valid signature); unsigned or unparseable
        lines count as events but never as valid
    """
    total = valid = 0
    for _, event in iter_events(path):
        total += 1
        if event is None:
            continue
        stored = event.pop("signature", "")
        if stored and hmac.compare_digest(stored, sign_event(event)):
            valid += 1
    return total, valid


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else AUDIT_LOG_FILE
    events, signed = verify_audit_log(target)
    print(f"[audit] {target}: {signed}/{events} events with valid signatures")
    sys.exit(0 if events == signed else 1)
