"""
Access Control Service Layer

This module provides the service layer shared by the tool API and the CLI.
It runs the session guard once per privileged call, delegates to the
TTLock services, orchestrates bulk card operations, and writes the audit
trail for every credential mutation and remote lock/unlock.

Architecture:
    Tool API (/tools/*) ───────────┐
                                   ├──> access_service.py ──> app.core.ttlock ──> TTLock cloud
    CLI (scripts/ttlock_cli.py) ───┘
"""

from __future__ import annotations
import logging
import time
from functools import wraps
from typing import Any, Callable, Optional

from app.config.settings import AppConfig
from app.core.batch import run_batch
from app.core.ttlock import (
    CardService,
    DeleteType,
    LockService,
    RecordService,
    SessionManager,
    TTLockClient,
    TTLockError,
    default_credentials_login,
)
from scripts import audit

logger = logging.getLogger(__name__)

CLEAR_CONFIRMATION_MESSAGE = 'Set "confirm": true to remove every card from the lock.'


def privileged(method):
    """Run the session guard once before the decorated service method."""
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        self.session.ensure_authenticated()
        return method(self, *args, **kwargs)

    return wrapper


class AccessControlService:
    """Lock, card and record operations behind one authenticated session."""

    def __init__(
        self,
        client: TTLockClient,
        session: SessionManager,
        operator: str = "system",
        audit_enabled: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.session = session
        self.operator = operator
        self.audit_enabled = audit_enabled
        self.sleep = sleep
        self.locks = LockService(client)
        self.cards = CardService(client)
        self.records = RecordService(client)

    @classmethod
    def from_config(cls, cfg: AppConfig, audit_enabled: bool = True) -> "AccessControlService":
        """Build the client, session (with implicit default login) and services."""
        client = TTLockClient(
            cfg.api_base,
            cfg.client_id,
            cfg.client_secret,
            timeout=cfg.request_timeout,
        )
        session = SessionManager(client, default_credentials_login(cfg.username, cfg.password_md5))
        return cls(client, session, operator=cfg.audit_operator, audit_enabled=audit_enabled)

    def _audit(self, event_type: audit.EventType, lock_id: int, identifier: Any = None, **kwargs) -> None:
        if self.audit_enabled:
            audit.safe_log_card_event(event_type, lock_id, identifier, operator=self.operator, **kwargs)

    # ─────────────────────────────────────────────────────────────────────────
    # Auth
    # ─────────────────────────────────────────────────────────────────────────
    def login(self, username: str, password_md5: str) -> dict:
        self.session.login(username, password_md5)
        return {"ok": True}

    def refresh(self) -> dict:
        self.session.refresh()
        return {"ok": True}

    # ─────────────────────────────────────────────────────────────────────────
    # Locks
    # ─────────────────────────────────────────────────────────────────────────
    @privileged
    def list_locks(self, page_no: int = 1, page_size: int = 50) -> dict:
        return self.locks.list_locks(page_no, page_size)

    @privileged
    def lock_detail(self, lock_id: int) -> dict:
        return self.locks.get_lock_detail(lock_id)

    @privileged
    def lock(self, lock_id: int) -> dict:
        return self._remote_operation("lock", lock_id, self.locks.lock)

    @privileged
    def unlock(self, lock_id: int) -> dict:
        return self._remote_operation("unlock", lock_id, self.locks.unlock)

    def _remote_operation(self, event_type: audit.EventType, lock_id: int, operation) -> dict:
        try:
            result = operation(lock_id)
        except TTLockError as exc:
            self._audit(event_type, lock_id, success=False, details={"error": str(exc)})
            raise
        self._audit(event_type, lock_id)
        return result

    # ─────────────────────────────────────────────────────────────────────────
    # Cards
    # ─────────────────────────────────────────────────────────────────────────
    @privileged
    def list_cards(self, lock_id: int, page_no: int = 1, page_size: int = 50) -> dict:
        return self.cards.list_cards(lock_id, page_no, page_size)

    @privileged
    def add_card(
        self,
        lock_id: int,
        card_number: str,
        card_name: Optional[str] = None,
        start_date: Optional[int] = None,
        end_date: Optional[int] = None,
    ) -> dict:
        return self._add_card(lock_id, card_number, card_name, start_date, end_date)

    def _add_card(self, lock_id, card_number, card_name=None, start_date=None, end_date=None) -> dict:
        details = {"card_name": card_name, "start_date": start_date or 0, "end_date": end_date or 0}
        try:
            result = self.cards.add_card(lock_id, card_number, card_name, start_date, end_date)
        except TTLockError as exc:
            self._audit("card_add", lock_id, card_number, success=False, details={**details, "error": str(exc)})
            raise
        self._audit("card_add", lock_id, card_number, details={**details, "card_id": result.get("cardId")})
        return result

    @privileged
    def bulk_add_cards(
        self,
        lock_id: int,
        cards: list[dict],
        delay_ms: int = 0,
        continue_on_error: bool = True,
    ) -> dict:
        """Add several cards one after another.

        Args:
            lock_id: Lock ID
            cards: Dicts with card_number and optional card_name, start_date, end_date
            delay_ms: Pause between cards, to stay under TTLock's rate limits
            continue_on_error: Keep going after a failed card

        Returns:
            Batch report (normal or aborted shape) plus ``lockId``
        """
        report = run_batch(
            cards,
            lambda card: self._add_card(
                lock_id,
                card["card_number"],
                card.get("card_name"),
                card.get("start_date"),
                card.get("end_date"),
            ),
            identify=lambda card: card["card_number"],
            delay_ms=delay_ms,
            continue_on_error=continue_on_error,
            sleep=self.sleep,
        )
        self._audit(
            "card_bulk_add",
            lock_id,
            success=report.failure == 0,
            details={"total": report.total, "attempted": report.attempted, "failure": report.failure},
        )
        return {"lockId": lock_id, **report.to_dict("cardNumber")}

    @privileged
    def delete_card(self, lock_id: int, card_id: int, delete_type: int = DeleteType.GATEWAY) -> dict:
        return self._delete_card(lock_id, card_id, delete_type)

    def _delete_card(self, lock_id: int, card_id: int, delete_type: int) -> dict:
        details = {"delete_type": int(delete_type)}
        try:
            result = self.cards.delete_card(lock_id, card_id, delete_type)
        except TTLockError as exc:
            self._audit("card_delete", lock_id, card_id, success=False, details={**details, "error": str(exc)})
            raise
        self._audit("card_delete", lock_id, card_id, details=details)
        return result

    @privileged
    def bulk_delete_cards(
        self,
        lock_id: int,
        card_ids: list[int],
        delete_type: int = DeleteType.GATEWAY,
        delay_ms: int = 0,
        continue_on_error: bool = True,
    ) -> dict:
        report = run_batch(
            card_ids,
            lambda card_id: self._delete_card(lock_id, card_id, delete_type),
            delay_ms=delay_ms,
            continue_on_error=continue_on_error,
            sleep=self.sleep,
        )
        self._audit(
            "card_bulk_delete",
            lock_id,
            success=report.failure == 0,
            details={"total": report.total, "attempted": report.attempted, "failure": report.failure},
        )
        return {"lockId": lock_id, **report.to_dict("cardId")}

    @privileged
    def clear_cards(self, lock_id: int, confirm: bool = False) -> dict:
        """Remove every card from the lock; refuses unless confirm is True."""
        if not confirm:
            return {"ok": False, "error": CLEAR_CONFIRMATION_MESSAGE}
        try:
            result = self.cards.clear_cards(lock_id)
        except TTLockError as exc:
            self._audit("card_clear", lock_id, success=False, details={"error": str(exc)})
            raise
        logger.warning("All cards cleared from lock %s by %s", lock_id, self.operator)
        self._audit("card_clear", lock_id)
        return result

    # ─────────────────────────────────────────────────────────────────────────
    # Records
    # ─────────────────────────────────────────────────────────────────────────
    @privileged
    def list_unlock_records(
        self,
        lock_id: int,
        page_no: int = 1,
        page_size: int = 50,
        start_date: Optional[int] = None,
        end_date: Optional[int] = None,
    ) -> dict:
        return self.records.list_unlock_records(lock_id, page_no, page_size, start_date, end_date)
