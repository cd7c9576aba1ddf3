"""TTLock lock operations."""
from __future__ import annotations
from typing import Any, Dict

from .client import TTLockClient

DEFAULT_PAGE_SIZE = 50


class LockService:
    """Service for listing and remotely operating locks."""

    def __init__(self, client: TTLockClient):
        """Initialize lock service.

        Args:
            client: Authenticated TTLock client
        """
        self.client = client

    def list_locks(self, page_no: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Dict[str, Any]:
        """List the account's locks.

        Returns:
            Page with ``list``, ``pageNo``, ``pages`` and ``total`` as sent by TTLock
        """
        return self.client.post_form("/v3/lock/list", {"pageNo": page_no, "pageSize": page_size})

    def get_lock_detail(self, lock_id: int) -> Dict[str, Any]:
        return self.client.post_form("/v3/lock/detail", {"lockId": lock_id})

    def lock(self, lock_id: int) -> Dict[str, Any]:
        """Lock remotely through the gateway."""
        return self.client.post_form("/v3/lock/lock", {"lockId": lock_id})

    def unlock(self, lock_id: int) -> Dict[str, Any]:
        """Unlock remotely through the gateway."""
        return self.client.post_form("/v3/lock/unlock", {"lockId": lock_id})
