"""TTLock unlock-record (access log) operations."""
from __future__ import annotations
from typing import Any, Dict, Optional

from .client import TTLockClient
from .locks import DEFAULT_PAGE_SIZE


class RecordService:
    """Service for reading a lock's access log."""

    def __init__(self, client: TTLockClient):
        self.client = client

    def list_unlock_records(
        self,
        lock_id: int,
        page_no: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        start_date: Optional[int] = None,
        end_date: Optional[int] = None,
    ) -> Dict[str, Any]:
        """List unlock records, optionally bounded by epoch-ms dates.

        Unset bounds are left out of the request rather than sent as 0.
        """
        form: Dict[str, Any] = {"lockId": lock_id, "pageNo": page_no, "pageSize": page_size}
        if start_date is not None:
            form["startDate"] = start_date
        if end_date is not None:
            form["endDate"] = end_date
        return self.client.post_form("/v3/lockRecord/list", form)
