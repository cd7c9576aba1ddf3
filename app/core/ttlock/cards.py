"""TTLock IC card (credential) operations."""
from __future__ import annotations
from enum import IntEnum
from typing import Any, Dict, Optional

from .client import TTLockClient
from .locks import DEFAULT_PAGE_SIZE

# addType for cards provisioned through a gateway (cloud delivery)
ADD_TYPE_GATEWAY = 2


class DeleteType(IntEnum):
    """Delivery channel used to remove a card from the lock."""
    BLE = 1
    GATEWAY = 2
    NB_IOT = 3


class CardService:
    """Service for provisioning IC cards on locks."""

    def __init__(self, client: TTLockClient):
        """Initialize card service.

        Args:
            client: Authenticated TTLock client
        """
        self.client = client

    def list_cards(self, lock_id: int, page_no: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Dict[str, Any]:
        return self.client.post_form(
            "/v3/identityCard/list",
            {"lockId": lock_id, "pageNo": page_no, "pageSize": page_size},
        )

    def add_card(
        self,
        lock_id: int,
        card_number: str,
        card_name: Optional[str] = None,
        start_date: Optional[int] = None,
        end_date: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Add an IC card through the gateway.

        Args:
            lock_id: Lock ID
            card_number: Card number as printed/read from the card
            card_name: Optional label
            start_date: Validity start in epoch ms (0 = no restriction)
            end_date: Validity end in epoch ms (0 = no restriction)

        Returns:
            TTLock response (contains the new ``cardId``)
        """
        return self.client.post_form("/v3/identityCard/add", {
            "lockId": lock_id,
            "cardNumber": card_number,
            "cardName": card_name,
            "startDate": start_date if start_date is not None else 0,
            "endDate": end_date if end_date is not None else 0,
            "addType": ADD_TYPE_GATEWAY,
        })

    def delete_card(self, lock_id: int, card_id: int, delete_type: int = DeleteType.GATEWAY) -> Dict[str, Any]:
        """Delete one IC card.

        Args:
            lock_id: Lock ID
            card_id: Card ID assigned by TTLock
            delete_type: Delivery channel (1 = BLE, 2 = gateway, 3 = NB-IoT)
        """
        return self.client.post_form(
            "/v3/identityCard/delete",
            {"lockId": lock_id, "cardId": card_id, "deleteType": int(DeleteType(delete_type))},
        )

    def clear_cards(self, lock_id: int) -> Dict[str, Any]:
        """Remove every IC card from the lock.

        Some lock models must be cleared over BLE first; TTLock then answers
        with an error code.
        """
        return self.client.post_form("/v3/identityCard/clear", {"lockId": lock_id})
