"""
Vendor gateway interface.

Gateways encapsulate the vendor wire protocol and expose chats and messages
in normalized shapes to the import and send commands.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from app.schemas.whatsapp import VendorChat, VendorMessage, VendorSendResult


class BaseGatewayClient(ABC):
    """Contract for messaging gateways. Every call is bounded by a timeout."""

    @abstractmethod
    def list_chats(self, chat_type: Optional[str] = None) -> List[VendorChat]:
        """List chats visible to the account. Raise VendorError on failure."""
        ...

    @abstractmethod
    def list_messages(
        self, chat_or_contact: str, limit: int, is_group: bool = False
    ) -> List[VendorMessage]:
        """List recent messages of a chat (group) or contact (direct)."""
        ...

    @abstractmethod
    def send_message(
        self, destination: str, text: str, is_group: bool = False
    ) -> VendorSendResult:
        """Send a text message and return the vendor message id."""
        ...


# Builds a gateway for an (api_key, phone_number) credential pair.
GatewayFactory = Callable[[str, str], BaseGatewayClient]
