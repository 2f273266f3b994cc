"""Fake vendor gateway used in place of the Periskope client."""

from typing import List, Optional

import pytest

from app.adapters.base import BaseGatewayClient
from app.exceptions import VendorError
from app.schemas.whatsapp import VendorChat, VendorMessage, VendorSendResult


class FakeGateway(BaseGatewayClient):
    def __init__(self) -> None:
        self.chats: List[dict] = []
        self.messages: List[dict] = []
        self.list_error: Optional[Exception] = None
        self.send_error: Optional[Exception] = None
        self.messages_error: Optional[Exception] = None
        self.failing_chats: set = set()
        self.message_calls: List[tuple] = []
        self.sent: List[tuple] = []
        self.credentials: List[tuple] = []

    def list_chats(self, chat_type: Optional[str] = None) -> List[VendorChat]:
        if self.list_error is not None:
            raise self.list_error
        return [VendorChat.model_validate(c) for c in self.chats]

    def list_messages(
        self, chat_or_contact: str, limit: int, is_group: bool = False
    ) -> List[VendorMessage]:
        self.message_calls.append((chat_or_contact, limit, is_group))
        if self.list_error is not None:
            raise self.list_error
        if self.messages_error is not None:
            raise self.messages_error
        if chat_or_contact in self.failing_chats:
            raise VendorError(f"Gateway returned 500 for chat {chat_or_contact}")
        return [VendorMessage.model_validate(m) for m in self.messages[:limit]]

    def send_message(
        self, destination: str, text: str, is_group: bool = False
    ) -> VendorSendResult:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((destination, text, is_group))
        return VendorSendResult(id=f"vendor-{len(self.sent)}")


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def gateway_factory(fake_gateway):
    """GatewayFactory returning fake_gateway and recording the credentials used."""

    def _factory(api_key, phone_number):
        fake_gateway.credentials.append((api_key, phone_number))
        return fake_gateway

    return _factory
