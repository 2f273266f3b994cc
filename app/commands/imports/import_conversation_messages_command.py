"""Command to pull the most recent vendor messages into an existing conversation."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.adapters.base import GatewayFactory
from app.config import Settings, get_settings
from app.infra.logging_config import get_logger
from app.schemas.imports import ImportMessagesRequest, ImportMessagesResponse
from app.schemas.message import MessageRead
from app.services.conversation_service import ConversationService
from app.services.message_importer import MessageImporter
from app.services.metadata_service import MetadataService
from app.services.whatsapp_account_service import WhatsAppAccountService


class ImportConversationMessagesCommand:
    """
    Fetch the last few messages of a conversation's chat through one of the
    user's WhatsApp accounts and import them.
    """

    def __init__(
        self,
        db: Session,
        gateway_factory: Optional[GatewayFactory] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.gateway_factory = gateway_factory
        self.logger = get_logger("commands.import_messages")

    def execute(self, body: ImportMessagesRequest) -> ImportMessagesResponse:
        """
        Raises:
            NotFoundError: conversation or account does not exist.
            VendorError: the gateway could not list the chat's messages.
        """
        conversation = ConversationService(self.db).get_conversation_or_404(
            body.conversation_id
        )
        accounts = WhatsAppAccountService(self.db, gateway_factory=self.gateway_factory)
        gateway = accounts.get_gateway(body.whatsapp_account_id)

        chat = conversation.external_id or conversation.recipient
        vendor_messages = gateway.list_messages(
            chat,
            limit=self.settings.import_recent_message_limit,
            is_group=bool(conversation.is_group),
        )
        if not vendor_messages:
            self.logger.info("No messages to import for conversation %s", conversation.id)
            return ImportMessagesResponse(message_count=0, messages=[])

        result = MessageImporter(
            self.db, batch_size=self.settings.import_batch_size
        ).import_batch(conversation.id, vendor_messages)
        MetadataService(self.db).record_import(
            conversation.id, chat_id=chat, account_id=body.whatsapp_account_id
        )
        return ImportMessagesResponse(
            message_count=result.imported,
            messages=[MessageRead.model_validate(m) for m in result.messages],
        )
