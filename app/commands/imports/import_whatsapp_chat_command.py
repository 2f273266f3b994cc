"""Command to import a full WhatsApp chat history, creating its conversation if needed."""

from __future__ import annotations

from typing import Optional, Tuple

from sqlalchemy.orm import Session

from app.adapters.base import BaseGatewayClient, GatewayFactory
from app.adapters.periskope import build_periskope_client
from app.config import Settings, get_settings
from app.constants.messaging import Platform
from app.exceptions import ConversationServiceError
from app.infra.logging_config import get_logger
from app.models.conversation import Conversation
from app.schemas.imports import WhatsAppImportRequest, WhatsAppImportResponse
from app.services.conversation_service import ConversationService
from app.services.message_importer import MessageImporter
from app.services.metadata_service import MetadataService

GROUP_SUFFIX = "@g.us"


class ImportWhatsAppChatCommand:
    """
    Resolve (or create) the conversation for a vendor chat id and import up to
    the configured full-history limit of its messages.

    Uses the service-wide gateway key with the caller's phone number as the
    originating account. Messages are fetched before anything is written, so
    a failed fetch leaves no conversation and no import provenance behind.
    """

    def __init__(
        self,
        db: Session,
        gateway_factory: Optional[GatewayFactory] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.gateway_factory = gateway_factory or build_periskope_client
        self.logger = get_logger("commands.import_whatsapp")

    def execute(self, body: WhatsAppImportRequest) -> WhatsAppImportResponse:
        api_key = self.settings.periskope_api_key
        if not api_key:
            raise ConversationServiceError("Periskope API key is not configured")
        gateway = self.gateway_factory(api_key, body.phone_number)

        conversations = ConversationService(self.db)
        conversation: Optional[Conversation] = None
        if body.conversation_id is not None:
            conversation = conversations.get_conversation_or_404(body.conversation_id)
        else:
            conversation = conversations.get_by_external_id(
                Platform.WHATSAPP, body.chat_id
            )

        if conversation is not None:
            recipient, is_group = conversation.recipient, bool(conversation.is_group)
        else:
            recipient, is_group = self._chat_details(gateway, body)

        vendor_messages = gateway.list_messages(
            body.chat_id,
            limit=self.settings.import_full_message_limit,
            is_group=is_group,
        )

        if conversation is None:
            conversation, created = conversations.find_or_create(
                platform=Platform.WHATSAPP,
                external_id=body.chat_id,
                recipient=recipient,
                owner_user_id=body.user_id,
                is_group=is_group,
            )
            if created:
                self.logger.info(
                    "Created conversation %s for WhatsApp chat %s",
                    conversation.id,
                    body.chat_id,
                )

        self.logger.info(
            "Importing %d messages from chat %s into conversation %s",
            len(vendor_messages),
            body.chat_id,
            conversation.id,
        )
        result = MessageImporter(
            self.db, batch_size=self.settings.import_batch_size
        ).import_batch(conversation.id, vendor_messages)
        MetadataService(self.db).record_import(conversation.id, chat_id=body.chat_id)

        return WhatsAppImportResponse(
            conversation_id=conversation.id,
            total_messages=result.total,
            imported_messages=result.imported,
            failed_messages=result.failed,
        )

    def _chat_details(
        self, gateway: BaseGatewayClient, body: WhatsAppImportRequest
    ) -> Tuple[str, bool]:
        """Display name and group flag for a chat not yet stored locally."""
        chat = next((c for c in gateway.list_chats() if c.id == body.chat_id), None)
        recipient = body.phone_number
        is_group = body.chat_id.endswith(GROUP_SUFFIX)
        if chat is not None:
            recipient = chat.title or recipient
            is_group = chat.is_group or is_group
        else:
            self.logger.warning("Chat %s not found in gateway chat list", body.chat_id)
        return recipient, is_group
