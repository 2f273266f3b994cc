"""Command to import every chat of a WhatsApp account as a conversation."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.adapters.base import BaseGatewayClient, GatewayFactory
from app.config import Settings, get_settings
from app.constants.messaging import Platform
from app.exceptions import ConversationServiceError
from app.infra.logging_config import get_logger
from app.schemas.imports import (
    BulkWhatsAppImportRequest,
    BulkWhatsAppImportResponse,
    ChatImportResult,
)
from app.schemas.whatsapp import VendorChat
from app.services.conversation_service import ConversationService
from app.services.message_importer import MessageImporter
from app.services.metadata_service import MetadataService
from app.services.whatsapp_account_service import WhatsAppAccountService


class ImportWhatsAppConversationsCommand:
    """
    List the account's vendor chats and create a conversation, with its recent
    messages, for every chat seen for the first time.

    Chats that already have a conversation are skipped. A chat whose messages
    cannot be fetched or stored is reported as failed and the remaining chats
    are still imported.
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
        self.conversations = ConversationService(db)
        self.logger = get_logger("commands.import_conversations")

    def execute(
        self, body: BulkWhatsAppImportRequest, owner_user_id: Optional[UUID] = None
    ) -> BulkWhatsAppImportResponse:
        """
        Raises:
            NotFoundError: the WhatsApp account does not exist.
            VendorError: the gateway could not list the account's chats.
        """
        accounts = WhatsAppAccountService(self.db, gateway_factory=self.gateway_factory)
        gateway = accounts.get_gateway(body.whatsapp_account_id)

        results = [
            self._import_chat(gateway, chat, body.whatsapp_account_id, owner_user_id)
            for chat in gateway.list_chats()
        ]
        imported = sum(1 for r in results if r.created)
        failed = sum(1 for r in results if r.error is not None)
        self.logger.info(
            "Imported %d new conversations from account %s (%d chats, %d failed)",
            imported,
            body.whatsapp_account_id,
            len(results),
            failed,
        )
        return BulkWhatsAppImportResponse(
            imported_conversations=imported,
            skipped_conversations=len(results) - imported - failed,
            failed_conversations=failed,
            chats=results,
        )

    def _import_chat(
        self,
        gateway: BaseGatewayClient,
        chat: VendorChat,
        account_id: UUID,
        owner_user_id: Optional[UUID],
    ) -> ChatImportResult:
        existing = self.conversations.get_by_external_id(Platform.WHATSAPP, chat.id)
        if existing is not None:
            return ChatImportResult(chat_id=chat.id, conversation_id=existing.id)

        try:
            vendor_messages = gateway.list_messages(
                chat.id,
                limit=self.settings.import_chat_message_limit,
                is_group=chat.is_group,
            )
            conversation, created = self.conversations.find_or_create(
                platform=Platform.WHATSAPP,
                external_id=chat.id,
                recipient=chat.title or chat.phone or chat.id,
                owner_user_id=owner_user_id,
                is_group=chat.is_group,
            )
            result = MessageImporter(
                self.db, batch_size=self.settings.import_batch_size
            ).import_batch(conversation.id, vendor_messages)
            MetadataService(self.db).record_import(
                conversation.id, chat_id=chat.id, account_id=account_id
            )
        except ConversationServiceError as e:
            self.logger.warning("Import of chat %s failed: %s", chat.id, e.message)
            return ChatImportResult(chat_id=chat.id, error=e.message)

        return ChatImportResult(
            chat_id=chat.id,
            conversation_id=conversation.id,
            created=created,
            total_messages=result.total,
            imported_messages=result.imported,
            failed_messages=result.failed,
        )
