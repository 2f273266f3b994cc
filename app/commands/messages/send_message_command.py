"""
Command to send a message in a conversation.

Persists the outbound message, delivers it through the conversation's
WhatsApp account when one is bound, and lets the automated agent answer when
the conversation has one enabled.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.adapters.base import GatewayFactory
from app.config import Settings, get_settings
from app.constants.messaging import MessageDirection, MessageStatus, Platform
from app.exceptions import ConversationServiceError, ValidationError
from app.infra.logging_config import get_logger
from app.models.conversation import Conversation
from app.models.message import Message
from app.schemas.message import MessageRead, MessageSend, MessageSendResponse
from app.services.agent_service import AgentService
from app.services.conversation_service import ConversationService
from app.services.message_service import MessageService
from app.services.metadata_service import (
    AGENT_ID,
    IS_AGENT,
    WHATSAPP_ACCOUNT_ID,
    MetadataService,
)
from app.services.whatsapp_account_service import WhatsAppAccountService
from app.workers.llm import BaseCompletionClient


class SendMessageCommand:
    def __init__(
        self,
        db: Session,
        gateway_factory: Optional[GatewayFactory] = None,
        completion_client: Optional[BaseCompletionClient] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.gateway_factory = gateway_factory
        self.completion_client = completion_client
        self.messages = MessageService(db)
        self.logger = get_logger("commands.send_message")

    async def execute(
        self,
        conversation_id: UUID,
        body: MessageSend,
        sender_id: Optional[UUID] = None,
    ) -> MessageSendResponse:
        """
        Raises:
            NotFoundError: the conversation does not exist.
            VendorError: the gateway refused the message (it is marked failed).
            StorageError: the message could not be saved.
        """
        conversation = ConversationService(self.db).get_conversation_or_404(
            conversation_id
        )
        metadata = MetadataService(self.db).read(conversation_id)

        account_id = metadata.get(WHATSAPP_ACCOUNT_ID)
        delivers = conversation.platform == Platform.WHATSAPP.value and bool(account_id)

        # Without a gateway to hand it to, the message is sent once stored.
        message = self.messages.create_message(
            conversation_id=conversation_id,
            content=body.content,
            direction=MessageDirection.OUTBOUND,
            status=MessageStatus.PENDING if delivers else MessageStatus.SENT,
            sender_id=sender_id,
        )
        if delivers:
            message = await self._deliver(conversation, message, account_id)

        agent_reply = None
        if metadata.get(IS_AGENT) and metadata.get(AGENT_ID):
            agent = AgentService(
                self.db,
                completion_client=self.completion_client,
                timeout=self.settings.completion_timeout_seconds,
                history_limit=self.settings.agent_history_limit,
            )
            agent_reply = await agent.process_message(
                conversation_id, body.content, trigger_id=message.id
            )

        return MessageSendResponse(
            message=MessageRead.model_validate(message),
            agent_reply=(
                MessageRead.model_validate(agent_reply) if agent_reply else None
            ),
        )

    async def _deliver(
        self, conversation: Conversation, message: Message, account_id: str
    ) -> Message:
        try:
            gateway = WhatsAppAccountService(
                self.db, gateway_factory=self.gateway_factory
            ).get_gateway(UUID(str(account_id)))
            result = await run_in_threadpool(
                gateway.send_message,
                conversation.external_id or conversation.recipient,
                message.content,
                bool(conversation.is_group),
            )
        except ValueError as e:
            self.messages.update_status(message.id, MessageStatus.FAILED)
            raise ValidationError(
                f"Conversation has an invalid WhatsApp account id: {account_id}"
            ) from e
        except ConversationServiceError as e:
            self.logger.warning(
                "Delivery of message %s failed: %s", message.id, e.message
            )
            self.messages.update_status(message.id, MessageStatus.FAILED)
            raise
        return self.messages.update_status(
            message.id, MessageStatus.SENT, external_id=result.id
        )
