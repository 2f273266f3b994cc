"""Message persistence, history queries and status transitions."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from app.constants.messaging import MessageDirection, MessageStatus
from app.core.message_status import can_transition
from app.exceptions import NotFoundError, StorageError, ValidationError
from app.infra.logging_config import get_logger
from app.models.conversation import Conversation
from app.models.message import Message
from app.models.mixins import utcnow

logger = get_logger("messages")


class MessageService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_message(self, message_id: UUID) -> Optional[Message]:
        return self.db.query(Message).filter(Message.id == message_id).first()

    def get_messages_query(self, conversation_id: UUID) -> Query[Message]:
        """Messages of a conversation in chronological order (for pagination)."""
        return (
            self.db.query(Message)
            .filter(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
        )

    def get_recent_messages(self, conversation_id: UUID, limit: int) -> List[Message]:
        """Most recent messages, newest first."""
        return (
            self.db.query(Message)
            .filter(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
            .all()
        )

    def get_message_count(self, conversation_id: UUID) -> int:
        return (
            self.db.query(Message)
            .filter(Message.conversation_id == conversation_id)
            .count()
        )

    def create_message(
        self,
        conversation_id: UUID,
        content: str,
        direction: MessageDirection,
        status: MessageStatus,
        sender_id: Optional[UUID] = None,
        external_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Message:
        """
        Insert a message and move the conversation summary to it, in one commit.
        Raises StorageError on datastore failure.
        """
        conversation = (
            self.db.query(Conversation)
            .filter(Conversation.id == conversation_id)
            .first()
        )
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        timestamp = created_at or utcnow()
        message = Message(
            conversation_id=conversation_id,
            content=content,
            direction=MessageDirection(direction).value,
            status=MessageStatus(status).value,
            sender_id=sender_id,
            external_id=external_id,
            created_at=timestamp,
        )
        self.db.add(message)
        conversation.last_message = content
        conversation.last_message_at = timestamp
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to persist message in %s: %s", conversation_id, e)
            raise StorageError("Failed to save message") from e
        self.db.refresh(message)
        return message

    def update_status(
        self,
        message_id: UUID,
        status: MessageStatus,
        external_id: Optional[str] = None,
    ) -> Message:
        """Advance a message's status; illegal transitions raise ValidationError."""
        message = self.get_message(message_id)
        if message is None:
            raise NotFoundError(f"Message {message_id} not found")
        if not can_transition(message.status, status):
            raise ValidationError(
                f"Cannot change message status from {message.status} to {MessageStatus(status).value}"
            )
        message.status = MessageStatus(status).value
        if external_id and not message.external_id:
            message.external_id = external_id
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("Failed to update message status") from e
        self.db.refresh(message)
        return message
