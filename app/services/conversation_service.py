"""Conversation CRUD and find-or-create by (platform, external id)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from app.constants.messaging import Platform
from app.exceptions import NotFoundError, StorageError
from app.infra.logging_config import get_logger
from app.models.conversation import Conversation
from app.schemas.conversation import ConversationCreate

logger = get_logger("conversations")


class ConversationService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_conversation(self, conversation_id: UUID) -> Optional[Conversation]:
        return (
            self.db.query(Conversation)
            .filter(Conversation.id == conversation_id)
            .first()
        )

    def get_conversation_or_404(self, conversation_id: UUID) -> Conversation:
        conversation = self.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        return conversation

    def get_by_external_id(
        self, platform: str, external_id: str
    ) -> Optional[Conversation]:
        return (
            self.db.query(Conversation)
            .filter(
                Conversation.platform == str(platform),
                Conversation.external_id == external_id,
            )
            .first()
        )

    def get_conversations_query(
        self,
        owner_user_id: Optional[UUID] = None,
        platform: Optional[str] = None,
    ) -> Query[Conversation]:
        """Get a query for conversations, most recently active first (for pagination)."""
        query = self.db.query(Conversation)
        if owner_user_id is not None:
            query = query.filter(Conversation.owner_user_id == owner_user_id)
        if platform is not None:
            query = query.filter(Conversation.platform == str(platform))
        return query.order_by(
            Conversation.last_message_at.desc(), Conversation.created_at.desc()
        )

    def get_conversations(
        self,
        owner_user_id: Optional[UUID] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Conversation]:
        return (
            self.get_conversations_query(owner_user_id=owner_user_id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def create_conversation(
        self, data: ConversationCreate, owner_user_id: Optional[UUID] = None
    ) -> Conversation:
        """Create explicitly; an existing external id resolves to its conversation."""
        conversation, _ = self.find_or_create(
            platform=data.platform,
            external_id=data.external_id,
            recipient=data.recipient,
            owner_user_id=owner_user_id,
            is_group=data.is_group,
            metadata=data.metadata,
        )
        return conversation

    def find_or_create(
        self,
        platform: Platform | str,
        external_id: Optional[str],
        recipient: str,
        owner_user_id: Optional[UUID] = None,
        is_group: bool = False,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Tuple[Conversation, bool]:
        """
        Return (conversation, created).

        With an external id, an existing (platform, external_id) row wins. A
        concurrent insert of the same pair trips the unique constraint; the
        loser rolls back and adopts the winner's row.
        """
        platform = Platform(platform)
        if external_id:
            existing = self.get_by_external_id(platform, external_id)
            if existing is not None:
                return existing, False

        conversation = Conversation(
            platform=platform.value,
            recipient=recipient,
            external_id=external_id or None,
            is_group=is_group,
            owner_user_id=owner_user_id,
            extra=dict(metadata or {}),
        )
        self.db.add(conversation)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if not external_id:
                raise StorageError("Failed to create conversation") from e
            winner = self.get_by_external_id(platform, external_id)
            if winner is None:
                raise StorageError("Failed to create conversation") from e
            logger.info(
                "Lost create race for %s:%s; adopting conversation %s",
                platform.value,
                external_id,
                winner.id,
            )
            return winner, False
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("Failed to create conversation") from e
        self.db.refresh(conversation)
        logger.info(
            "Created %s conversation %s (external_id=%s)",
            platform.value,
            conversation.id,
            external_id,
        )
        return conversation, True

    def update_summary(
        self, conversation_id: UUID, last_message: str, last_message_at: datetime
    ) -> Conversation:
        """Set last_message/last_message_at. Raises StorageError on datastore failure."""
        conversation = self.get_conversation_or_404(conversation_id)
        conversation.last_message = last_message
        conversation.last_message_at = last_message_at
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("Failed to update conversation summary") from e
        self.db.refresh(conversation)
        return conversation
