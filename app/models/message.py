"""Message model: one row per inbound or outbound message in a conversation."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.constants.messaging import MessageStatus
from app.db import Base
from app.models.mixins import utcnow


class Message(Base):
    """Immutable apart from status. external_id deduplicates vendor imports per conversation."""

    __tablename__ = "conversation_messages"

    __table_args__ = (
        UniqueConstraint(
            "conversation_id",
            "external_id",
            name="uq_conversation_messages_conversation_external_id",
        ),
        Index(
            "ix_conversation_messages_conversation_id_created_at",
            "conversation_id",
            "created_at",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id = Column(
        Uuid,
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    content = Column(Text, nullable=False, default="")
    direction = Column(String(16), nullable=False)  # 'inbound' | 'outbound'
    status = Column(String(16), nullable=False, default=MessageStatus.PENDING.value)
    external_id = Column(String(256), nullable=True)
    has_media = Column(Boolean, nullable=False, default=False)
    media = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    sender_id = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    conversation = relationship("Conversation", back_populates="messages")
