"""Conversation model: one canonical thread per (platform, external chat id)."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.core.metadata import MetadataDocument
from app.db import Base
from app.models.mixins import TimestampMixin, utcnow


class Conversation(Base, TimestampMixin):
    """
    A thread with a recipient on one platform.

    external_id is the vendor chat id; (platform, external_id) is unique when
    present so concurrent imports of the same chat resolve to one row.
    """

    __tablename__ = "conversations"

    __table_args__ = (
        UniqueConstraint(
            "platform", "external_id", name="uq_conversations_platform_external_id"
        ),
        Index("ix_conversations_owner_user_id", "owner_user_id"),
        Index("ix_conversations_last_message_at", "last_message_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    platform = Column(String(32), nullable=False)
    recipient = Column(String(512), nullable=False)
    external_id = Column(String(256), nullable=True)
    is_group = Column(Boolean, nullable=False, default=False)
    last_message = Column(Text, nullable=True)
    last_message_at = Column(DateTime(timezone=True), nullable=True, default=utcnow)
    # DB column "metadata"; avoid shadowing Base.metadata
    extra = Column("metadata", MetadataDocument, nullable=False, default=dict)
    owner_user_id = Column(Uuid, nullable=True)

    messages = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="Message.created_at",
    )

    @property
    def conversation_metadata(self) -> dict:
        """Expose DB column 'metadata' for Pydantic/serialization."""
        return self.extra or {}
