"""Pydantic schemas for conversation messages."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.constants.messaging import MessageDirection, MessageStatus


class MessageRead(BaseModel):
    """Message for API responses."""

    id: UUID
    conversation_id: UUID
    content: str
    direction: MessageDirection
    status: MessageStatus
    external_id: Optional[str] = None
    has_media: bool = False
    media: Optional[dict[str, Any]] = None
    sender_id: Optional[UUID] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class MessageSend(BaseModel):
    """Body of POST /conversations/{id}/messages."""

    content: str = Field(..., min_length=1)


class MessageSendResponse(BaseModel):
    message: MessageRead
    agent_reply: Optional[MessageRead] = Field(None, serialization_alias="agentReply")
