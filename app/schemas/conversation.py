"""Pydantic schemas for Conversation."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.constants.messaging import Platform


class ConversationCreate(BaseModel):
    """Schema for creating a conversation explicitly through the API."""

    platform: Platform
    recipient: str = Field(..., min_length=1, max_length=512)
    external_id: Optional[str] = Field(None, max_length=256)
    is_group: bool = False
    metadata: Optional[dict[str, Any]] = None


class ConversationRead(BaseModel):
    """Conversation for API responses."""

    id: UUID
    platform: str
    recipient: str
    external_id: Optional[str] = None
    is_group: bool
    last_message: Optional[str] = None
    last_message_at: Optional[datetime] = None
    metadata: dict[str, Any] = Field(
        default_factory=dict, validation_alias="conversation_metadata"
    )
    owner_user_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
