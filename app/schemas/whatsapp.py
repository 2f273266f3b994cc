"""
Vendor (Periskope WhatsApp gateway) payload shapes and account schemas.

The vendor has shipped several field spellings over time (fromMe/from_me,
body/text, id/message_id); aliases accept all of them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

# -----------------------------------------------------------------------------
# Vendor payloads
# -----------------------------------------------------------------------------


class VendorMedia(BaseModel):
    type: Optional[str] = Field(
        None, validation_alias=AliasChoices("type", "mimetype", "mime_type")
    )
    url: Optional[str] = Field(None, validation_alias=AliasChoices("url", "path"))

    model_config = {"extra": "ignore"}


class VendorMessage(BaseModel):
    """A single message as returned by listMessages."""

    id: Optional[str] = Field(
        None, validation_alias=AliasChoices("id", "message_id", "messageId")
    )
    body: Optional[str] = Field(None, validation_alias=AliasChoices("body", "text"))
    caption: Optional[str] = None
    from_me: bool = Field(False, validation_alias=AliasChoices("fromMe", "from_me"))
    ack: Optional[Union[int, str]] = None
    timestamp: Optional[datetime] = None
    media: Optional[VendorMedia] = None
    message_type: Optional[str] = Field(
        None, validation_alias=AliasChoices("message_type", "type")
    )

    model_config = {"extra": "ignore"}


class VendorChat(BaseModel):
    """A chat as returned by listChats."""

    id: str = Field(..., validation_alias=AliasChoices("id", "chat_id"))
    title: Optional[str] = Field(
        None, validation_alias=AliasChoices("title", "chat_name", "name")
    )
    phone: Optional[str] = None
    is_group: bool = Field(False, validation_alias=AliasChoices("isGroup", "is_group"))
    last_message_timestamp: Optional[int] = Field(
        None,
        validation_alias=AliasChoices("lastMessageTimestamp", "last_message_timestamp"),
    )
    unread_count: int = Field(
        0, validation_alias=AliasChoices("unreadCount", "unread_count")
    )

    model_config = {"extra": "ignore"}

    @property
    def display_title(self) -> str:
        if self.title:
            return self.title
        if self.is_group:
            return "Group Chat"
        return self.phone or "Unknown"


class VendorSendResult(BaseModel):
    id: Optional[str] = Field(
        None, validation_alias=AliasChoices("id", "message_id", "messageId")
    )

    model_config = {"extra": "ignore"}


class VendorChatRead(BaseModel):
    """Chat summary returned by GET /whatsapp/accounts/{id}/chats."""

    id: str
    title: str
    phone: Optional[str] = None
    is_group: bool = Field(serialization_alias="isGroup")
    last_message_timestamp: Optional[int] = Field(
        None, serialization_alias="lastMessageTimestamp"
    )
    unread_count: int = Field(0, serialization_alias="unreadCount")

    @classmethod
    def from_vendor(cls, chat: VendorChat) -> "VendorChatRead":
        return cls(
            id=chat.id,
            title=chat.display_title,
            phone=chat.phone,
            is_group=chat.is_group,
            last_message_timestamp=chat.last_message_timestamp,
            unread_count=chat.unread_count,
        )


class VendorChatList(BaseModel):
    chats: list[VendorChatRead] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# WhatsApp accounts
# -----------------------------------------------------------------------------


class WhatsAppAccountCreate(BaseModel):
    phone_number: str = Field(..., min_length=5, max_length=32)
    api_key: str = Field(..., min_length=1)
    account_name: Optional[str] = Field(None, max_length=255)


class WhatsAppAccountRead(BaseModel):
    """Account for API responses; credentials are never exposed."""

    id: UUID
    owner_user_id: Optional[UUID] = None
    phone_number: str
    account_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
