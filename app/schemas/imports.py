"""Request/response schemas for the message import endpoints."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.message import MessageRead


class ImportMessagesRequest(BaseModel):
    """Body of POST /conversations/import-messages."""

    conversation_id: UUID = Field(..., alias="conversationId")
    whatsapp_account_id: UUID = Field(..., alias="whatsappAccountId")

    model_config = {"populate_by_name": True}


class ImportMessagesResponse(BaseModel):
    message_count: int = Field(serialization_alias="messageCount")
    messages: list[MessageRead] = Field(default_factory=list)


class WhatsAppImportRequest(BaseModel):
    """Body of POST /import/whatsapp."""

    chat_id: str = Field(..., alias="chatId", min_length=1)
    phone_number: str = Field(..., alias="phoneNumber", min_length=1)
    user_id: Optional[UUID] = Field(None, alias="userId")
    conversation_id: Optional[UUID] = Field(None, alias="conversationId")

    model_config = {"populate_by_name": True}


class WhatsAppImportResponse(BaseModel):
    conversation_id: UUID
    total_messages: int
    imported_messages: int
    failed_messages: int

class BulkWhatsAppImportRequest(BaseModel):
    """Body of POST /conversations/import/whatsapp."""

    whatsapp_account_id: UUID = Field(..., alias="whatsappAccountId")

    model_config = {"populate_by_name": True}


class ChatImportResult(BaseModel):
    """Outcome for one vendor chat of a bulk import."""

    chat_id: str = Field(serialization_alias="chatId")
    conversation_id: Optional[UUID] = Field(None, serialization_alias="conversationId")
    created: bool = False
    total_messages: int = Field(0, serialization_alias="totalMessages")
    imported_messages: int = Field(0, serialization_alias="importedMessages")
    failed_messages: int = Field(0, serialization_alias="failedMessages")
    error: Optional[str] = None


class BulkWhatsAppImportResponse(BaseModel):
    imported_conversations: int = Field(serialization_alias="importedConversations")
    skipped_conversations: int = Field(serialization_alias="skippedConversations")
    failed_conversations: int = Field(serialization_alias="failedConversations")
    chats: list[ChatImportResult] = Field(default_factory=list)
