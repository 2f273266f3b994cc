"""
Read-merge-write access to the conversation metadata document.

There is no compare-and-swap: two writers merging different keys both land,
but on the same key the last writer wins. Accepted limitation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.metadata import merge_metadata, normalize_metadata
from app.exceptions import NotFoundError, StorageError
from app.models.conversation import Conversation

# Recognized keys
IS_AGENT = "is_agent"
AGENT_ID = "agent_id"
AGENT_CONFIG = "agent_config"
WHATSAPP_ACCOUNT_ID = "whatsapp_account_id"
WHATSAPP_CHAT_ID = "whatsapp_chat_id"
IMPORTED = "imported"
IMPORT_DATE = "import_date"


class MetadataService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _load(self, conversation_id: UUID) -> Conversation:
        conversation = (
            self.db.query(Conversation)
            .filter(Conversation.id == conversation_id)
            .populate_existing()
            .first()
        )
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        return conversation

    def read(self, conversation_id: UUID) -> dict[str, Any]:
        """Current document; unparseable or missing metadata reads as {}."""
        return dict(normalize_metadata(self._load(conversation_id).extra))

    def merge(self, conversation_id: UUID, updates: dict[str, Any]) -> dict[str, Any]:
        """Shallow-merge updates into the stored document and return the result."""
        conversation = self._load(conversation_id)
        merged = merge_metadata(conversation.extra, updates)
        conversation.extra = merged
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("Failed to update conversation metadata") from e
        return dict(merged)

    def record_import(
        self,
        conversation_id: UUID,
        chat_id: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> dict[str, Any]:
        """Stamp import provenance (chat id, account, imported flag, timestamp)."""
        updates: dict[str, Any] = {
            IMPORTED: True,
            IMPORT_DATE: datetime.now(timezone.utc).isoformat(),
        }
        if chat_id:
            updates[WHATSAPP_CHAT_ID] = chat_id
        if account_id is not None:
            updates[WHATSAPP_ACCOUNT_ID] = str(account_id)
        return self.merge(conversation_id, updates)
