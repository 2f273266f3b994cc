"""
Batched, deduplicating import of vendor messages into a conversation.

Each batch is its own transaction. Rows whose (conversation_id, external_id)
already exist are skipped by the database (ON CONFLICT DO NOTHING), so
re-running an import is safe. A failing batch is rolled back, counted as
failed and the import moves on; the call itself only raises when the
conversation does not exist.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.constants.messaging import MessageDirection
from app.core.message_status import map_ack_status
from app.exceptions import StorageError, VendorError
from app.infra.logging_config import get_logger
from app.models.conversation import Conversation
from app.models.message import Message
from app.models.mixins import utcnow
from app.schemas.whatsapp import VendorMessage
from app.services.conversation_service import ConversationService

logger = get_logger("importer")

DEFAULT_BATCH_SIZE = 100
MEDIA_PLACEHOLDER = "(Media message)"


@dataclass
class ImportResult:
    """Outcome of one import call. Duplicates count as neither imported nor failed."""

    total: int = 0
    imported: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: bool = False
    imported_ids: List[UUID] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)


@dataclass
class _PreparedRow:
    position: int
    values: dict[str, Any]


def _partition(items: Sequence[Any], size: int) -> Iterator[Tuple[int, Sequence[Any]]]:
    for start in range(0, len(items), size):
        yield start, items[start : start + size]


def _as_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return utcnow()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def message_content(vendor_message: VendorMessage) -> str:
    """Body, else caption, else a placeholder for media-only messages."""
    if vendor_message.body:
        return vendor_message.body
    if vendor_message.caption:
        return vendor_message.caption
    if vendor_message.media is not None:
        return MEDIA_PLACEHOLDER
    return ""


class MessageImporter:
    def __init__(self, db: Session, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        self.db = db
        self.batch_size = batch_size
        self._conversations = ConversationService(db)

    def import_batch(
        self,
        conversation_id: UUID,
        vendor_messages: Sequence[VendorMessage | dict[str, Any]],
        batch_size: Optional[int] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> ImportResult:
        """
        Import vendor messages in input order, batch_size at a time.

        should_cancel is polled between batches, never inside one.
        """
        size = batch_size or self.batch_size
        if size < 1:
            raise ValueError("batch_size must be positive")
        conversation = self._conversations.get_conversation_or_404(conversation_id)
        owner_user_id = conversation.owner_user_id

        result = ImportResult(total=len(vendor_messages))
        imported_rows: List[_PreparedRow] = []

        for batch_number, (start, batch) in enumerate(_partition(vendor_messages, size)):
            if should_cancel is not None and should_cancel():
                result.cancelled = True
                logger.info(
                    "Import into %s cancelled before batch %d", conversation_id, batch_number
                )
                break
            try:
                rows = self._prepare_rows(conversation_id, owner_user_id, batch, start)
                inserted_ids = self._insert_batch(rows)
            except (VendorError, SQLAlchemyError) as e:
                self.db.rollback()
                result.failed += len(batch)
                logger.warning(
                    "Batch %d (%d messages) failed for conversation %s: %s",
                    batch_number,
                    len(batch),
                    conversation_id,
                    e,
                )
                continue
            inserted = [row for row in rows if row.values["id"] in inserted_ids]
            imported_rows.extend(inserted)
            result.imported += len(inserted)
            result.skipped += len(batch) - len(inserted)

        result.imported_ids = [row.values["id"] for row in imported_rows]
        if imported_rows:
            self._update_summary(conversation, imported_rows)
            result.messages = self.fetch_imported(result)

        logger.info(
            "Imported %d/%d messages into %s (failed=%d, skipped=%d, cancelled=%s)",
            result.imported,
            result.total,
            conversation_id,
            result.failed,
            result.skipped,
            result.cancelled,
        )
        return result

    def fetch_imported(self, result: ImportResult) -> List[Message]:
        """Load the messages an import inserted, in chronological order."""
        if not result.imported_ids:
            return []
        messages: List[Message] = []
        for _, chunk in _partition(result.imported_ids, 500):
            messages.extend(
                self.db.query(Message).filter(Message.id.in_(list(chunk))).all()
            )
        messages.sort(key=lambda m: (_as_utc(m.created_at), str(m.id)))
        return messages

    def _prepare_rows(
        self,
        conversation_id: UUID,
        owner_user_id: Optional[UUID],
        batch: Sequence[VendorMessage | dict[str, Any]],
        start: int,
    ) -> List[_PreparedRow]:
        rows: List[_PreparedRow] = []
        seen: set[str] = set()
        for offset, raw in enumerate(batch):
            try:
                vendor_message = (
                    raw
                    if isinstance(raw, VendorMessage)
                    else VendorMessage.model_validate(raw)
                )
            except PydanticValidationError as e:
                raise VendorError(f"Malformed vendor message: {e}") from e
            external_id = vendor_message.id or None
            if external_id is not None:
                if external_id in seen:
                    continue
                seen.add(external_id)
            direction = (
                MessageDirection.OUTBOUND
                if vendor_message.from_me
                else MessageDirection.INBOUND
            )
            media = None
            if vendor_message.media is not None:
                media = vendor_message.media.model_dump(exclude_none=True)
            rows.append(
                _PreparedRow(
                    position=start + offset,
                    values={
                        "id": uuid.uuid4(),
                        "conversation_id": conversation_id,
                        "content": message_content(vendor_message),
                        "direction": direction.value,
                        "status": map_ack_status(vendor_message.ack).value,
                        "external_id": external_id,
                        "has_media": vendor_message.media is not None,
                        "media": media,
                        "sender_id": (
                            owner_user_id
                            if direction == MessageDirection.OUTBOUND
                            else None
                        ),
                        "created_at": _as_utc(vendor_message.timestamp),
                    },
                )
            )
        return rows

    def _insert_batch(self, rows: List[_PreparedRow]) -> set[UUID]:
        """Insert rows in one transaction and return the ids actually inserted."""
        if not rows:
            return set()
        values = [row.values for row in rows]
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = pg_insert(Message).values(values)
        elif dialect == "sqlite":
            stmt = sqlite_insert(Message).values(values)
        else:
            return self._insert_with_precheck(values)
        stmt = stmt.on_conflict_do_nothing(
            index_elements=["conversation_id", "external_id"]
        ).returning(Message.id)
        inserted = set(self.db.execute(stmt).scalars().all())
        self.db.commit()
        return inserted

    def _insert_with_precheck(self, values: List[dict[str, Any]]) -> set[UUID]:
        """Portable path: drop rows whose external id already exists, then insert."""
        conversation_id = values[0]["conversation_id"]
        external_ids = [v["external_id"] for v in values if v["external_id"]]
        existing: set[str] = set()
        if external_ids:
            existing = {
                external_id
                for (external_id,) in self.db.query(Message.external_id)
                .filter(
                    Message.conversation_id == conversation_id,
                    Message.external_id.in_(external_ids),
                )
                .all()
            }
        fresh = [v for v in values if v["external_id"] not in existing]
        if fresh:
            self.db.bulk_insert_mappings(Message, fresh)
        self.db.commit()
        return {v["id"] for v in fresh}

    def _update_summary(
        self, conversation: Conversation, imported_rows: List[_PreparedRow]
    ) -> None:
        """Best effort: failures are logged and never undo the imported messages."""
        latest = max(
            imported_rows,
            key=lambda row: (row.values["created_at"], row.position),
        )
        try:
            self._conversations.update_summary(
                conversation.id,
                last_message=latest.values["content"],
                last_message_at=latest.values["created_at"],
            )
        except (StorageError, SQLAlchemyError) as e:
            self.db.rollback()
            logger.error(
                "Imported messages into %s but failed to update its summary: %s",
                conversation.id,
                e,
            )
