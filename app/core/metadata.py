"""
Conversation metadata document.

Older write paths stored the document as a serialized JSON string, newer ones
as a structured object. The stored value is classified once, at the column
boundary, into RawMetadata or ParsedMetadata and always surfaces as a dict.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Union

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import TypeDecorator

from app.infra.logging_config import get_logger

logger = get_logger("metadata")


@dataclass(frozen=True)
class RawMetadata:
    """Document stored as a serialized string."""

    text: str


@dataclass(frozen=True)
class ParsedMetadata:
    """Document stored as a structured mapping."""

    document: dict[str, Any] = field(default_factory=dict)


StoredMetadata = Union[RawMetadata, ParsedMetadata]


def classify_metadata(value: Any) -> StoredMetadata:
    """Tag a stored value. Anything that is neither a mapping nor a string is empty."""
    if isinstance(value, dict):
        return ParsedMetadata(dict(value))
    if isinstance(value, (str, bytes)):
        text = value.decode() if isinstance(value, bytes) else value
        return RawMetadata(text)
    return ParsedMetadata({})


def normalize_metadata(value: Any) -> dict[str, Any]:
    """
    Return the metadata document as a dict; never raises.

    Structured access first, then JSON parsing of a raw string. A parse failure
    or a non-object payload yields an empty document.
    """
    tagged = classify_metadata(value)
    if isinstance(tagged, ParsedMetadata):
        return tagged.document
    try:
        parsed = json.loads(tagged.text) if tagged.text.strip() else {}
    except (ValueError, TypeError):
        logger.warning("Discarding unparseable conversation metadata")
        return {}
    if isinstance(parsed, str):
        # double-encoded documents
        return normalize_metadata(parsed)
    return parsed if isinstance(parsed, dict) else {}


def merge_metadata(current: Any, updates: dict[str, Any]) -> dict[str, Any]:
    """Shallow merge updates over the normalized current document."""
    merged = dict(normalize_metadata(current))
    merged.update(updates)
    return merged


class MetadataDocument(TypeDecorator):
    """JSON column that always reads back as a dict and always writes a mapping."""

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value, dialect):
        if value is None:
            return {}
        return normalize_metadata(value)

    def process_result_value(self, value, dialect):
        return normalize_metadata(value)
