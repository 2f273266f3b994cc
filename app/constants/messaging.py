"""Canonical enums for conversations and messages."""

from enum import StrEnum


class Platform(StrEnum):
    """Channels a conversation can belong to."""

    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"
    EMAIL = "email"
    SLACK = "slack"
    AI = "ai"


class MessageDirection(StrEnum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class MessageStatus(StrEnum):
    """Delivery status; advances pending -> sent -> delivered -> read, or ends in failed."""

    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"
