"""Vendor ack code normalization and the message status lifecycle."""

from __future__ import annotations

from typing import Any

from app.constants.messaging import MessageStatus

# Canonical vendor ack table. Unlisted integers mean the vendor accepted the
# message, so they map to SENT.
ACK_STATUS_MAP: dict[int, MessageStatus] = {
    -1: MessageStatus.FAILED,
    0: MessageStatus.PENDING,
    1: MessageStatus.SENT,
    2: MessageStatus.DELIVERED,
    3: MessageStatus.READ,
}

_STATUS_RANK: dict[MessageStatus, int] = {
    MessageStatus.PENDING: 0,
    MessageStatus.SENT: 1,
    MessageStatus.DELIVERED: 2,
    MessageStatus.READ: 3,
}

TERMINAL_STATUSES = frozenset({MessageStatus.READ, MessageStatus.FAILED})


def _coerce_ack(ack: Any) -> int | None:
    if ack is None or isinstance(ack, bool):
        return None
    if isinstance(ack, int):
        return ack
    if isinstance(ack, float):
        return int(ack) if ack.is_integer() else None
    if isinstance(ack, str):
        try:
            return int(ack.strip())
        except ValueError:
            return None
    return None


def map_ack_status(ack: Any = None) -> MessageStatus:
    """
    Map a vendor ack code to a canonical status.

    Total: absent or unparseable values give PENDING, unknown integers give SENT.
    """
    code = _coerce_ack(ack)
    if code is None:
        return MessageStatus.PENDING
    return ACK_STATUS_MAP.get(code, MessageStatus.SENT)


def can_transition(current: MessageStatus | str, new: MessageStatus | str) -> bool:
    """True if a message may move from current to new status."""
    current = MessageStatus(current)
    new = MessageStatus(new)
    if current in TERMINAL_STATUSES:
        return False
    if new == MessageStatus.FAILED:
        return True
    return _STATUS_RANK[new] > _STATUS_RANK[current]
