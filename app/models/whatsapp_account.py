"""WhatsApp gateway account; gateway credentials are stored Fernet-encrypted."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, LargeBinary, String, UniqueConstraint, Uuid

from app.db import Base
from app.models.mixins import TimestampMixin


class WhatsAppAccount(Base, TimestampMixin):
    __tablename__ = "whatsapp_accounts"

    __table_args__ = (
        UniqueConstraint(
            "owner_user_id", "phone_number", name="uq_whatsapp_accounts_owner_phone"
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_user_id = Column(Uuid, nullable=True, index=True)
    phone_number = Column(String(32), nullable=False)
    account_name = Column(String(255), nullable=True)
    encrypted_credentials = Column(LargeBinary, nullable=False)
