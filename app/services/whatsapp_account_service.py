"""Service for WhatsApp gateway accounts and access to their gateway clients."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from app.adapters.base import BaseGatewayClient, GatewayFactory
from app.adapters.periskope import build_periskope_client
from app.core.credentials import (
    decrypt_credential_fields,
    encrypt_credential_fields,
    validate_credential_fields,
)
from app.exceptions import NotFoundError, StorageError, ValidationError, VendorError
from app.infra.logging_config import get_logger
from app.models.whatsapp_account import WhatsAppAccount
from app.schemas.whatsapp import VendorChat, WhatsAppAccountCreate

logger = get_logger("whatsapp_accounts")


class WhatsAppAccountService:
    """Registers gateway accounts and builds clients from their stored credentials."""

    def __init__(
        self,
        db: Session,
        gateway_factory: Optional[GatewayFactory] = None,
    ) -> None:
        self.db = db
        self.gateway_factory = gateway_factory or build_periskope_client

    def get_account(self, account_id: UUID) -> Optional[WhatsAppAccount]:
        return (
            self.db.query(WhatsAppAccount)
            .filter(WhatsAppAccount.id == account_id)
            .first()
        )

    def get_account_or_404(self, account_id: UUID) -> WhatsAppAccount:
        account = self.get_account(account_id)
        if account is None:
            raise NotFoundError(f"WhatsApp account {account_id} not found")
        return account

    def get_accounts_query(
        self, owner_user_id: Optional[UUID] = None
    ) -> Query[WhatsAppAccount]:
        """Get a query for accounts (for pagination)."""
        query = self.db.query(WhatsAppAccount)
        if owner_user_id is not None:
            query = query.filter(WhatsAppAccount.owner_user_id == owner_user_id)
        return query.order_by(WhatsAppAccount.created_at.desc())

    def get_accounts(
        self, owner_user_id: Optional[UUID] = None, skip: int = 0, limit: int = 100
    ) -> List[WhatsAppAccount]:
        return self.get_accounts_query(owner_user_id).offset(skip).limit(limit).all()

    def create_account(
        self, data: WhatsAppAccountCreate, owner_user_id: Optional[UUID] = None
    ) -> WhatsAppAccount:
        """
        Register an account after probing the gateway with its credentials.

        Raises ValidationError when the fields are incomplete or the gateway
        rejects them.
        """
        fields: Dict[str, Any] = {
            "api_key": data.api_key,
            "phone_number": data.phone_number,
        }
        try:
            validate_credential_fields(fields)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        try:
            self.gateway_factory(data.api_key, data.phone_number).list_chats()
        except VendorError as e:
            logger.warning(
                "Credential check failed for WhatsApp number %s: %s",
                data.phone_number,
                e.message,
            )
            raise ValidationError("Could not verify WhatsApp credentials") from e

        account = WhatsAppAccount(
            owner_user_id=owner_user_id,
            phone_number=data.phone_number,
            account_name=data.account_name,
            encrypted_credentials=encrypt_credential_fields(fields),
        )
        self.db.add(account)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError(
                f"WhatsApp account for {data.phone_number} already exists"
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("Failed to save WhatsApp account") from e
        self.db.refresh(account)
        logger.info("Registered WhatsApp account %s", account.id)
        return account

    def delete_account(self, account_id: UUID) -> bool:
        account = self.get_account(account_id)
        if account is None:
            return False
        self.db.delete(account)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("Failed to delete WhatsApp account") from e
        return True

    def get_account_fields(self, account_id: UUID) -> Dict[str, Any]:
        """Decrypt and return credential fields. Internal use only."""
        account = self.get_account_or_404(account_id)
        try:
            return decrypt_credential_fields(account.encrypted_credentials)
        except ValueError as e:
            logger.error("Credentials of WhatsApp account %s are unreadable", account_id)
            raise StorageError("Stored WhatsApp credentials are unreadable") from e

    def get_gateway(self, account_id: UUID) -> BaseGatewayClient:
        fields = self.get_account_fields(account_id)
        return self.gateway_factory(fields["api_key"], fields["phone_number"])

    def list_chats(
        self, account_id: UUID, chat_type: Optional[str] = None
    ) -> List[VendorChat]:
        return self.get_gateway(account_id).list_chats(chat_type=chat_type)
