from uuid import UUID

from fastapi import Depends
from sqlalchemy.orm import Session

from app.adapters.base import GatewayFactory
from app.adapters.periskope import build_periskope_client
from app.db import get_db
from app.models.conversation import Conversation
from app.models.whatsapp_account import WhatsAppAccount
from app.services.conversation_service import ConversationService
from app.services.whatsapp_account_service import WhatsAppAccountService
from app.workers.llm import BaseCompletionClient, build_completion_client_from_env


def get_gateway_factory() -> GatewayFactory:
    """FastAPI dependency providing the vendor gateway factory."""
    return build_periskope_client


def get_completion_client() -> BaseCompletionClient:
    """FastAPI dependency providing the LLM completion client."""
    return build_completion_client_from_env()


def get_conversation_by_id(
    conversation_id: UUID,
    db: Session = Depends(get_db),
) -> Conversation:
    """FastAPI dependency to get a conversation by ID."""
    return ConversationService(db).get_conversation_or_404(conversation_id)


def get_whatsapp_account_by_id(
    account_id: UUID,
    db: Session = Depends(get_db),
) -> WhatsAppAccount:
    """FastAPI dependency to get a WhatsApp account by ID."""
    return WhatsAppAccountService(db).get_account_or_404(account_id)
