"""Import API: full WhatsApp chat history import."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.adapters.base import GatewayFactory
from app.auth.dependencies import get_current_user
from app.commands.imports.import_whatsapp_chat_command import ImportWhatsAppChatCommand
from app.db import get_db
from app.routers.utils.dependencies import get_gateway_factory
from app.schemas.imports import WhatsAppImportRequest, WhatsAppImportResponse

router = APIRouter(
    prefix="/import",
    tags=["import"],
)


@router.post("/whatsapp", response_model=WhatsAppImportResponse)
def import_whatsapp_chat(
    body: WhatsAppImportRequest,
    _current_user=Depends(get_current_user),
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
    db: Session = Depends(get_db),
) -> WhatsAppImportResponse:
    """Import a WhatsApp chat, creating its conversation when none exists."""
    command = ImportWhatsAppChatCommand(db, gateway_factory=gateway_factory)
    return command.execute(body)
