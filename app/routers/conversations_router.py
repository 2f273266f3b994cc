"""Conversations API: CRUD, message history, sending and recent-message import."""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi_pagination import Page, Params
from fastapi_pagination.ext.sqlalchemy import paginate
from sqlalchemy.orm import Session

from app.adapters.base import GatewayFactory
from app.auth.dependencies import CurrentUser, get_current_user
from app.commands.imports.import_conversation_messages_command import (
    ImportConversationMessagesCommand,
)
from app.commands.imports.import_whatsapp_conversations_command import (
    ImportWhatsAppConversationsCommand,
)
from app.commands.messages.send_message_command import SendMessageCommand
from app.constants.messaging import Platform
from app.db import get_db
from app.models.conversation import Conversation
from app.routers.utils.dependencies import (
    get_completion_client,
    get_conversation_by_id,
    get_gateway_factory,
)
from app.schemas.conversation import ConversationCreate, ConversationRead
from app.schemas.imports import (
    BulkWhatsAppImportRequest,
    BulkWhatsAppImportResponse,
    ImportMessagesRequest,
    ImportMessagesResponse,
)
from app.schemas.message import MessageRead, MessageSend, MessageSendResponse
from app.services.conversation_service import ConversationService
from app.services.message_service import MessageService
from app.workers.llm import BaseCompletionClient

router = APIRouter(
    prefix="/conversations",
    tags=["conversations"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=Page[ConversationRead])
def list_conversations(
    platform: Optional[Platform] = None,
    params: Params = Depends(),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Page[ConversationRead]:
    """List the caller's conversations, most recently active first."""
    query = ConversationService(db).get_conversations_query(
        owner_user_id=current_user.id, platform=platform
    )
    return paginate(query, params=params)


@router.post("", response_model=ConversationRead, status_code=201)
def create_conversation(
    data: ConversationCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ConversationRead:
    """Create a conversation. An existing external id returns that conversation."""
    conversation = ConversationService(db).create_conversation(
        data, owner_user_id=current_user.id
    )
    return conversation


@router.post("/import-messages", response_model=ImportMessagesResponse)
def import_messages(
    body: ImportMessagesRequest,
    _current_user=Depends(get_current_user),
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
    db: Session = Depends(get_db),
) -> ImportMessagesResponse:
    """Import the most recent WhatsApp messages of a conversation."""
    command = ImportConversationMessagesCommand(db, gateway_factory=gateway_factory)
    return command.execute(body)


@router.post("/import/whatsapp", response_model=BulkWhatsAppImportResponse)
def import_whatsapp_conversations(
    body: BulkWhatsAppImportRequest,
    current_user: CurrentUser = Depends(get_current_user),
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
    db: Session = Depends(get_db),
) -> BulkWhatsAppImportResponse:
    """Create conversations for every new chat of a WhatsApp account."""
    command = ImportWhatsAppConversationsCommand(db, gateway_factory=gateway_factory)
    return command.execute(body, owner_user_id=current_user.id)


@router.get("/{conversation_id}", response_model=ConversationRead)
def get_conversation(
    _current_user=Depends(get_current_user),
    conversation: Conversation = Depends(get_conversation_by_id),
) -> ConversationRead:
    return conversation


@router.get("/{conversation_id}/messages", response_model=Page[MessageRead])
def list_messages(
    params: Params = Depends(),
    _current_user=Depends(get_current_user),
    conversation: Conversation = Depends(get_conversation_by_id),
    db: Session = Depends(get_db),
) -> Page[MessageRead]:
    """List messages of a conversation in chronological order."""
    query = MessageService(db).get_messages_query(conversation.id)
    return paginate(query, params=params)


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageSendResponse,
    status_code=201,
)
async def send_message(
    body: MessageSend,
    current_user: CurrentUser = Depends(get_current_user),
    conversation: Conversation = Depends(get_conversation_by_id),
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
    completion_client: BaseCompletionClient = Depends(get_completion_client),
    db: Session = Depends(get_db),
) -> MessageSendResponse:
    """Send a message; an enabled AI agent answers in the same request."""
    command = SendMessageCommand(
        db,
        gateway_factory=gateway_factory,
        completion_client=completion_client,
    )
    return await command.execute(conversation.id, body, sender_id=current_user.id)
