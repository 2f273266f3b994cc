"""WhatsApp API: gateway account registry and vendor chat listing."""

from typing import Optional

from fastapi import APIRouter, Depends, Response
from fastapi_pagination import Page, Params
from fastapi_pagination.ext.sqlalchemy import paginate
from sqlalchemy.orm import Session

from app.adapters.base import GatewayFactory
from app.auth.dependencies import CurrentUser, get_current_user
from app.db import get_db
from app.exceptions import NotFoundError
from app.models.whatsapp_account import WhatsAppAccount
from app.routers.utils.dependencies import (
    get_gateway_factory,
    get_whatsapp_account_by_id,
)
from app.schemas.whatsapp import (
    VendorChatList,
    VendorChatRead,
    WhatsAppAccountCreate,
    WhatsAppAccountRead,
)
from app.services.whatsapp_account_service import WhatsAppAccountService

router = APIRouter(
    prefix="/whatsapp",
    tags=["whatsapp"],
    responses={404: {"description": "Not found"}},
)


@router.get("/accounts", response_model=Page[WhatsAppAccountRead])
def list_accounts(
    params: Params = Depends(),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Page[WhatsAppAccountRead]:
    query = WhatsAppAccountService(db).get_accounts_query(current_user.id)
    return paginate(query, params=params)


@router.post("/accounts", response_model=WhatsAppAccountRead, status_code=201)
def create_account(
    data: WhatsAppAccountCreate,
    current_user: CurrentUser = Depends(get_current_user),
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
    db: Session = Depends(get_db),
) -> WhatsAppAccountRead:
    """Register a WhatsApp account; credentials are verified against the gateway first."""
    svc = WhatsAppAccountService(db, gateway_factory=gateway_factory)
    return svc.create_account(data, owner_user_id=current_user.id)


@router.get("/accounts/{account_id}", response_model=WhatsAppAccountRead)
def get_account(
    _current_user=Depends(get_current_user),
    account: WhatsAppAccount = Depends(get_whatsapp_account_by_id),
) -> WhatsAppAccountRead:
    return account


@router.delete("/accounts/{account_id}", status_code=204)
def delete_account(
    _current_user=Depends(get_current_user),
    account: WhatsAppAccount = Depends(get_whatsapp_account_by_id),
    db: Session = Depends(get_db),
) -> Response:
    if not WhatsAppAccountService(db).delete_account(account.id):
        raise NotFoundError(f"WhatsApp account {account.id} not found")
    return Response(status_code=204)


@router.get("/accounts/{account_id}/chats", response_model=VendorChatList)
def list_chats(
    chat_type: Optional[str] = None,
    _current_user=Depends(get_current_user),
    account: WhatsAppAccount = Depends(get_whatsapp_account_by_id),
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
    db: Session = Depends(get_db),
) -> VendorChatList:
    """List the account's chats as reported by the gateway."""
    svc = WhatsAppAccountService(db, gateway_factory=gateway_factory)
    chats = svc.list_chats(account.id, chat_type=chat_type)
    return VendorChatList(chats=[VendorChatRead.from_vendor(c) for c in chats])
