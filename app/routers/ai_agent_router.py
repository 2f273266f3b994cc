"""AI agent API: enable, reconfigure, disable and inspect a conversation's agent."""

from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_user
from app.db import get_db
from app.exceptions import ValidationError
from app.models.conversation import Conversation
from app.routers.utils.dependencies import get_conversation_by_id
from app.schemas.agent import AgentRequest, AgentResponse, AgentState
from app.services.agent_service import AgentService

router = APIRouter(
    prefix="/conversations/{conversation_id}/ai-agent",
    tags=["ai-agent"],
    responses={404: {"description": "Not found"}},
)


@router.post("", response_model=AgentResponse)
def create_agent(
    body: Optional[AgentRequest] = Body(None),
    _current_user=Depends(get_current_user),
    conversation: Conversation = Depends(get_conversation_by_id),
    db: Session = Depends(get_db),
) -> AgentResponse:
    """Enable the AI agent, merging the given config over the defaults."""
    return AgentService(db).create_agent(
        conversation.id, body.config if body else None
    )


@router.patch("", response_model=AgentResponse)
def update_agent(
    body: Optional[AgentRequest] = Body(None),
    _current_user=Depends(get_current_user),
    conversation: Conversation = Depends(get_conversation_by_id),
    db: Session = Depends(get_db),
) -> AgentResponse:
    """Update the agent config. The agent must already be enabled."""
    svc = AgentService(db)
    if not svc.get_agent_state(conversation.id).is_agent:
        raise ValidationError("AI agent is not enabled for this conversation")
    return svc.update_agent_config(conversation.id, body.config if body else None)


@router.delete("")
def delete_agent(
    _current_user=Depends(get_current_user),
    conversation: Conversation = Depends(get_conversation_by_id),
    db: Session = Depends(get_db),
) -> dict:
    AgentService(db).disable_agent(conversation.id)
    return {"message": "AI agent disabled"}


@router.get("", response_model=AgentState)
def get_agent(
    _current_user=Depends(get_current_user),
    conversation: Conversation = Depends(get_conversation_by_id),
    db: Session = Depends(get_db),
) -> AgentState:
    return AgentService(db).get_agent_state(conversation.id)
