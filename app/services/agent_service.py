"""
Automated reply agent for a conversation.

Agent state lives in the conversation metadata (is_agent, agent_id,
agent_config) and moves disabled -> enabled -> (reconfigured) -> disabled.
Replies are generated through an injected completion client and persisted as
inbound messages from the reserved agent identity.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.constants.agent import AGENT_USER_ID, DEFAULT_HISTORY_LIMIT, FALLBACK_REPLY
from app.constants.messaging import MessageDirection, MessageStatus
from app.exceptions import GenerationError
from app.infra.logging_config import get_logger
from app.models.message import Message
from app.schemas.agent import (
    AgentConfig,
    AgentConfigUpdate,
    AgentResponse,
    AgentState,
    ChatTurn,
    CompletionRequest,
)
from app.services.message_service import MessageService
from app.services.metadata_service import (
    AGENT_CONFIG,
    AGENT_ID,
    IS_AGENT,
    MetadataService,
)
from app.workers.llm import BaseCompletionClient

logger = get_logger("agent")


class AgentService:
    def __init__(
        self,
        db: Session,
        completion_client: Optional[BaseCompletionClient] = None,
        timeout: Optional[float] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        self.db = db
        self.completion_client = completion_client
        self.timeout = timeout
        self.history_limit = history_limit
        self.metadata = MetadataService(db)
        self.messages = MessageService(db)

    def create_agent(
        self, conversation_id: UUID, partial: Optional[AgentConfigUpdate] = None
    ) -> AgentResponse:
        """Enable the agent with a fresh id and partial config merged over the defaults."""
        config = AgentConfig().merged(partial)
        agent_id = str(uuid.uuid4())
        self.metadata.merge(
            conversation_id,
            {IS_AGENT: True, AGENT_ID: agent_id, AGENT_CONFIG: config.to_document()},
        )
        logger.info("Enabled agent %s on conversation %s", agent_id, conversation_id)
        return AgentResponse(agent_id=agent_id, config=config)

    def update_agent_config(
        self, conversation_id: UUID, partial: Optional[AgentConfigUpdate] = None
    ) -> AgentResponse:
        document = self.metadata.read(conversation_id)
        config = AgentConfig.from_document(document.get(AGENT_CONFIG)).merged(partial)
        self.metadata.merge(conversation_id, {AGENT_CONFIG: config.to_document()})
        return AgentResponse(agent_id=document.get(AGENT_ID), config=config)

    def disable_agent(self, conversation_id: UUID) -> None:
        """Turn the agent off. The stored config and import provenance are kept."""
        self.metadata.merge(conversation_id, {IS_AGENT: False, AGENT_ID: None})
        logger.info("Disabled agent on conversation %s", conversation_id)

    def get_agent_state(self, conversation_id: UUID) -> AgentState:
        document = self.metadata.read(conversation_id)
        enabled = bool(document.get(IS_AGENT)) and bool(document.get(AGENT_ID))
        config = None
        if AGENT_CONFIG in document:
            config = AgentConfig.from_document(document.get(AGENT_CONFIG))
        return AgentState(
            is_agent=enabled,
            agent_id=document.get(AGENT_ID) if enabled else None,
            config=config,
        )

    def get_config(self, conversation_id: UUID) -> AgentConfig:
        return AgentConfig.from_document(
            self.metadata.read(conversation_id).get(AGENT_CONFIG)
        )

    def build_history(
        self,
        conversation_id: UUID,
        limit: Optional[int] = None,
        config: Optional[AgentConfig] = None,
        exclude_id: Optional[UUID] = None,
    ) -> List[ChatTurn]:
        """System prompt followed by the last `limit` messages, oldest first."""
        config = config or self.get_config(conversation_id)
        recent = self.messages.get_recent_messages(
            conversation_id, limit or self.history_limit
        )
        turns = [ChatTurn(role="system", content=config.system_prompt)]
        for message in reversed(recent):
            if exclude_id is not None and message.id == exclude_id:
                continue
            role = "assistant" if message.sender_id == AGENT_USER_ID else "user"
            turns.append(ChatTurn(role=role, content=message.content))
        return turns

    async def generate_reply(
        self,
        conversation_id: UUID,
        user_text: str,
        trigger_id: Optional[UUID] = None,
    ) -> str:
        """
        Ask the completion client for a reply.

        `user_text` is always the final user turn. `trigger_id` names the stored
        message carrying that text, which is then left out of the history.

        Never raises for generation problems: timeouts, client errors and
        empty answers all produce the fallback reply.
        """
        config = self.get_config(conversation_id)
        turns = self.build_history(conversation_id, config=config, exclude_id=trigger_id)
        turns.append(ChatTurn(role="user", content=user_text))
        request = CompletionRequest(
            model=config.model,
            messages=turns,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )
        try:
            if self.completion_client is None:
                raise GenerationError("No completion client configured")
            response = await asyncio.wait_for(
                self.completion_client.complete(request), timeout=self.timeout
            )
            content = response.first_content()
            if content is None:
                raise GenerationError("Completion returned no content")
            return content
        except asyncio.TimeoutError:
            error = GenerationError(f"Completion timed out after {self.timeout}s")
        except GenerationError as e:
            error = e
        except Exception as e:
            error = GenerationError(f"Completion failed: {e}")
        logger.error(
            "Agent reply generation failed for conversation %s: %s",
            conversation_id,
            error.message,
        )
        return FALLBACK_REPLY

    async def process_message(
        self,
        conversation_id: UUID,
        user_text: str,
        trigger_id: Optional[UUID] = None,
    ) -> Message:
        """Generate and store the agent's reply. Storage failures propagate."""
        reply = await self.generate_reply(conversation_id, user_text, trigger_id)
        return self.messages.create_message(
            conversation_id=conversation_id,
            content=reply,
            direction=MessageDirection.INBOUND,
            status=MessageStatus.DELIVERED,
            sender_id=AGENT_USER_ID,
        )
