"""Agent configuration and completion-collaborator contracts."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from app.constants.agent import DefaultAgentConfig

# -----------------------------------------------------------------------------
# Agent configuration (stored camelCase under metadata.agent_config)
# -----------------------------------------------------------------------------


class AgentConfig(BaseModel):
    """Complete agent configuration."""

    model: str = DefaultAgentConfig.MODEL
    system_prompt: str = Field(DefaultAgentConfig.SYSTEM_PROMPT, alias="systemPrompt")
    temperature: float = Field(DefaultAgentConfig.TEMPERATURE, ge=0, le=1)
    max_tokens: int = Field(DefaultAgentConfig.MAX_TOKENS, gt=0, alias="maxTokens")

    model_config = {"populate_by_name": True, "protected_namespaces": ()}

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    @classmethod
    def from_document(cls, document: Any) -> "AgentConfig":
        """Build from a stored document, falling back to defaults for bad or missing data."""
        if not isinstance(document, dict):
            return cls()
        try:
            return cls.model_validate(document)
        except ValidationError:
            return cls()

    def merged(self, update: "AgentConfigUpdate | None") -> "AgentConfig":
        """Return a new config with the set fields of update applied."""
        if update is None:
            return self.model_copy()
        data = self.to_document()
        data.update(update.to_document())
        return AgentConfig.model_validate(data)


DEFAULT_AGENT_CONFIG = AgentConfig()


class AgentConfigUpdate(BaseModel):
    """Partial configuration; unset fields keep their current value."""

    model: Optional[str] = Field(None, min_length=1)
    system_prompt: Optional[str] = Field(None, alias="systemPrompt")
    temperature: Optional[float] = Field(None, ge=0, le=1)
    max_tokens: Optional[int] = Field(None, gt=0, alias="maxTokens")

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
        "extra": "forbid",
    }

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class AgentRequest(BaseModel):
    """Body of POST/PATCH /conversations/{id}/ai-agent."""

    config: Optional[AgentConfigUpdate] = None


class AgentResponse(BaseModel):
    agent_id: Optional[str] = Field(None, serialization_alias="agentId")
    config: AgentConfig


class AgentState(BaseModel):
    is_agent: bool = Field(False, serialization_alias="isAgent")
    agent_id: Optional[str] = Field(None, serialization_alias="agentId")
    config: Optional[AgentConfig] = None


# -----------------------------------------------------------------------------
# Completion collaborator wire shapes
# -----------------------------------------------------------------------------

ChatRole = Literal["system", "user", "assistant"]


class ChatTurn(BaseModel):
    role: ChatRole
    content: str


class CompletionRequest(BaseModel):
    model: str
    messages: list[ChatTurn]
    temperature: float = Field(..., ge=0, le=1)
    max_tokens: int = Field(..., gt=0, alias="maxTokens")

    model_config = {"populate_by_name": True, "protected_namespaces": ()}


class CompletionMessage(BaseModel):
    content: Optional[str] = None


class CompletionChoice(BaseModel):
    message: CompletionMessage


class CompletionResponse(BaseModel):
    choices: list[CompletionChoice] = Field(default_factory=list)

    def first_content(self) -> Optional[str]:
        """Content of the first choice, or None when absent or blank."""
        if not self.choices:
            return None
        content = self.choices[0].message.content
        if content is None or not content.strip():
            return None
        return content
