from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from pydantic_ai import Agent
from pydantic_ai.messages import (
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.litellm import LiteLLMProvider
from pydantic_ai.settings import ModelSettings

from app.config import get_settings
from app.infra.logging_config import get_logger
from app.schemas.agent import (
    ChatTurn,
    CompletionChoice,
    CompletionMessage,
    CompletionRequest,
    CompletionResponse,
)

logger = get_logger("llm")


class BaseCompletionClient(ABC):
    """Chat-completion collaborator: {model, messages, temperature, maxTokens} -> choices."""

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResponse: ...


def _history_to_message_list(history: List[ChatTurn]) -> List[Any]:
    """Convert chat turns to a pydantic_ai message_history list."""
    out: List[Any] = []
    for turn in history:
        content = (turn.content or "").strip()
        if not content:
            continue
        if turn.role == "user":
            out.append(ModelRequest(parts=[UserPromptPart(content=content)]))
        elif turn.role == "assistant":
            out.append(ModelResponse(parts=[TextPart(content=content)]))
        elif turn.role == "system":
            out.append(ModelRequest(parts=[SystemPromptPart(content=content)]))
    return out


def _split_prompt(turns: List[ChatTurn]) -> tuple[str, List[ChatTurn]]:
    """The trailing user turn becomes the prompt; everything before it is history."""
    if turns and turns[-1].role == "user":
        return turns[-1].content, list(turns[:-1])
    return "", list(turns)


class LLMCompletionClient(BaseCompletionClient):
    """Completion client over a LiteLLM/OpenAI-compatible endpoint via pydantic_ai."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._provider = LiteLLMProvider(api_key=api_key, api_base=api_base)
        self._timeout = timeout

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        prompt, history = _split_prompt(request.messages)
        model = OpenAIChatModel(request.model, provider=self._provider)
        agent = Agent(model)
        settings: ModelSettings = {
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }
        if self._timeout:
            settings["timeout"] = self._timeout
        result = await agent.run(
            prompt,
            message_history=_history_to_message_list(history),
            model_settings=settings,
        )
        output = result.output
        return CompletionResponse(
            choices=[
                CompletionChoice(
                    message=CompletionMessage(
                        content=str(output) if output is not None else None
                    )
                )
            ]
        )


def build_completion_client_from_env() -> LLMCompletionClient:
    settings = get_settings()
    logger.info(
        "Completion client config: api_key=%s, api_base=%s",
        "set" if settings.litellm_api_key else "not set",
        settings.litellm_api_base or "(default)",
    )
    if not settings.litellm_api_key:
        logger.warning(
            "LITELLM_API_KEY is not set; set it to a valid OpenAI or LiteLLM API key to avoid 401 errors."
        )
    return LLMCompletionClient(
        api_key=settings.litellm_api_key,
        api_base=settings.litellm_api_base,
        timeout=settings.completion_timeout_seconds,
    )
