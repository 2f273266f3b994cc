"""Tests for the pydantic-ai completion client."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic_ai.messages import ModelRequest, ModelResponse

from app.schemas.agent import ChatTurn, CompletionRequest
from app.workers.llm import LLMCompletionClient, _history_to_message_list, _split_prompt


def test_split_prompt_takes_trailing_user_turn():
    turns = [
        ChatTurn(role="system", content="sys"),
        ChatTurn(role="assistant", content="hello"),
        ChatTurn(role="user", content="question"),
    ]
    prompt, history = _split_prompt(turns)
    assert prompt == "question"
    assert [t.content for t in history] == ["sys", "hello"]


def test_history_conversion_skips_blank_turns():
    out = _history_to_message_list(
        [
            ChatTurn(role="system", content="sys"),
            ChatTurn(role="user", content="  "),
            ChatTurn(role="assistant", content="hi"),
        ]
    )
    assert len(out) == 2
    assert isinstance(out[0], ModelRequest)
    assert isinstance(out[1], ModelResponse)


@pytest.mark.asyncio
async def test_complete_runs_agent_with_model_settings():
    run_result = MagicMock(output="Our hours are 9-5.")
    agent = MagicMock()
    agent.run = AsyncMock(return_value=run_result)

    with patch("app.workers.llm.LiteLLMProvider"), patch(
        "app.workers.llm.OpenAIChatModel"
    ) as model_cls, patch("app.workers.llm.Agent", return_value=agent):
        client = LLMCompletionClient(api_key="k", timeout=7)
        response = await client.complete(
            CompletionRequest(
                model="gpt-4o-mini",
                messages=[
                    ChatTurn(role="system", content="Be brief."),
                    ChatTurn(role="user", content="Hours?"),
                ],
                temperature=0.3,
                max_tokens=64,
            )
        )

    assert response.first_content() == "Our hours are 9-5."
    assert model_cls.call_args.args[0] == "gpt-4o-mini"
    args, kwargs = agent.run.call_args
    assert args == ("Hours?",)
    assert kwargs["model_settings"] == {"temperature": 0.3, "max_tokens": 64, "timeout": 7}
    assert len(kwargs["message_history"]) == 1
