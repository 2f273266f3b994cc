"""Tests for AgentService: agent state machine, history and reply generation."""

from unittest.mock import patch
from uuid import UUID

import pytest
from sqlalchemy.exc import OperationalError

from app.constants.agent import AGENT_USER_ID, FALLBACK_REPLY, DefaultAgentConfig
from app.constants.messaging import MessageDirection, MessageStatus
from app.exceptions import StorageError
from app.models.message import Message
from app.schemas.agent import DEFAULT_AGENT_CONFIG, AgentConfigUpdate
from app.services.agent_service import AgentService
from app.services.message_service import MessageService
from app.services.metadata_service import MetadataService


def _count(db, conversation_id):
    return db.query(Message).filter(Message.conversation_id == conversation_id).count()


def test_create_agent_with_defaults(db, setup_conversation):
    response = AgentService(db).create_agent(setup_conversation.id, AgentConfigUpdate())

    assert UUID(response.agent_id)
    assert response.config == DEFAULT_AGENT_CONFIG
    document = MetadataService(db).read(setup_conversation.id)
    assert document["is_agent"] is True
    assert document["agent_id"] == response.agent_id
    assert document["agent_config"]["maxTokens"] == DefaultAgentConfig.MAX_TOKENS


def test_create_agent_merges_partial_config(db, setup_conversation):
    response = AgentService(db).create_agent(
        setup_conversation.id, AgentConfigUpdate(temperature=0.1)
    )
    assert response.config.temperature == 0.1
    assert response.config.model == DefaultAgentConfig.MODEL


def test_update_agent_config_merges_over_current(db, setup_agent_conversation):
    svc = AgentService(db)
    response = svc.update_agent_config(
        setup_agent_conversation.id, AgentConfigUpdate(max_tokens=50)
    )
    assert response.config.max_tokens == 50
    assert response.config.model == "gpt-4o-mini"
    assert svc.get_agent_state(setup_agent_conversation.id).config.max_tokens == 50


def test_disable_agent_keeps_other_metadata(db, setup_agent_conversation):
    MetadataService(db).record_import(setup_agent_conversation.id, chat_id="c1")
    svc = AgentService(db)
    svc.disable_agent(setup_agent_conversation.id)

    state = svc.get_agent_state(setup_agent_conversation.id)
    assert state.is_agent is False
    assert state.agent_id is None
    document = MetadataService(db).read(setup_agent_conversation.id)
    assert document["imported"] is True
    assert document["agent_config"]["model"] == "gpt-4o-mini"


def test_agent_state_for_plain_conversation(db, setup_conversation):
    state = AgentService(db).get_agent_state(setup_conversation.id)
    assert state.is_agent is False
    assert state.config is None


def test_build_history_roles_and_order(db, setup_agent_conversation):
    messages = MessageService(db)
    conversation_id = setup_agent_conversation.id
    messages.create_message(
        conversation_id, "Hi", MessageDirection.OUTBOUND, MessageStatus.SENT
    )
    messages.create_message(
        conversation_id,
        "Hello! How can I help?",
        MessageDirection.INBOUND,
        MessageStatus.DELIVERED,
        sender_id=AGENT_USER_ID,
    )

    history = AgentService(db).build_history(conversation_id)

    assert [(t.role, t.content) for t in history] == [
        ("system", "You are the support desk of Acme."),
        ("user", "Hi"),
        ("assistant", "Hello! How can I help?"),
    ]


def test_build_history_respects_limit(db, setup_agent_conversation):
    messages = MessageService(db)
    for i in range(5):
        messages.create_message(
            setup_agent_conversation.id, f"m{i}", MessageDirection.OUTBOUND, MessageStatus.SENT
        )
    history = AgentService(db).build_history(setup_agent_conversation.id, limit=2)
    assert [t.content for t in history[1:]] == ["m3", "m4"]


@pytest.mark.asyncio
async def test_process_message_persists_reply(
    db, setup_agent_conversation, fake_completion_client
):
    svc = AgentService(db, completion_client=fake_completion_client, timeout=5)
    reply = await svc.process_message(setup_agent_conversation.id, "What are your hours?")

    assert reply.content == "Happy to help!"
    assert reply.direction == MessageDirection.INBOUND
    assert reply.status == MessageStatus.DELIVERED
    assert reply.sender_id == AGENT_USER_ID

    (request,) = fake_completion_client.requests
    assert request.model == "gpt-4o-mini"
    assert request.temperature == 0.2
    assert request.max_tokens == 200
    assert request.messages[0].role == "system"
    assert request.messages[-1].role == "user"
    assert request.messages[-1].content == "What are your hours?"
    db.refresh(setup_agent_conversation)
    assert setup_agent_conversation.last_message == "Happy to help!"


@pytest.mark.asyncio
async def test_process_message_skips_stored_trigger_message(
    db, setup_agent_conversation, fake_completion_client
):
    trigger = MessageService(db).create_message(
        setup_agent_conversation.id,
        "What are your hours?",
        MessageDirection.OUTBOUND,
        MessageStatus.SENT,
    )
    svc = AgentService(db, completion_client=fake_completion_client, timeout=5)
    await svc.process_message(
        setup_agent_conversation.id, "What are your hours?", trigger_id=trigger.id
    )

    turns = fake_completion_client.requests[0].messages
    assert [t.content for t in turns].count("What are your hours?") == 1
    assert turns[-1].role == "user"


@pytest.mark.asyncio
async def test_process_message_keeps_repeated_user_text(
    db, setup_agent_conversation, fake_completion_client
):
    MessageService(db).create_message(
        setup_agent_conversation.id,
        "Are you there?",
        MessageDirection.OUTBOUND,
        MessageStatus.SENT,
    )
    svc = AgentService(db, completion_client=fake_completion_client, timeout=5)
    await svc.process_message(setup_agent_conversation.id, "Are you there?")

    contents = [t.content for t in fake_completion_client.requests[0].messages]
    assert contents == [
        "You are the support desk of Acme.",
        "Are you there?",
        "Are you there?",
    ]


@pytest.mark.asyncio
async def test_process_message_falls_back_when_completion_raises(
    db, setup_agent_conversation, fake_completion_client, caplog
):
    fake_completion_client.error = RuntimeError("upstream 503")
    before = _count(db, setup_agent_conversation.id)

    svc = AgentService(db, completion_client=fake_completion_client, timeout=5)
    reply = await svc.process_message(setup_agent_conversation.id, "What are your hours?")

    assert reply.content == FALLBACK_REPLY
    assert reply.direction == MessageDirection.INBOUND
    assert reply.status == MessageStatus.DELIVERED
    assert _count(db, setup_agent_conversation.id) == before + 1
    assert "upstream 503" in caplog.text


@pytest.mark.asyncio
async def test_process_message_falls_back_on_timeout(
    db, setup_agent_conversation, fake_completion_client
):
    fake_completion_client.delay = 1
    svc = AgentService(db, completion_client=fake_completion_client, timeout=0.05)
    reply = await svc.process_message(setup_agent_conversation.id, "hello?")
    assert reply.content == FALLBACK_REPLY


@pytest.mark.asyncio
async def test_process_message_falls_back_on_empty_choices(
    db, setup_agent_conversation, fake_completion_client
):
    fake_completion_client.empty = True
    svc = AgentService(db, completion_client=fake_completion_client)
    reply = await svc.process_message(setup_agent_conversation.id, "hello?")
    assert reply.content == FALLBACK_REPLY


@pytest.mark.asyncio
async def test_process_message_without_client_falls_back(db, setup_agent_conversation):
    reply = await AgentService(db).process_message(setup_agent_conversation.id, "hi")
    assert reply.content == FALLBACK_REPLY


@pytest.mark.asyncio
async def test_process_message_surfaces_reply_storage_failure(
    db, setup_agent_conversation, fake_completion_client, caplog
):
    fake_completion_client.error = RuntimeError("upstream 503")
    svc = AgentService(db, completion_client=fake_completion_client, timeout=5)
    before = _count(db, setup_agent_conversation.id)

    with patch.object(
        svc.messages, "create_message", side_effect=StorageError("Failed to save message")
    ):
        with pytest.raises(StorageError):
            await svc.process_message(setup_agent_conversation.id, "hello?")

    assert "upstream 503" in caplog.text
    assert _count(db, setup_agent_conversation.id) == before


@pytest.mark.asyncio
async def test_process_message_surfaces_commit_failure(
    db, setup_agent_conversation, fake_completion_client
):
    svc = AgentService(db, completion_client=fake_completion_client, timeout=5)

    with patch.object(db, "commit", side_effect=OperationalError("INSERT", {}, None)):
        with pytest.raises(StorageError):
            await svc.process_message(setup_agent_conversation.id, "hello?")

    assert len(fake_completion_client.requests) == 1
