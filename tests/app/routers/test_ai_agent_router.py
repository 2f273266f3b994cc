"""Tests for the AI agent API."""

from uuid import UUID, uuid4

from app.constants.agent import DefaultAgentConfig
from app.services.metadata_service import MetadataService


def test_enable_agent_with_defaults(client, db, setup_conversation):
    r = client.post(f"/conversations/{setup_conversation.id}/ai-agent", json={})
    assert r.status_code == 200
    data = r.json()
    assert UUID(data["agentId"])
    assert data["config"] == {
        "model": DefaultAgentConfig.MODEL,
        "systemPrompt": DefaultAgentConfig.SYSTEM_PROMPT,
        "temperature": DefaultAgentConfig.TEMPERATURE,
        "maxTokens": DefaultAgentConfig.MAX_TOKENS,
    }
    assert MetadataService(db).read(setup_conversation.id)["is_agent"] is True


def test_enable_agent_without_body(client, setup_conversation):
    r = client.post(f"/conversations/{setup_conversation.id}/ai-agent")
    assert r.status_code == 200
    assert r.json()["config"]["model"] == DefaultAgentConfig.MODEL


def test_enable_agent_with_partial_config(client, setup_conversation):
    r = client.post(
        f"/conversations/{setup_conversation.id}/ai-agent",
        json={"config": {"systemPrompt": "Answer in Spanish.", "maxTokens": 100}},
    )
    assert r.status_code == 200
    config = r.json()["config"]
    assert config["systemPrompt"] == "Answer in Spanish."
    assert config["maxTokens"] == 100
    assert config["temperature"] == DefaultAgentConfig.TEMPERATURE


def test_enable_agent_invalid_config(client, setup_conversation):
    r = client.post(
        f"/conversations/{setup_conversation.id}/ai-agent",
        json={"config": {"temperature": 3}},
    )
    assert r.status_code == 400
    assert "error" in r.json()


def test_enable_agent_unknown_conversation(client):
    r = client.post(f"/conversations/{uuid4()}/ai-agent", json={})
    assert r.status_code == 404


def test_update_agent_requires_enabled_agent(client, setup_conversation):
    r = client.patch(
        f"/conversations/{setup_conversation.id}/ai-agent",
        json={"config": {"temperature": 0.5}},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "AI agent is not enabled for this conversation"}


def test_update_agent_config(client, setup_agent_conversation):
    r = client.patch(
        f"/conversations/{setup_agent_conversation.id}/ai-agent",
        json={"config": {"temperature": 0.9}},
    )
    assert r.status_code == 200
    data = r.json()
    assert data["config"]["temperature"] == 0.9
    assert data["config"]["model"] == "gpt-4o-mini"
    assert data["agentId"] == setup_agent_conversation.conversation_metadata["agent_id"]


def test_disable_and_get_agent(client, setup_agent_conversation):
    url = f"/conversations/{setup_agent_conversation.id}/ai-agent"
    assert client.get(url).json()["isAgent"] is True

    r = client.delete(url)
    assert r.status_code == 200
    assert r.json() == {"message": "AI agent disabled"}

    state = client.get(url).json()
    assert state["isAgent"] is False
    assert state["agentId"] is None
    assert state["config"]["model"] == "gpt-4o-mini"

    assert client.patch(url, json={"config": {"temperature": 0.1}}).status_code == 400


def test_get_agent_unknown_conversation(client):
    assert client.get(f"/conversations/{uuid4()}/ai-agent").status_code == 404
