"""Tests for the WhatsApp chat import API."""

from uuid import UUID, uuid4

import pytest

from app.exceptions import VendorError
from app.models.conversation import Conversation
from app.models.message import Message
from app.services.metadata_service import MetadataService


@pytest.fixture
def periskope_key(monkeypatch):
    monkeypatch.setenv("PERISKOPE_API_KEY", "service-key")
    return "service-key"


def test_import_creates_conversation_and_messages(
    client, db, periskope_key, fake_gateway, make_vendor_messages, current_user
):
    fake_gateway.chats = [{"id": "team@g.us", "chat_name": "Team chat", "is_group": True}]
    fake_gateway.messages = make_vendor_messages(250)

    r = client.post(
        "/import/whatsapp",
        json={
            "chatId": "team@g.us",
            "phoneNumber": "15550001111",
            "userId": str(current_user.id),
        },
    )

    assert r.status_code == 200
    data = r.json()
    assert data["total_messages"] == 250
    assert data["imported_messages"] == 250
    assert data["failed_messages"] == 0
    assert fake_gateway.credentials[0] == ("service-key", "15550001111")
    assert fake_gateway.message_calls == [("team@g.us", 2000, True)]

    conversation = db.get(Conversation, UUID(data["conversation_id"]))
    assert conversation.recipient == "Team chat"
    assert conversation.is_group is True
    assert conversation.owner_user_id == current_user.id
    assert conversation.last_message == "message 249"
    document = MetadataService(db).read(conversation.id)
    assert document["whatsapp_chat_id"] == "team@g.us"
    assert document["imported"] is True


def test_repeated_import_reuses_conversation(
    client, db, periskope_key, fake_gateway, make_vendor_messages
):
    fake_gateway.messages = make_vendor_messages(3)
    body = {"chatId": "15552223333@c.us", "phoneNumber": "15550001111"}

    first = client.post("/import/whatsapp", json=body).json()
    second = client.post("/import/whatsapp", json=body).json()

    assert first["conversation_id"] == second["conversation_id"]
    assert second["imported_messages"] == 0
    assert db.query(Conversation).count() == 1
    assert db.query(Message).count() == 3


def test_import_into_existing_conversation(
    client, periskope_key, fake_gateway, setup_conversation, make_vendor_messages
):
    fake_gateway.messages = make_vendor_messages(2)
    r = client.post(
        "/import/whatsapp",
        json={
            "chatId": setup_conversation.external_id,
            "phoneNumber": "15550001111",
            "conversationId": str(setup_conversation.id),
        },
    )
    assert r.status_code == 200
    assert r.json()["conversation_id"] == str(setup_conversation.id)
    assert r.json()["imported_messages"] == 2


def test_import_unknown_conversation_id(client, periskope_key):
    r = client.post(
        "/import/whatsapp",
        json={"chatId": "x@c.us", "phoneNumber": "1555", "conversationId": str(uuid4())},
    )
    assert r.status_code == 404


def test_import_requires_chat_id(client, periskope_key):
    r = client.post("/import/whatsapp", json={"phoneNumber": "15550001111"})
    assert r.status_code == 400
    assert "chatId" in r.json()["error"]


def test_import_without_service_key(client, monkeypatch):
    monkeypatch.setenv("PERISKOPE_API_KEY", "")
    r = client.post("/import/whatsapp", json={"chatId": "x@c.us", "phoneNumber": "1555"})
    assert r.status_code == 500
    assert r.json() == {"error": "Periskope API key is not configured"}


def test_import_gateway_failure(client, periskope_key, fake_gateway):
    fake_gateway.list_error = VendorError("Gateway returned 503 for GET /chats")
    r = client.post("/import/whatsapp", json={"chatId": "x@c.us", "phoneNumber": "1555"})
    assert r.status_code == 500
    assert "503" in r.json()["error"]


def test_import_message_fetch_failure_leaves_no_trace(client, db, periskope_key, fake_gateway):
    fake_gateway.chats = [{"id": "x@c.us", "chat_name": "Xavier"}]
    fake_gateway.messages_error = VendorError("Gateway request timed out: GET /contacts")

    r = client.post("/import/whatsapp", json={"chatId": "x@c.us", "phoneNumber": "1555"})

    assert r.status_code == 500
    assert "timed out" in r.json()["error"]
    assert db.query(Conversation).count() == 0


def test_failed_reimport_keeps_previous_import_date(
    client, db, periskope_key, fake_gateway, setup_conversation
):
    MetadataService(db).merge(
        setup_conversation.id,
        {
            "imported": True,
            "import_date": "2026-01-02T03:04:05+00:00",
            "whatsapp_chat_id": setup_conversation.external_id,
        },
    )
    fake_gateway.messages_error = VendorError("Gateway returned 503")

    r = client.post(
        "/import/whatsapp",
        json={"chatId": setup_conversation.external_id, "phoneNumber": "1555"},
    )

    assert r.status_code == 500
    document = MetadataService(db).read(setup_conversation.id)
    assert document["import_date"] == "2026-01-02T03:04:05+00:00"
