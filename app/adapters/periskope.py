"""
Periskope WhatsApp gateway client.

Every request carries the account's bearer API key and the x-phone header
naming the originating number. Direct chats are addressed through
/contacts/{phone}@c.us, groups through /chats/{chat_id}.
"""

from __future__ import annotations

from typing import Any, List, Optional

import requests
from pydantic import ValidationError

from app.adapters.base import BaseGatewayClient
from app.config import get_settings
from app.exceptions import VendorError
from app.infra.logging_config import get_logger
from app.schemas.whatsapp import VendorChat, VendorMessage, VendorSendResult

logger = get_logger("periskope")

CONTACT_SUFFIX = "@c.us"


def contact_id(phone_or_id: str) -> str:
    """Vendor contact id for a phone number (idempotent)."""
    if phone_or_id.endswith(CONTACT_SUFFIX):
        return phone_or_id
    return f"{phone_or_id}{CONTACT_SUFFIX}"


def _extract_list(payload: Any, key: str) -> list[Any]:
    """Find a list under key at the top level or nested under "data"."""
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        raise VendorError(f"Unexpected gateway payload for {key}")
    if isinstance(payload.get(key), list):
        return payload[key]
    data = payload.get("data")
    if isinstance(data, dict) and isinstance(data.get(key), list):
        return data[key]
    if isinstance(data, list):
        return data
    raise VendorError(f"Gateway payload is missing {key!r}")


class PeriskopeClient(BaseGatewayClient):
    """Periskope REST client built on requests with a per-call timeout."""

    def __init__(
        self,
        api_key: str,
        phone_number: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key
        self._phone_number = phone_number
        self._base_url = (base_url or settings.periskope_api_url).rstrip("/")
        self._timeout = timeout or settings.gateway_timeout_seconds
        self._session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
            "x-phone": self._phone_number,
        }

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        url = f"{self._base_url}{path}"
        try:
            resp = self._session.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(),
                timeout=self._timeout,
            )
        except requests.Timeout as e:
            logger.warning("Gateway timeout on %s %s", method, path)
            raise VendorError(f"Gateway request timed out: {method} {path}") from e
        except requests.RequestException as e:
            logger.warning("Gateway request failed on %s %s: %s", method, path, e)
            raise VendorError(f"Gateway request failed: {e}") from e

        if not resp.ok:
            logger.warning(
                "Gateway returned %s on %s %s: %s",
                resp.status_code,
                method,
                path,
                resp.text[:500],
            )
            raise VendorError(
                f"Gateway returned {resp.status_code} for {method} {path}"
            )
        try:
            return resp.json()
        except ValueError as e:
            raise VendorError(f"Gateway returned invalid JSON for {path}") from e

    def list_chats(self, chat_type: Optional[str] = None) -> List[VendorChat]:
        params: dict[str, Any] = {}
        if chat_type and chat_type != "all":
            params["chat_type"] = chat_type
        payload = self._request("GET", "/chats", params=params or None)
        try:
            return [VendorChat.model_validate(c) for c in _extract_list(payload, "chats")]
        except ValidationError as e:
            raise VendorError(f"Malformed chat in gateway response: {e}") from e

    def list_messages(
        self, chat_or_contact: str, limit: int, is_group: bool = False
    ) -> List[VendorMessage]:
        if is_group:
            path = f"/chats/{chat_or_contact}/messages"
        else:
            path = f"/contacts/{contact_id(chat_or_contact)}/messages"
        payload = self._request("GET", path, params={"limit": limit})
        try:
            return [
                VendorMessage.model_validate(m)
                for m in _extract_list(payload, "messages")
            ]
        except ValidationError as e:
            raise VendorError(f"Malformed message in gateway response: {e}") from e

    def send_message(
        self, destination: str, text: str, is_group: bool = False
    ) -> VendorSendResult:
        if is_group:
            path = f"/chats/{destination}/messages"
        else:
            path = f"/contacts/{contact_id(destination)}/messages"
        payload = self._request("POST", path, json={"text": text})
        if not isinstance(payload, dict):
            raise VendorError("Gateway send returned a non-object payload")
        return VendorSendResult.model_validate(payload)


def build_periskope_client(api_key: str, phone_number: str) -> PeriskopeClient:
    """Default GatewayFactory."""
    return PeriskopeClient(api_key=api_key, phone_number=phone_number)
