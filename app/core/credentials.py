"""Encryption of stored gateway credentials (WhatsApp account API keys)."""

from __future__ import annotations

import json
from typing import Any, Dict

from cryptography.fernet import Fernet, InvalidToken
from pydantic import BaseModel, ValidationError as PydanticValidationError

from app.config import get_settings


class GatewayCredentialModel(BaseModel):
    """Fields required to authenticate against the WhatsApp gateway."""

    api_key: str
    phone_number: str


def _get_fernet() -> Fernet:
    """Get a Fernet instance with the credential master key."""
    settings = get_settings()
    key = settings.credential_master_key or settings.fernet_key
    if not key:
        raise ValueError(
            "CREDENTIAL_MASTER_KEY or FERNET_KEY must be set for credential encryption"
        )
    return Fernet(key.encode() if isinstance(key, str) else key)


def _encrypt_value(value: bytes) -> bytes:
    """Encrypt a value using the master key."""
    return _get_fernet().encrypt(value)


def _decrypt_value(value: bytes) -> bytes:
    """Decrypt a value using the master key."""
    return _get_fernet().decrypt(value)


def validate_credential_fields(fields: Dict[str, Any]) -> None:
    """Validate gateway credential fields."""
    try:
        GatewayCredentialModel(**fields)
    except PydanticValidationError as e:
        raise ValueError(f"Invalid credential fields: {str(e)}") from e


def encrypt_credential_fields(fields: Dict[str, Any]) -> bytes:
    """Encrypt credential fields."""
    plaintext = json.dumps(fields).encode()
    return _encrypt_value(plaintext)


def decrypt_credential_fields(encrypted_data: bytes) -> Dict[str, Any]:
    """Decrypt credential fields. Raises ValueError if the token is invalid."""
    try:
        plaintext = _decrypt_value(encrypted_data)
    except InvalidToken as e:
        raise ValueError("Stored credential could not be decrypted") from e
    return json.loads(plaintext)
