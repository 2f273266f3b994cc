"""Fixtures for WhatsApp accounts."""

import pytest

from app.core.credentials import encrypt_credential_fields
from app.models.whatsapp_account import WhatsAppAccount


@pytest.fixture(scope="function")
def setup_whatsapp_account(db, faker, current_user):
    """A registered account with encrypted gateway credentials."""
    phone_number = faker.msisdn()
    account = WhatsAppAccount(
        owner_user_id=current_user.id,
        phone_number=phone_number,
        account_name=faker.company(),
        encrypted_credentials=encrypt_credential_fields(
            {"api_key": faker.sha256(), "phone_number": phone_number}
        ),
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account
