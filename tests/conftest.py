import os
import tempfile
from pathlib import Path
from uuid import uuid4

from cryptography.fernet import Fernet

_TEST_DIR = Path(tempfile.mkdtemp(prefix="switchboard-tests-"))

# Must be set before app modules are imported (engine and settings read them).
os.environ["ENV"] = "test"
os.environ.setdefault("TEST_DATABASE_URL", f"sqlite:///{_TEST_DIR / 'test.db'}")
os.environ.setdefault("FERNET_KEY", Fernet.generate_key().decode())

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app import models  # noqa: E402,F401
from app.auth.dependencies import CurrentUser, get_current_user  # noqa: E402
from app.db import Base, SessionLocal, engine, get_db  # noqa: E402
from app.main import create_app  # noqa: E402
from app.routers.utils.dependencies import (  # noqa: E402
    get_completion_client,
    get_gateway_factory,
)

pytest_plugins = [
    "tests.fixtures.conversation_fixtures",
    "tests.fixtures.gateway_fixtures",
    "tests.fixtures.completion_fixtures",
    "tests.fixtures.whatsapp_account_fixtures",
]


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db():
    """Session against the test database; every table is emptied afterwards."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        with engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                conn.execute(table.delete())


@pytest.fixture(scope="function")
def current_user():
    return CurrentUser(id=uuid4())


@pytest.fixture(scope="function")
def client(db, current_user, gateway_factory, fake_completion_client):
    """Client with db, auth and external collaborators overridden."""
    app = create_app(testing=True)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_gateway_factory] = lambda: gateway_factory
    app.dependency_overrides[get_completion_client] = lambda: fake_completion_client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
