from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from heartwise import storage
from heartwise.api.deps import get_db
from heartwise.core import db
from heartwise.core.config import settings
from heartwise.main import app
from heartwise.tests.utils.user import (
    authentication_token_from_email,
    create_user,
    get_superuser_token_headers,
    user_authentication_headers,
)
from heartwise.tests.utils.utils import random_lower_string

AI_REPLY = "Guard your heart and wait on the Lord. See Proverbs 4:23 and Psalm 27:14."


@pytest.fixture(name="engine")
def engine_fixture(monkeypatch: pytest.MonkeyPatch):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    # the AI reply job and the app lifespan open sessions on db.engine
    monkeypatch.setattr(db, "engine", engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture(autouse=True)
def local_storage(monkeypatch: pytest.MonkeyPatch, tmp_path):
    service = storage.StorageService(tmp_path / "storage")
    monkeypatch.setattr(storage, "_storage_service", service)
    return service


@pytest.fixture(name="llm")
def llm_fixture(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    instance = MagicMock()
    instance.generate_reply = AsyncMock(return_value=AI_REPLY)
    llm_cls = MagicMock(return_value=instance)
    monkeypatch.setattr("heartwise.counsel.responder.LLMClient", llm_cls)
    return instance


@pytest.fixture(name="client")
def client_fixture(session: Session, llm) -> Generator[TestClient, None, None]:
    def get_db_override() -> Session:
        return session

    app.dependency_overrides[get_db] = get_db_override
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def superuser_token_headers(client: TestClient) -> dict[str, str]:
    return get_superuser_token_headers(client)


@pytest.fixture
def normal_user_token_headers(client: TestClient, session: Session) -> dict[str, str]:
    return authentication_token_from_email(
        client=client, email="member@heartwise.com", session=session
    )


@pytest.fixture
def other_user_token_headers(client: TestClient, session: Session) -> dict[str, str]:
    return authentication_token_from_email(
        client=client, email="visitor@heartwise.com", session=session
    )


@pytest.fixture
def named_user_token_headers(client: TestClient, session: Session) -> dict[str, str]:
    """Headers for "named@heartwise.com", a user with a full name but no profile."""
    password = random_lower_string()
    create_user(
        session=session,
        email="named@heartwise.com",
        password=password,
        full_name="Member Fullname",
    )
    return user_authentication_headers(
        client=client, email="named@heartwise.com", password=password
    )


@pytest.fixture
def api() -> str:
    return settings.API_V1_STR
