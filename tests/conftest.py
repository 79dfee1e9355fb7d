"""Shared pytest fixtures."""

from collections.abc import AsyncGenerator, Callable, Iterator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from numbervault.app import App
from numbervault.config import Config
from numbervault.core.core import Core
from numbervault.core.modules.mail.service import MailService
from numbervault.web.server import create_fastapi_app
from tests.fakes import FakeDatabase, FakeMongoClient


def make_config(**overrides) -> Config:
    settings = {
        "database_url": "mongodb://localhost:27017/numbervault_test",
        "host": "127.0.0.1",
        "port": 3001,
        "debug": True,
        "jwt_secret": "test-secret",
        **overrides,
    }
    return Config(_env_file=None, **settings)


@pytest.fixture
def config() -> Config:
    return make_config()


@pytest.fixture
def fake_db(monkeypatch) -> FakeDatabase:
    """In-memory database that every Core built during the test connects to."""
    database = FakeDatabase()
    monkeypatch.setattr("numbervault.core.core.AsyncMongoClient", lambda *args, **kwargs: FakeMongoClient(database))
    return database


@pytest.fixture
def core(config, fake_db) -> Core:
    return Core(config)


@pytest.fixture
def make_core(fake_db) -> Callable[..., Core]:
    """Build a Core for the given config overrides."""

    def factory(**overrides) -> Core:
        return Core(make_config(**overrides))

    return factory


@pytest_asyncio.fixture
async def started_core(core) -> AsyncGenerator[Core]:
    async with core.lifespan():
        yield core


@pytest.fixture
def mailbox(monkeypatch) -> list[dict[str, str]]:
    """Capture verification codes instead of sending them."""
    sent: list[dict[str, str]] = []

    async def capture(self, email: str, code: str, purpose: str) -> None:
        sent.append({"email": email, "code": code, "purpose": str(purpose)})

    monkeypatch.setattr(MailService, "send_verification_code", capture)
    return sent


@pytest.fixture
def make_client(fake_db) -> Iterator[Callable[..., TestClient]]:
    """Build a started TestClient for the given config overrides."""
    clients: list[TestClient] = []

    def factory(**overrides) -> TestClient:
        config = make_config(**overrides)
        client = TestClient(create_fastapi_app(App(config), config), raise_server_exceptions=False)
        client.__enter__()
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, mailbox) -> TestClient:
    return make_client()
