import os

# Must be set before config.settings is built
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["MONGO_TRANSACTIONS"] = "false"
os.environ["DEBUG"] = "false"
os.environ["JWT_SECRET"] = "test_secret_at_least_32_characters_long"

import pytest
from httpx import ASGITransport, AsyncClient

import database
from config import settings
from fake_mongo import FakeClient, FakeDatabase
from main import app


@pytest.fixture
async def fake_db():
    fake = FakeDatabase()
    database.use_database(fake)
    await database.create_indexes()
    yield fake
    database.use_database(None)


@pytest.fixture
def mongo_client(fake_db, monkeypatch):
    """Turn transactions on over the in-memory database."""
    client = FakeClient(fake_db)
    database.use_database(fake_db, mongo_client=client)
    monkeypatch.setattr(settings, "MONGO_TRANSACTIONS", True)
    return client


@pytest.fixture
async def client(fake_db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
