"""Pytest configuration and fixtures."""
import os

os.environ.setdefault("SLACK_SIGNING_SECRET", "test-signing-secret")
os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

from app.main import app
from app.services.slack_api import get_slack_client
from tests.helpers import JWT_SECRET, SIGNING_SECRET, SlackStub


@pytest.fixture
def mongo_db():
    """In-memory MongoDB database."""
    return AsyncMongoMockClient()["timetrack_test"]


@pytest.fixture
def slack_stub():
    return SlackStub()


@pytest_asyncio.fixture
async def app_client(mongo_db, slack_stub, monkeypatch):
    """
    Create a test client backed by an in-memory database.

    This fixture:
    - Points the database manager at the in-memory database
    - Replaces the Slack client with one served by SlackStub
    - Yields an async HTTP client for testing
    """
    from app.config import settings
    from app.database import database
    monkeypatch.setattr(settings, "slack_signing_secret", SIGNING_SECRET)
    monkeypatch.setattr(settings, "auth_jwt_secret", JWT_SECRET)
    original_db = database.db
    database.db = mongo_db

    slack_client = slack_stub.client()
    app.dependency_overrides[get_slack_client] = lambda: slack_client

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()
    await slack_client.close()
    database.db = original_db
