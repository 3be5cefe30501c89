import os
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.db.batch import WriteBatch
from app.models.contribution import ContributionRecord
from app.models.plan import Plan, Person

# Live database tests run only when a MongoDB URI is provided
TEST_MONGODB_URI = os.getenv("MONGODB_URI")
TEST_MONGODB_DB = "gestion_test"

OWNER_ID = "user-owner"
ANA_ID = "user-ana"
BEN_ID = "user-ben"


@pytest.fixture
def mock_db():
    """MagicMock database whose client hands out a transaction session."""
    db = MagicMock()
    session = MagicMock()
    session.start_transaction = MagicMock(return_value=MagicMock())
    session_cm = MagicMock()
    session_cm.__aenter__.return_value = session
    db.client.start_session = AsyncMock(return_value=session_cm)
    db.session = session
    return db


@pytest.fixture
def committed(monkeypatch):
    """Capture batches instead of writing them."""
    batches = []

    async def fake_commit(self):
        batches.append(self)

    monkeypatch.setattr(WriteBatch, "commit", fake_commit)
    return batches


@pytest.fixture
def plan():
    return Plan(
        title="Beach house",
        owner_id=OWNER_ID,
        members=[OWNER_ID, ANA_ID, BEN_ID],
        version=3
    )


@pytest.fixture
def make_person(plan):
    def _make(name, user_id=None, is_owner=False):
        return Person(plan_id=plan.str_id, user_id=user_id, name=name, is_owner=is_owner)
    return _make


@pytest.fixture
def make_record(plan):
    def _make(payer, amount, settlement=False, **extra):
        return ContributionRecord(
            plan_id=plan.str_id,
            payer_id=payer.str_id,
            amount=amount,
            settlement=settlement,
            **extra
        )
    return _make


@pytest_asyncio.fixture
async def test_db() -> AsyncIOMotorDatabase:
    """Fixture for a live test MongoDB database."""
    if not TEST_MONGODB_URI:
        pytest.skip("MONGODB_URI not set")

    client = AsyncIOMotorClient(TEST_MONGODB_URI)
    db = client[TEST_MONGODB_DB]
    await client.drop_database(TEST_MONGODB_DB)

    yield db

    await client.drop_database(TEST_MONGODB_DB)
    client.close()
