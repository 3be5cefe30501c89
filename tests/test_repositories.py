"""Tests for the repositories against a live MongoDB."""
import pytest

from app.models.contribution import ContributionRecord
from app.models.plan import Plan, Person
from app.models.transaction import PendingTransaction
from app.repositories.account_repo import AccountRepository
from app.repositories.contribution_repo import ContributionRepository
from app.repositories.plan_repo import PlanRepository
from app.repositories.transaction_repo import TransactionRepository
from app.repositories.user_repo import UserRepository


@pytest.mark.asyncio
class TestPlanRepository:
    """Test plan and people lookups."""

    async def test_get_plan(self, test_db):
        plan = Plan(title="Trip", owner_id="u1", members=["u1"])
        await test_db["plans"].insert_one(plan.to_document())

        found = await PlanRepository(test_db).get_plan(plan.str_id)

        assert found is not None
        assert found.id == plan.id
        assert found.title == "Trip"

    async def test_get_plan_invalid_id(self, test_db):
        assert await PlanRepository(test_db).get_plan("not-an-id") is None

    async def test_people_are_scoped_to_plan(self, test_db):
        repo = PlanRepository(test_db)
        mine = Person(plan_id="plan-a", name="Ana")
        other = Person(plan_id="plan-b", name="Ben")
        await test_db["people"].insert_many([mine.to_document(), other.to_document()])

        assert [p.name for p in await repo.list_people("plan-a")] == ["Ana"]
        assert await repo.get_person("plan-a", other.str_id) is None
        assert (await repo.get_person("plan-a", mine.str_id)).name == "Ana"


@pytest.mark.asyncio
class TestContributionRepository:
    """Test ledger queries."""

    async def test_list_for_plan_most_recent_first(self, test_db):
        records = [
            ContributionRecord(plan_id="p", payer_id="a", amount=1.0, date="2024-01-01"),
            ContributionRecord(plan_id="p", payer_id="a", amount=2.0, date="2024-03-01"),
            ContributionRecord(plan_id="p", payer_id="b", amount=3.0, date="2024-02-01"),
            ContributionRecord(plan_id="q", payer_id="a", amount=4.0, date="2024-04-01"),
        ]
        await test_db["contributions"].insert_many([r.to_document() for r in records])

        listed = await ContributionRepository(test_db).list_for_plan("p")

        assert [r.amount for r in listed] == [2.0, 3.0, 1.0]

    async def test_list_for_payer_skips_settlements_by_default(self, test_db):
        repo = ContributionRepository(test_db)
        records = [
            ContributionRecord(plan_id="p", payer_id="a", amount=10.0),
            ContributionRecord(plan_id="p", payer_id="a", amount=5.0, settlement=True),
            ContributionRecord(plan_id="p", payer_id="b", amount=7.0),
        ]
        await test_db["contributions"].insert_many([r.to_document() for r in records])

        assert [r.amount for r in await repo.list_for_payer("p", "a")] == [10.0]
        both = await repo.list_for_payer("p", "a", include_settlements=True)
        assert sorted(r.amount for r in both) == [5.0, 10.0]

    async def test_get_record(self, test_db):
        record = ContributionRecord(plan_id="p", payer_id="a", amount=10.0)
        await test_db["contributions"].insert_one(record.to_document())
        repo = ContributionRepository(test_db)

        assert (await repo.get("p", record.str_id)).amount == 10.0
        assert await repo.get("other", record.str_id) is None


@pytest.mark.asyncio
class TestTransactionRepository:
    """Test pending transaction lookups."""

    async def test_mark_resolved_once(self, test_db):
        pending = PendingTransaction(user_id="u1", plan_id="p", person_id="x", amount=50.0)
        await test_db["transactions"].insert_one(pending.to_document())
        repo = TransactionRepository(test_db)

        assert [t.str_id for t in await repo.list_pending("u1")] == [pending.str_id]

        resolved = await repo.mark_resolved(pending.str_id)
        assert resolved.pending is False
        assert await repo.mark_resolved(pending.str_id) is None
        assert await repo.list_pending("u1") == []

    async def test_list_unclaimed_only_returns_unregistered_recipients(self, test_db):
        unclaimed = PendingTransaction(user_id=None, plan_id="p", person_id="x", amount=20.0)
        claimed = PendingTransaction(user_id="u1", plan_id="p", person_id="y", amount=30.0)
        elsewhere = PendingTransaction(user_id=None, plan_id="q", person_id="z", amount=40.0)
        await test_db["transactions"].insert_many(
            [t.to_document() for t in (unclaimed, claimed, elsewhere)]
        )
        repo = TransactionRepository(test_db)

        assert [t.str_id for t in await repo.list_unclaimed("p")] == [unclaimed.str_id]
        assert (await repo.get(unclaimed.str_id)).user_id is None


@pytest.mark.asyncio
class TestProfileLookups:
    """Test user names and linked accounts."""

    async def test_display_name_prefers_display_name(self, test_db):
        result = await test_db["users"].insert_one({"name": "Ana Diaz", "display_name": "Ana"})
        repo = UserRepository(test_db)

        assert await repo.get_display_name(str(result.inserted_id)) == "Ana"
        assert await repo.get_display_name(None) is None

    async def test_has_linked_account(self, test_db):
        await test_db["cards"].insert_one({"members": ["u1", "u2"]})
        repo = AccountRepository(test_db)

        assert await repo.has_linked_account("u2") is True
        assert await repo.has_linked_account("u3") is False
