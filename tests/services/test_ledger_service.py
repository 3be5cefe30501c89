import pytest
from unittest.mock import AsyncMock

from app.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from app.db.batch import DELETE, INSERT, UPDATE
from app.db.streams import ContributionFeed
from app.services.ledger_service import LedgerService

OWNER_ID = "user-owner"
ANA_ID = "user-ana"
BEN_ID = "user-ben"


@pytest.fixture
def ana(make_person):
    return make_person("Ana", user_id=ANA_ID)


@pytest.fixture
def service(mock_db, plan, ana):
    service = LedgerService(mock_db)
    service.plans.get_plan = AsyncMock(return_value=plan)
    service.plans.get_person = AsyncMock(
        side_effect=lambda plan_id, person_id: ana if person_id == ana.str_id else None
    )
    service.contributions.get = AsyncMock(return_value=None)
    return service


@pytest.mark.asyncio
async def test_add_contribution(service, plan, ana, committed):
    record_id = await service.add_contribution(
        plan.str_id, ana.str_id, 42.5, "Groceries", ANA_ID, date="2024-05-01"
    )

    batch = committed[0]
    inserts = [op for op in batch.operations if op.kind == INSERT]
    assert len(inserts) == 1
    document = inserts[0].document
    assert str(document["_id"]) == record_id
    assert document["payer_id"] == ana.str_id
    assert document["amount"] == 42.5
    assert document["description"] == "Groceries"
    assert document["date"] == "2024-05-01"
    assert document["created_by"] == ANA_ID
    assert document["settlement"] is False

    guard = [op for op in batch.operations if op.kind == UPDATE and op.collection == "plans"]
    assert guard[0].filter["version"] == plan.version


@pytest.mark.asyncio
async def test_add_contribution_defaults_date_to_today(service, plan, ana, committed):
    await service.add_contribution(plan.str_id, ana.str_id, 10.0, "", ANA_ID)
    document = committed[0].operations[0].document
    assert len(document["date"]) == 10


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -1.0, None])
async def test_add_contribution_rejects_non_positive_amount(service, plan, ana, committed, amount):
    with pytest.raises(ValidationError):
        await service.add_contribution(plan.str_id, ana.str_id, amount, "", ANA_ID)
    assert committed == []


@pytest.mark.asyncio
async def test_add_contribution_rejects_unknown_payer(service, plan, committed):
    with pytest.raises(ValidationError):
        await service.add_contribution(plan.str_id, "a" * 24, 10.0, "", ANA_ID)
    assert committed == []


@pytest.mark.asyncio
async def test_add_contribution_requires_membership(service, plan, ana, committed):
    with pytest.raises(PermissionDeniedError):
        await service.add_contribution(plan.str_id, ana.str_id, 10.0, "", "stranger")


@pytest.mark.asyncio
async def test_add_contribution_unknown_plan(service, ana):
    service.plans.get_plan = AsyncMock(return_value=None)
    with pytest.raises(NotFoundError):
        await service.add_contribution("nope", ana.str_id, 10.0, "", ANA_ID)


@pytest.mark.asyncio
async def test_list_contributions_returns_feed(service, plan):
    feed = await service.list_contributions(plan.str_id, BEN_ID)
    assert isinstance(feed, ContributionFeed)
    assert feed.plan_id == plan.str_id


@pytest.mark.asyncio
async def test_update_by_creator(service, plan, ana, make_record, committed):
    record = make_record(ana, 20.0, created_by=ANA_ID)
    service.contributions.get = AsyncMock(return_value=record)

    updated = await service.update_contribution(
        plan.str_id, record.str_id, {"amount": 15.0, "description": "Fuel"}, ANA_ID
    )

    assert updated.amount == 15.0
    assert updated.description == "Fuel"
    op = committed[0].operations[0]
    assert op.kind == UPDATE
    assert op.filter == {"_id": record.id, "plan_id": plan.str_id}
    assert op.update["$set"]["amount"] == 15.0
    assert "updated_at" in op.update["$set"]


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [30.01, 300.0])
async def test_update_cannot_raise_amount(service, plan, ana, make_record, committed, amount):
    record = make_record(ana, 30.0, created_by=ANA_ID)
    service.contributions.get = AsyncMock(return_value=record)

    with pytest.raises(ValidationError):
        await service.update_contribution(plan.str_id, record.str_id, {"amount": amount}, ANA_ID)
    with pytest.raises(ValidationError):
        await service.update_contribution(plan.str_id, record.str_id, {"amount": amount}, OWNER_ID)
    assert committed == []


@pytest.mark.asyncio
async def test_update_keeping_amount_is_allowed(service, plan, ana, make_record, committed):
    record = make_record(ana, 30.0, created_by=ANA_ID)
    service.contributions.get = AsyncMock(return_value=record)

    updated = await service.update_contribution(plan.str_id, record.str_id, {"amount": 30.0}, ANA_ID)

    assert updated.amount == 30.0
    assert len(committed) == 1


@pytest.mark.asyncio
async def test_owner_can_edit_any_record(service, plan, ana, make_record, committed):
    record = make_record(ana, 20.0, created_by=ANA_ID)
    service.contributions.get = AsyncMock(return_value=record)

    await service.update_contribution(plan.str_id, record.str_id, {"description": "x"}, OWNER_ID)

    assert len(committed) == 1


@pytest.mark.asyncio
async def test_other_member_cannot_edit(service, plan, ana, make_record, committed):
    record = make_record(ana, 20.0, created_by=ANA_ID)
    service.contributions.get = AsyncMock(return_value=record)

    with pytest.raises(PermissionDeniedError):
        await service.update_contribution(plan.str_id, record.str_id, {"amount": 1.0}, BEN_ID)
    with pytest.raises(PermissionDeniedError):
        await service.delete_contribution(plan.str_id, record.str_id, BEN_ID)
    assert committed == []


@pytest.mark.asyncio
async def test_settlement_amount_is_not_editable(service, plan, ana, make_record, committed):
    record = make_record(ana, 20.0, settlement=True, created_by=ANA_ID)
    service.contributions.get = AsyncMock(return_value=record)

    with pytest.raises(ValidationError):
        await service.update_contribution(plan.str_id, record.str_id, {"amount": 5.0}, ANA_ID)

    await service.update_contribution(plan.str_id, record.str_id, {"description": "Cash"}, ANA_ID)
    assert len(committed) == 1


@pytest.mark.asyncio
async def test_update_rejects_unknown_payer(service, plan, ana, make_record, committed):
    record = make_record(ana, 20.0, created_by=ANA_ID)
    service.contributions.get = AsyncMock(return_value=record)

    with pytest.raises(ValidationError):
        await service.update_contribution(plan.str_id, record.str_id, {"payer_id": "b" * 24}, ANA_ID)


@pytest.mark.asyncio
async def test_update_missing_record(service, plan):
    with pytest.raises(NotFoundError):
        await service.update_contribution(plan.str_id, "c" * 24, {"amount": 3.0}, ANA_ID)


@pytest.mark.asyncio
async def test_delete_by_creator(service, plan, ana, make_record, committed):
    record = make_record(ana, 20.0, created_by=ANA_ID)
    service.contributions.get = AsyncMock(return_value=record)

    await service.delete_contribution(plan.str_id, record.str_id, ANA_ID)

    kinds = [(op.kind, op.collection) for op in committed[0].operations]
    assert kinds == [(DELETE, "contributions"), (UPDATE, "plans")]
