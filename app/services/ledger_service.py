import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from app.db.batch import WriteBatch
from app.db.streams import ContributionFeed
from app.models.contribution import ContributionRecord
from app.models.plan import Plan, Person
from app.models.settlement import SettlementResult
from app.repositories.contribution_repo import ContributionRepository
from app.repositories.plan_repo import PlanRepository
from app.services.access import load_plan, require_member
from app.services.settlement_service import SettlementService

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {"payer_id", "amount", "description", "date"}
# Settlement amounts are tied to their mirror or pending transaction
SETTLEMENT_EDITABLE_FIELDS = {"description", "date"}


class LedgerService:
    """Contribution ledger of a plan: append, list, stream, edit, delete."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.plans = PlanRepository(db)
        self.contributions = ContributionRepository(db)

    def new_batch(self) -> WriteBatch:
        return WriteBatch(self.db)

    async def add_contribution(
        self,
        plan_id: str,
        payer_id: str,
        amount: float,
        description: str,
        actor_id: str,
        date: Optional[str] = None
    ) -> str:
        """Record a pool contribution and return its id."""
        if amount is None or amount <= 0:
            raise ValidationError("Contribution amount must be greater than zero")

        plan = await load_plan(self.plans, plan_id)
        require_member(plan, actor_id)

        payer = await self.plans.get_person(plan.str_id, payer_id)
        if payer is None:
            raise ValidationError(f"Payer {payer_id} is not part of this plan")

        record = ContributionRecord(
            plan_id=plan.str_id,
            payer_id=payer.str_id,
            amount=amount,
            description=description or "",
            created_by=actor_id,
            settlement=False,
            **({"date": date} if date else {})
        )

        batch = self.new_batch()
        self.stage_insert(batch, record)
        self.plans.stage_version_guard(batch, plan)
        await batch.commit()

        logger.info("Contribution %s of %.2f added to plan %s", record.str_id, amount, plan.str_id)
        return record.str_id

    async def add_settlement(
        self,
        plan_id: str,
        payer_id: str,
        receiver_id: str,
        amount: float,
        actor_id: str
    ) -> SettlementResult:
        """Record a debt-clearing payment; see SettlementService."""
        return await SettlementService(self.db).settle_payment(
            plan_id, payer_id, receiver_id, amount, actor_id
        )

    async def list_contributions(self, plan_id: str, actor_id: str) -> ContributionFeed:
        """Live feed of the plan's records, most recent first."""
        plan = await load_plan(self.plans, plan_id)
        require_member(plan, actor_id)
        return ContributionFeed(self.contributions, plan.str_id)

    async def get_contributions(self, plan_id: str, actor_id: str) -> List[ContributionRecord]:
        """Current records of the plan, most recent first."""
        plan = await load_plan(self.plans, plan_id)
        require_member(plan, actor_id)
        return await self.contributions.list_for_plan(plan.str_id)

    async def get_plan_ledger(self, plan_id: str, actor_id: str) -> Tuple[List[Person], List[ContributionRecord]]:
        """People and records of a plan, the inputs of the balance calculator."""
        plan = await load_plan(self.plans, plan_id)
        require_member(plan, actor_id)
        people = await self.plans.list_people(plan.str_id)
        records = await self.contributions.list_for_plan(plan.str_id)
        return people, records

    async def update_contribution(
        self,
        plan_id: str,
        record_id: str,
        fields: Dict[str, Any],
        actor_id: str
    ) -> ContributionRecord:
        """Edit a record (creator or plan owner only)."""
        plan, record = await self._load_editable(plan_id, record_id, actor_id)

        allowed = SETTLEMENT_EDITABLE_FIELDS if record.settlement else EDITABLE_FIELDS
        unknown = set(fields) - allowed
        if unknown:
            raise ValidationError(f"Cannot change {', '.join(sorted(unknown))} on this record")

        if "amount" in fields:
            if fields["amount"] is None or fields["amount"] <= 0:
                raise ValidationError("Contribution amount must be greater than zero")
            # Amounts only shrink after the fact; a larger amount is a new contribution
            if fields["amount"] > record.amount:
                raise ValidationError("Contribution amount can only be lowered; add a new contribution instead")

        if "payer_id" in fields:
            payer = await self.plans.get_person(plan.str_id, fields["payer_id"])
            if payer is None:
                raise ValidationError(f"Payer {fields['payer_id']} is not part of this plan")

        if not fields:
            return record

        batch = self.new_batch()
        self.stage_update(batch, record, fields)
        self.plans.stage_version_guard(batch, plan)
        await batch.commit()

        logger.info("Contribution %s updated in plan %s", record.str_id, plan.str_id)
        return record.model_copy(update=fields)

    async def delete_contribution(self, plan_id: str, record_id: str, actor_id: str) -> None:
        """Delete a record (creator or plan owner only)."""
        plan, record = await self._load_editable(plan_id, record_id, actor_id)

        batch = self.new_batch()
        self.stage_delete(batch, record)
        self.plans.stage_version_guard(batch, plan)
        await batch.commit()

        logger.info("Contribution %s deleted from plan %s", record.str_id, plan.str_id)

    # ===== BATCH PRIMITIVES =====

    def stage_insert(self, batch: WriteBatch, record: ContributionRecord) -> None:
        batch.insert(ContributionRepository.COLLECTION, record.to_document())

    def stage_update(self, batch: WriteBatch, record: ContributionRecord, fields: Dict[str, Any]) -> None:
        updates = dict(fields)
        updates["updated_at"] = datetime.now(timezone.utc)
        batch.update(
            ContributionRepository.COLLECTION,
            {"_id": record.id, "plan_id": record.plan_id},
            {"$set": updates},
            guard_plan_id=record.plan_id
        )

    def stage_delete(self, batch: WriteBatch, record: ContributionRecord) -> None:
        batch.delete(
            ContributionRepository.COLLECTION,
            {"_id": record.id, "plan_id": record.plan_id},
            guard_plan_id=record.plan_id
        )

    # ===== PRIVATE HELPERS =====

    async def _load_editable(self, plan_id: str, record_id: str, actor_id: str) -> Tuple[Plan, ContributionRecord]:
        plan = await load_plan(self.plans, plan_id)
        require_member(plan, actor_id)

        record = await self.contributions.get(plan.str_id, record_id)
        if record is None:
            raise NotFoundError(f"Contribution {record_id} not found")

        if record.created_by != actor_id and not plan.is_owner(actor_id):
            raise PermissionDeniedError("Only the creator or the plan owner can change this record")
        return plan, record
