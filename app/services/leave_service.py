"""
LeaveService - removing a person from a plan.

Flow:
    confirm --(total == 0)--------------------------> done
    confirm --> transfer (pick destination, amount) --> done
    confirm --> delete -------------------------------> done

- transfer, full amount: the leaving person's records are reassigned to the
  destination as they are.
- transfer, partial amount: one settlement record for the destination with
  the transferred amount, then every original record is scaled by
  (total - amount) / total. Records that round to zero are deleted.
- delete: every pool contribution of the person is deleted; settlement
  records stay because they describe debt already cleared.
- done: the person document and their plan membership are removed.

The ledger writes of a step are one batch and "done" is a second one. If the
process dies in between, the next attempt finds total == 0 and leaves
directly.
"""

import logging
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.exceptions import PermissionDeniedError, RaceConditionError, ValidationError
from app.db.batch import WriteBatch
from app.models.contribution import ContributionRecord
from app.models.leave import LeaveOption, LeavePreview, LeaveResult, LeaveState, TransferPlan
from app.models.plan import Plan, Person
from app.repositories.contribution_repo import ContributionRepository
from app.repositories.plan_repo import PlanRepository
from app.repositories.user_repo import UserRepository
from app.services.access import load_person, load_plan, require_member
from app.services.balance_service import TOLERANCE
from app.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)


def contribution_total(records: List[ContributionRecord]) -> float:
    return round(sum(r.amount for r in records if r.is_contribution), 2)


class LeaveService:
    """Membership transition handler."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.plans = PlanRepository(db)
        self.contributions = ContributionRepository(db)
        self.users = UserRepository(db)
        self.ledger = LedgerService(db)

    async def confirm_leave(self, plan_id: str, person_id: str, actor_id: str) -> LeavePreview:
        """
        First step: show what the person has contributed.

        A person with nothing contributed leaves right away and the preview
        comes back in the done state.
        """
        plan, person = await self._load(plan_id, person_id, actor_id)
        records = await self.contributions.list_for_payer(plan.str_id, person.str_id)
        total = contribution_total(records)

        if total == 0:
            await self._finish(plan, person)
            return LeavePreview(
                state=LeaveState.DONE,
                person=person,
                options=[LeaveOption.LEAVE]
            )

        people = await self.plans.list_people(plan.str_id)
        destinations = [p for p in people if p.id != person.id]

        options = [LeaveOption.TRANSFER] if destinations else []
        options.append(LeaveOption.DELETE)

        return LeavePreview(
            state=LeaveState.CONFIRM,
            person=person,
            contributions=records,
            total=total,
            destinations=destinations,
            options=options
        )

    async def start_transfer(
        self,
        plan_id: str,
        person_id: str,
        destination_id: str,
        actor_id: str,
        amount: Optional[float] = None
    ) -> TransferPlan:
        """Validate a transfer choice without writing anything."""
        transfer, _plan, _records = await self._prepare_transfer(
            plan_id, person_id, destination_id, actor_id, amount
        )
        return transfer

    async def confirm_transfer(
        self,
        plan_id: str,
        person_id: str,
        destination_id: str,
        actor_id: str,
        amount: Optional[float] = None,
        expected_total: Optional[float] = None
    ) -> LeaveResult:
        """Move the person's contributions to the destination, then leave."""
        transfer, plan, records = await self._prepare_transfer(
            plan_id, person_id, destination_id, actor_id, amount
        )
        self._check_expected_total(plan, transfer.total, expected_total)

        person = transfer.person
        destination = transfer.destination
        result = LeaveResult(person_id=person.str_id)
        batch = WriteBatch(self.db)

        if transfer.is_full:
            for record in records:
                self.ledger.stage_update(batch, record, {"payer_id": destination.str_id})
            result.reassigned = len(records)
        else:
            name = await self.users.get_display_name(person.user_id) or person.name or "Unknown"
            transfer_record = ContributionRecord(
                plan_id=plan.str_id,
                payer_id=destination.str_id,
                amount=transfer.amount,
                description=f"Transfer from {name}",
                created_by=actor_id,
                settlement=True
            )
            self.ledger.stage_insert(batch, transfer_record)
            result.transfer_record_id = transfer_record.str_id

            ratio = (transfer.total - transfer.amount) / transfer.total
            for record in records:
                scaled = round(record.amount * ratio, 2)
                if scaled <= 0:
                    self.ledger.stage_delete(batch, record)
                    result.deleted += 1
                else:
                    self.ledger.stage_update(batch, record, {"amount": scaled})
                    result.scaled += 1

        self.plans.stage_version_guard(batch, plan)
        await batch.commit()

        logger.info(
            "Transferred %.2f of %.2f from %s to %s in plan %s",
            transfer.amount,
            transfer.total,
            person.str_id,
            destination.str_id,
            plan.str_id
        )

        await self._finish(plan, person)
        return result

    async def start_delete(self, plan_id: str, person_id: str, actor_id: str) -> LeavePreview:
        """Show what the delete path would remove, without writing anything."""
        plan, person = await self._load(plan_id, person_id, actor_id)
        records = await self.contributions.list_for_payer(plan.str_id, person.str_id)

        return LeavePreview(
            state=LeaveState.DELETE,
            person=person,
            contributions=[r for r in records if r.is_contribution],
            total=contribution_total(records),
            options=[LeaveOption.DELETE]
        )

    async def confirm_delete(
        self,
        plan_id: str,
        person_id: str,
        actor_id: str,
        expected_total: Optional[float] = None
    ) -> LeaveResult:
        """Delete the person's pool contributions, then leave."""
        plan, person = await self._load(plan_id, person_id, actor_id)
        records = await self.contributions.list_for_payer(plan.str_id, person.str_id)
        self._check_expected_total(plan, contribution_total(records), expected_total)

        contributions = [r for r in records if r.is_contribution]
        if contributions:
            batch = WriteBatch(self.db)
            for record in contributions:
                self.ledger.stage_delete(batch, record)
            self.plans.stage_version_guard(batch, plan)
            await batch.commit()

            logger.info(
                "Deleted %d contributions of %s in plan %s",
                len(contributions),
                person.str_id,
                plan.str_id
            )

        await self._finish(plan, person)
        return LeaveResult(person_id=person.str_id, deleted=len(contributions))

    # ===== PRIVATE HELPERS =====

    async def _load(self, plan_id: str, person_id: str, actor_id: str) -> Tuple[Plan, Person]:
        plan = await load_plan(self.plans, plan_id)
        require_member(plan, actor_id)
        person = await load_person(self.plans, plan, person_id)

        if person.is_owner or (person.user_id and plan.is_owner(person.user_id)):
            raise ValidationError("The plan owner cannot leave the plan")

        # Members remove themselves; the owner can remove anyone else
        if person.user_id != actor_id and not plan.is_owner(actor_id):
            raise PermissionDeniedError("Only the plan owner can remove other people")
        return plan, person

    async def _prepare_transfer(
        self,
        plan_id: str,
        person_id: str,
        destination_id: str,
        actor_id: str,
        amount: Optional[float]
    ) -> Tuple[TransferPlan, Plan, List[ContributionRecord]]:
        if not destination_id:
            raise ValidationError("Select a person to transfer contributions to")
        if destination_id == person_id:
            raise ValidationError("Contributions cannot be transferred to the leaving person")

        plan, person = await self._load(plan_id, person_id, actor_id)
        destination = await load_person(self.plans, plan, destination_id)

        records = await self.contributions.list_for_payer(plan.str_id, person.str_id)
        total = contribution_total(records)
        if total <= 0:
            raise ValidationError("There are no contributions to transfer")

        if amount is None:
            amount = total
        if amount <= 0:
            raise ValidationError("Transfer amount must be greater than zero")
        if amount > total + TOLERANCE:
            raise ValidationError("Transfer amount cannot be greater than total contributions")

        transfer = TransferPlan(
            person=person,
            destination=destination,
            total=total,
            amount=min(amount, total)
        )
        return transfer, plan, records

    def _check_expected_total(self, plan: Plan, total: float, expected_total: Optional[float]) -> None:
        if expected_total is not None and abs(total - expected_total) > TOLERANCE:
            logger.warning(
                "Contributions changed in plan %s: expected %.2f, found %.2f",
                plan.str_id,
                expected_total,
                total
            )
            raise RaceConditionError(plan.str_id)

    async def _finish(self, plan: Plan, person: Person) -> None:
        batch = WriteBatch(self.db)
        self.plans.stage_remove_person(batch, plan, person)
        await batch.commit()
        logger.info("Person %s left plan %s", person.str_id, plan.str_id)
