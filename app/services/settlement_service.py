import logging

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.exceptions import ValidationError
from app.db.batch import WriteBatch
from app.models.contribution import ContributionRecord
from app.models.plan import Person
from app.models.settlement import SettlementResult
from app.models.transaction import PendingTransaction
from app.repositories.account_repo import AccountRepository
from app.repositories.contribution_repo import ContributionRepository
from app.repositories.plan_repo import PlanRepository
from app.repositories.transaction_repo import TransactionRepository
from app.repositories.user_repo import UserRepository
from app.services.access import load_person, load_plan, require_member

logger = logging.getLogger(__name__)


class SettlementService:
    """Executes settlement payments between people of a plan."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.plans = PlanRepository(db)
        self.accounts = AccountRepository(db)
        self.users = UserRepository(db)

    async def settle_payment(
        self,
        plan_id: str,
        from_person_id: str,
        to_person_id: str,
        amount: float,
        actor_id: str
    ) -> SettlementResult:
        """
        Record that `from` paid `to` the given amount.

        Writes, in one transaction:
        - a settlement record for the payer with the positive amount
        - and either a mirrored negative record for the receiver, when the
          receiver has a linked account, or a pending external transaction
          addressed to the receiver for manual reconciliation.

        Nothing is written if any part fails.
        """
        if amount is None or amount <= 0:
            raise ValidationError("Settlement amount must be greater than zero")
        if from_person_id == to_person_id:
            raise ValidationError("Payer and receiver must be different people")

        plan = await load_plan(self.plans, plan_id)
        require_member(plan, actor_id)
        payer = await load_person(self.plans, plan, from_person_id)
        receiver = await load_person(self.plans, plan, to_person_id)

        payer_name = await self._display_name(payer)
        receiver_name = await self._display_name(receiver)
        amount = abs(amount)

        batch = WriteBatch(self.db)

        payer_record = ContributionRecord(
            plan_id=plan.str_id,
            payer_id=payer.str_id,
            amount=amount,
            description=f"Payment to {receiver_name}",
            created_by=actor_id,
            settlement=True,
            receiver_id=receiver.str_id
        )
        batch.insert(ContributionRepository.COLLECTION, payer_record.to_document())
        result = SettlementResult(record_id=payer_record.str_id, amount=amount)

        if receiver.is_registered and await self.accounts.has_linked_account(receiver.user_id):
            mirrored = ContributionRecord(
                plan_id=plan.str_id,
                payer_id=receiver.str_id,
                amount=-amount,
                description=f"Payment from {payer_name}",
                created_by=actor_id,
                settlement=True,
                receiver_id=payer.str_id
            )
            batch.insert(ContributionRepository.COLLECTION, mirrored.to_document())
            result.mirrored_record_id = mirrored.str_id
        else:
            pending = PendingTransaction(
                user_id=receiver.user_id,
                plan_id=plan.str_id,
                person_id=receiver.str_id,
                amount=amount,
                description=f"Settlement payment from {payer_name} in plan",
                date=payer_record.date,
                pending=True
            )
            batch.insert(TransactionRepository.COLLECTION, pending.to_document())
            result.pending_transaction_id = pending.str_id

        self.plans.stage_version_guard(batch, plan)
        await batch.commit()

        logger.info(
            "Settlement of %.2f from %s to %s in plan %s (%s)",
            amount,
            payer.str_id,
            receiver.str_id,
            plan.str_id,
            "mirrored" if result.mirrored else "pending transaction"
        )
        return result

    async def _display_name(self, person: Person) -> str:
        name = await self.users.get_display_name(person.user_id)
        return name or person.name or "Unknown"
