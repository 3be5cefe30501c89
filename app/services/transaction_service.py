import logging
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from app.models.transaction import PendingTransaction
from app.repositories.plan_repo import PlanRepository
from app.repositories.transaction_repo import TransactionRepository
from app.services.access import load_plan

logger = logging.getLogger(__name__)


class TransactionService:
    """
    Pending external transactions created by settlements.

    A transaction addressed to a registered user belongs to that user. One
    addressed to an unregistered person has no user, so the plan owner
    reconciles it on their behalf.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.plans = PlanRepository(db)
        self.transactions = TransactionRepository(db)

    async def list_pending(self, user_id: str) -> List[PendingTransaction]:
        return await self.transactions.list_pending(user_id)

    async def list_unclaimed(self, plan_id: str, user_id: str) -> List[PendingTransaction]:
        """Pending transactions of unregistered people (plan owner only)."""
        plan = await load_plan(self.plans, plan_id)
        if not plan.is_owner(user_id):
            raise PermissionDeniedError("Only the plan owner can see transactions of unregistered people")
        return await self.transactions.list_unclaimed(plan.str_id)

    async def resolve_pending(self, transaction_id: str, user_id: str) -> PendingTransaction:
        """Mark a pending transaction as reconciled."""
        transaction = await self.transactions.get(transaction_id)
        if transaction is None or not await self._can_resolve(transaction, user_id):
            raise NotFoundError(f"Transaction {transaction_id} not found")
        if not transaction.pending:
            raise ValidationError("Transaction is already reconciled")

        resolved = await self.transactions.mark_resolved(transaction_id)
        if resolved is None:
            # Reconciled by another request after the read above
            raise ValidationError("Transaction is already reconciled")

        logger.info("Pending transaction %s reconciled by %s", transaction_id, user_id)
        return resolved

    async def _can_resolve(self, transaction: PendingTransaction, user_id: str) -> bool:
        if transaction.user_id is not None:
            return transaction.user_id == user_id
        plan = await self.plans.get_plan(transaction.plan_id)
        return plan is not None and plan.is_owner(user_id)
