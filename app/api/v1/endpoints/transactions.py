from typing import List, Optional

from fastapi import APIRouter, Depends

from app.core.auth import get_current_user_id
from app.db.mongo import get_db
from app.schemas.transaction import PendingTransactionResponse
from app.services.transaction_service import TransactionService

router = APIRouter()


@router.get("/pending", response_model=List[PendingTransactionResponse])
async def list_pending(
    plan_id: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """
    Pending settlement income addressed to the current user, or with
    `plan_id`, the plan's income for unregistered people (owner only).
    """
    service = TransactionService(db)
    if plan_id:
        transactions = await service.list_unclaimed(plan_id, user_id)
    else:
        transactions = await service.list_pending(user_id)
    return [PendingTransactionResponse.from_transaction(t) for t in transactions]


@router.post("/{transaction_id}/resolve", response_model=PendingTransactionResponse)
async def resolve_pending(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """Mark a pending transaction as reconciled."""
    transaction = await TransactionService(db).resolve_pending(transaction_id, user_id)
    return PendingTransactionResponse.from_transaction(transaction)
