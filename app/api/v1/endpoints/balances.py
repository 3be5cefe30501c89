from typing import List

from fastapi import APIRouter, Depends

from app.core.auth import get_current_user_id
from app.db.mongo import get_db
from app.schemas.balance import BalanceResponse, PlanSummaryResponse
from app.schemas.settlement import SuggestedPaymentResponse
from app.services.balance_service import compute_balances, compute_settlements, summarize_plan
from app.services.ledger_service import LedgerService

router = APIRouter()


@router.get("/{plan_id}/balances", response_model=List[BalanceResponse])
async def get_balances(
    plan_id: str,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """Per-person balances (positive = owes, negative = is owed)."""
    people, records = await LedgerService(db).get_plan_ledger(plan_id, user_id)
    return [BalanceResponse.from_balance(b) for b in compute_balances(people, records)]


@router.get("/{plan_id}/settlements", response_model=List[SuggestedPaymentResponse])
async def get_suggested_settlements(
    plan_id: str,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """Minimal list of payments that would zero every balance."""
    people, records = await LedgerService(db).get_plan_ledger(plan_id, user_id)
    payments = compute_settlements(compute_balances(people, records))
    return [SuggestedPaymentResponse.from_payment(p) for p in payments]


@router.get("/{plan_id}/summary", response_model=PlanSummaryResponse)
async def get_summary(
    plan_id: str,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """Totals, balances, suggested payments, ranking and payment history."""
    people, records = await LedgerService(db).get_plan_ledger(plan_id, user_id)
    return PlanSummaryResponse.from_summary(summarize_plan(people, records))
