from fastapi import APIRouter, Depends, status

from app.core.auth import get_current_user_id
from app.db.mongo import get_db
from app.schemas.settlement import SettlementCreate, SettlementResponse
from app.services.settlement_service import SettlementService

router = APIRouter()


@router.post(
    "/{plan_id}/settlements",
    response_model=SettlementResponse,
    status_code=status.HTTP_201_CREATED
)
async def settle_payment(
    plan_id: str,
    payload: SettlementCreate,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """Record a settlement payment between two people of the plan."""
    result = await SettlementService(db).settle_payment(
        plan_id,
        payload.from_person_id,
        payload.to_person_id,
        payload.amount,
        user_id
    )
    return SettlementResponse.from_result(result)
