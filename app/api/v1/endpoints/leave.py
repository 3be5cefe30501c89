from fastapi import APIRouter, Depends

from app.core.auth import get_current_user_id
from app.db.mongo import get_db
from app.models.leave import LeaveResult
from app.schemas.leave import (
    DeleteRequest,
    LeavePreviewResponse,
    TransferPlanResponse,
    TransferRequest,
)
from app.services.leave_service import LeaveService

router = APIRouter()


@router.post("/{plan_id}/people/{person_id}/leave", response_model=LeavePreviewResponse)
async def confirm_leave(
    plan_id: str,
    person_id: str,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """Start leaving; people with no contributions leave immediately."""
    preview = await LeaveService(db).confirm_leave(plan_id, person_id, user_id)
    return LeavePreviewResponse.from_preview(preview)


@router.post("/{plan_id}/people/{person_id}/leave/transfer", response_model=TransferPlanResponse)
async def start_transfer(
    plan_id: str,
    person_id: str,
    payload: TransferRequest,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """Validate a transfer before confirming it."""
    transfer = await LeaveService(db).start_transfer(
        plan_id,
        person_id,
        payload.destination_id,
        user_id,
        amount=payload.amount
    )
    return TransferPlanResponse.from_plan(transfer)


@router.post("/{plan_id}/people/{person_id}/leave/transfer/confirm", response_model=LeaveResult)
async def confirm_transfer(
    plan_id: str,
    person_id: str,
    payload: TransferRequest,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """Transfer contributions and leave the plan."""
    return await LeaveService(db).confirm_transfer(
        plan_id,
        person_id,
        payload.destination_id,
        user_id,
        amount=payload.amount,
        expected_total=payload.expected_total
    )


@router.post("/{plan_id}/people/{person_id}/leave/delete/preview", response_model=LeavePreviewResponse)
async def start_delete(
    plan_id: str,
    person_id: str,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """List the contributions the delete path would remove."""
    preview = await LeaveService(db).start_delete(plan_id, person_id, user_id)
    return LeavePreviewResponse.from_preview(preview)


@router.post("/{plan_id}/people/{person_id}/leave/delete", response_model=LeaveResult)
async def confirm_delete(
    plan_id: str,
    person_id: str,
    payload: DeleteRequest,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """Delete contributions and leave the plan."""
    return await LeaveService(db).confirm_delete(
        plan_id,
        person_id,
        user_id,
        expected_total=payload.expected_total
    )
