import json
from contextlib import aclosing
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import StreamingResponse

from app.core.auth import get_current_user_id
from app.db.mongo import get_db
from app.schemas.contribution import (
    ContributionCreate,
    ContributionCreated,
    ContributionResponse,
    ContributionUpdate,
)
from app.services.ledger_service import LedgerService

router = APIRouter()


@router.get("/{plan_id}/contributions", response_model=List[ContributionResponse])
async def list_contributions(
    plan_id: str,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """List the plan's records, most recent first."""
    records = await LedgerService(db).get_contributions(plan_id, user_id)
    return [ContributionResponse.from_record(record) for record in records]


@router.get("/{plan_id}/contributions/stream")
async def stream_contributions(
    plan_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """Server-sent events: one full snapshot per ledger change."""
    feed = await LedgerService(db).list_contributions(plan_id, user_id)

    async def events():
        async with aclosing(feed.snapshots()) as snapshots:
            async for records in snapshots:
                if await request.is_disconnected():
                    break
                payload = [ContributionResponse.from_record(r).model_dump(mode="json") for r in records]
                yield f"data: {json.dumps(payload)}\n\n"

    return StreamingResponse(events(), media_type="text/event-stream")


@router.post(
    "/{plan_id}/contributions",
    response_model=ContributionCreated,
    status_code=status.HTTP_201_CREATED
)
async def add_contribution(
    plan_id: str,
    payload: ContributionCreate,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """Add a pool contribution."""
    record_id = await LedgerService(db).add_contribution(
        plan_id,
        payload.payer_id,
        payload.amount,
        payload.description,
        user_id,
        date=payload.date
    )
    return ContributionCreated(id=record_id)


@router.patch("/{plan_id}/contributions/{record_id}", response_model=ContributionResponse)
async def update_contribution(
    plan_id: str,
    record_id: str,
    payload: ContributionUpdate,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """Edit a record (creator or plan owner)."""
    record = await LedgerService(db).update_contribution(
        plan_id,
        record_id,
        payload.model_dump(exclude_unset=True),
        user_id
    )
    return ContributionResponse.from_record(record)


@router.delete("/{plan_id}/contributions/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contribution(
    plan_id: str,
    record_id: str,
    user_id: str = Depends(get_current_user_id),
    db = Depends(get_db)
):
    """Delete a record (creator or plan owner)."""
    await LedgerService(db).delete_contribution(plan_id, record_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
