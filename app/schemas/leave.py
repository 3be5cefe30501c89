from typing import List, Optional
from pydantic import BaseModel, Field

from app.models.leave import LeaveOption, LeavePreview, LeaveState, TransferPlan
from app.schemas.contribution import ContributionResponse
from app.schemas.person import PersonResponse


class TransferRequest(BaseModel):
    destination_id: str
    amount: Optional[float] = Field(None, gt=0)  # defaults to the full total
    expected_total: Optional[float] = None


class DeleteRequest(BaseModel):
    expected_total: Optional[float] = None


class LeavePreviewResponse(BaseModel):
    state: LeaveState
    person: PersonResponse
    contributions: List[ContributionResponse]
    total: float
    destinations: List[PersonResponse]
    options: List[LeaveOption]

    @classmethod
    def from_preview(cls, preview: LeavePreview) -> "LeavePreviewResponse":
        return cls(
            state=preview.state,
            person=PersonResponse.from_person(preview.person),
            contributions=[ContributionResponse.from_record(r) for r in preview.contributions],
            total=preview.total,
            destinations=[PersonResponse.from_person(p) for p in preview.destinations],
            options=preview.options
        )


class TransferPlanResponse(BaseModel):
    state: LeaveState
    person: PersonResponse
    destination: PersonResponse
    total: float
    amount: float
    full_transfer: bool

    @classmethod
    def from_plan(cls, transfer: TransferPlan) -> "TransferPlanResponse":
        return cls(
            state=transfer.state,
            person=PersonResponse.from_person(transfer.person),
            destination=PersonResponse.from_person(transfer.destination),
            total=transfer.total,
            amount=transfer.amount,
            full_transfer=transfer.is_full
        )
