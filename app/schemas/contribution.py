from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.models.contribution import ContributionRecord

ISO_DATE = r"^\d{4}-\d{2}-\d{2}$"


class ContributionCreate(BaseModel):
    """Request body to add a pool contribution."""
    payer_id: str
    amount: float = Field(..., gt=0)
    description: str = Field("", max_length=200)
    date: Optional[str] = Field(None, pattern=ISO_DATE)


class ContributionUpdate(BaseModel):
    """Request body to edit a record; only set fields are changed."""
    payer_id: Optional[str] = None
    amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = Field(None, max_length=200)
    date: Optional[str] = Field(None, pattern=ISO_DATE)


class ContributionCreated(BaseModel):
    id: str


class ContributionResponse(BaseModel):
    id: str
    plan_id: str
    payer_id: str
    amount: float
    description: str
    date: str
    created_by: Optional[str] = None
    settlement: bool
    receiver_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_record(cls, record: ContributionRecord) -> "ContributionResponse":
        return cls(
            id=record.str_id,
            plan_id=record.plan_id,
            payer_id=record.payer_id,
            amount=record.amount,
            description=record.description,
            date=record.date,
            created_by=record.created_by,
            settlement=record.settlement,
            receiver_id=record.receiver_id,
            created_at=record.created_at
        )
