from typing import Optional
from pydantic import BaseModel, Field

from app.models.settlement import SettlementResult, SuggestedPayment
from app.schemas.person import PersonResponse


class SettlementCreate(BaseModel):
    from_person_id: str
    to_person_id: str
    amount: float = Field(..., gt=0)


class SuggestedPaymentResponse(BaseModel):
    from_person: PersonResponse
    to_person: PersonResponse
    amount: float

    @classmethod
    def from_payment(cls, payment: SuggestedPayment) -> "SuggestedPaymentResponse":
        return cls(
            from_person=PersonResponse.from_person(payment.from_person),
            to_person=PersonResponse.from_person(payment.to_person),
            amount=payment.amount
        )


class SettlementResponse(BaseModel):
    record_id: str
    amount: float
    mirrored: bool
    mirrored_record_id: Optional[str] = None
    pending_transaction_id: Optional[str] = None

    @classmethod
    def from_result(cls, result: SettlementResult) -> "SettlementResponse":
        return cls(
            record_id=result.record_id,
            amount=result.amount,
            mirrored=result.mirrored,
            mirrored_record_id=result.mirrored_record_id,
            pending_transaction_id=result.pending_transaction_id
        )
