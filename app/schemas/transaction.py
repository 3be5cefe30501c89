from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.models.transaction import PendingTransaction


class PendingTransactionResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    plan_id: str
    person_id: str
    amount: float
    description: str
    type: str
    date: str
    pending: bool
    created_at: datetime

    @classmethod
    def from_transaction(cls, transaction: PendingTransaction) -> "PendingTransactionResponse":
        return cls(
            id=transaction.str_id,
            user_id=transaction.user_id,
            plan_id=transaction.plan_id,
            person_id=transaction.person_id,
            amount=transaction.amount,
            description=transaction.description,
            type=transaction.type,
            date=transaction.date,
            pending=transaction.pending,
            created_at=transaction.created_at
        )
