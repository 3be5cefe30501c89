from typing import Optional
from pydantic import BaseModel, ConfigDict

from app.models.plan import Person


class SuggestedPayment(BaseModel):
    """Advisory payment produced by the settlement matcher."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    from_person: Person
    to_person: Person
    amount: float


class SettlementResult(BaseModel):
    """Outcome of one executed settlement payment."""
    record_id: str
    amount: float
    mirrored_record_id: Optional[str] = None
    pending_transaction_id: Optional[str] = None

    @property
    def mirrored(self) -> bool:
        return self.mirrored_record_id is not None
