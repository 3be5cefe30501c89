from typing import Optional
from pydantic import Field

from app.models.base import MongoModel, today_iso


class PendingTransaction(MongoModel):
    """Income addressed to a recipient with no linked account.

    Stays pending until the recipient reconciles it by hand.
    """
    user_id: Optional[str] = None
    plan_id: str
    person_id: str
    amount: float
    description: str = ""
    type: str = "income"
    date: str = Field(default_factory=today_iso)
    settlement: bool = True
    pending: bool = True
