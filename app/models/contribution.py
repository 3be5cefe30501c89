"""
Contribution records - the per-plan ledger.

Two kinds of record share one collection:
- pool contributions (settlement=False): money a person put into the plan
- settlements (settlement=True): debt-clearing payments between people.
  A settlement pair is one positive record for the payer and, when the
  receiver has a linked account, one negative mirror for the receiver.
"""

from typing import Optional
from pydantic import Field

from app.models.base import MongoModel, today_iso


class ContributionRecord(MongoModel):
    plan_id: str
    payer_id: str  # Person id
    amount: float
    description: str = ""
    date: str = Field(default_factory=today_iso)
    created_by: Optional[str] = None  # user id
    settlement: bool = False
    receiver_id: Optional[str] = None  # Person id, settlements only

    @property
    def is_contribution(self) -> bool:
        return not self.settlement
