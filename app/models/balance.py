from typing import List
from pydantic import BaseModel, ConfigDict

from app.models.contribution import ContributionRecord
from app.models.plan import Person
from app.models.settlement import SuggestedPayment


class Balance(BaseModel):
    """Derived position of one person in a plan (never persisted).

    balance > 0: debtor (owes the pool)
    balance < 0: creditor (is owed)
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    person: Person
    actual_contribution: float
    settlement_adjustment: float
    effective_contribution: float
    balance: float

    @property
    def person_id(self) -> str:
        return self.person.str_id


class RankingEntry(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    person: Person
    amount: float


class PlanSummary(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    total: float
    per_head: float
    balances: List[Balance]
    settlements: List[SuggestedPayment]
    ranking: List[RankingEntry]
    payment_history: List[ContributionRecord]
