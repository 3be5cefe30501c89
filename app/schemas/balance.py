from typing import List
from pydantic import BaseModel

from app.models.balance import Balance, PlanSummary
from app.schemas.contribution import ContributionResponse
from app.schemas.person import PersonResponse
from app.schemas.settlement import SuggestedPaymentResponse


class BalanceResponse(BaseModel):
    person: PersonResponse
    actual_contribution: float
    settlement_adjustment: float
    effective_contribution: float
    balance: float

    @classmethod
    def from_balance(cls, balance: Balance) -> "BalanceResponse":
        return cls(
            person=PersonResponse.from_person(balance.person),
            actual_contribution=round(balance.actual_contribution, 2),
            settlement_adjustment=round(balance.settlement_adjustment, 2),
            effective_contribution=round(balance.effective_contribution, 2),
            balance=round(balance.balance, 2)
        )


class RankingResponse(BaseModel):
    person: PersonResponse
    amount: float


class PlanSummaryResponse(BaseModel):
    total: float
    per_head: float
    balances: List[BalanceResponse]
    settlements: List[SuggestedPaymentResponse]
    ranking: List[RankingResponse]
    payment_history: List[ContributionResponse]

    @classmethod
    def from_summary(cls, summary: PlanSummary) -> "PlanSummaryResponse":
        return cls(
            total=round(summary.total, 2),
            per_head=round(summary.per_head, 2),
            balances=[BalanceResponse.from_balance(b) for b in summary.balances],
            settlements=[SuggestedPaymentResponse.from_payment(p) for p in summary.settlements],
            ranking=[
                RankingResponse(person=PersonResponse.from_person(entry.person), amount=round(entry.amount, 2))
                for entry in summary.ranking
            ],
            payment_history=[ContributionResponse.from_record(r) for r in summary.payment_history]
        )
