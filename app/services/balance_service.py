"""
Balance calculator and settlement matcher.

Both are pure: they take the current people and records, return new
objects and never touch the store or their inputs. Callers recompute from
scratch on every ledger change.
"""

from typing import Dict, List, Sequence

from app.models.balance import Balance, PlanSummary, RankingEntry
from app.models.contribution import ContributionRecord
from app.models.plan import Person
from app.models.settlement import SuggestedPayment

# Residual balances at or below this are rounding noise
TOLERANCE = 0.01


def compute_balances(
    people: Sequence[Person],
    records: Sequence[ContributionRecord]
) -> List[Balance]:
    """
    Per-person balances, in the order of `people`.

    1. actual = sum of pool contributions paid by the person
    2. adjustment = sum of settlement records paid by the person
       (paying off a debt counts as having paid into the pool)
    3. per_head = total / number of people (0 when there is nobody)
    4. balance = per_head - (actual + adjustment)

    Records whose payer is not one of `people` are ignored.
    """
    actual: Dict[str, float] = {person.str_id: 0.0 for person in people}
    adjustment: Dict[str, float] = {person.str_id: 0.0 for person in people}

    for record in records:
        if record.payer_id not in actual:
            continue
        if record.is_contribution:
            actual[record.payer_id] += record.amount
        else:
            adjustment[record.payer_id] += record.amount

    total = sum(actual.values())
    per_head = total / max(1, len(people))

    balances = []
    for person in people:
        person_id = person.str_id
        effective = actual[person_id] + adjustment[person_id]
        balances.append(Balance(
            person=person,
            actual_contribution=actual[person_id],
            settlement_adjustment=adjustment[person_id],
            effective_contribution=effective,
            balance=per_head - effective
        ))
    return balances


def compute_settlements(balances: Sequence[Balance]) -> List[SuggestedPayment]:
    """
    Greedy two-pointer matching of debtors against creditors.

    Debtors are sorted by what they owe and creditors by what they are owed,
    both largest first; sorted() is stable so ties keep the input order.
    Works on local [balance, person] pairs and returns a fresh list; the
    caller's balances are left untouched.

    Emits at most len(debtors) + len(creditors) - 1 payments.
    """
    debtors = [
        [b.balance, b.person]
        for b in sorted((b for b in balances if b.balance > 0), key=lambda b: -b.balance)
    ]
    creditors = [
        [b.balance, b.person]
        for b in sorted((b for b in balances if b.balance < 0), key=lambda b: b.balance)
    ]

    payments: List[SuggestedPayment] = []
    i = 0
    j = 0

    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        pay = min(debtor[0], abs(creditor[0]))
        if pay > TOLERANCE:
            payments.append(SuggestedPayment(
                from_person=debtor[1],
                to_person=creditor[1],
                amount=round(pay, 2)
            ))

        debtor[0] -= pay
        creditor[0] += pay

        if debtor[0] <= TOLERANCE:
            i += 1
        if abs(creditor[0]) <= TOLERANCE:
            j += 1

    return payments


def summarize_plan(
    people: Sequence[Person],
    records: Sequence[ContributionRecord]
) -> PlanSummary:
    """Everything the plan detail view shows, derived in one pass."""
    balances = compute_balances(people, records)
    total = sum(b.actual_contribution for b in balances)
    per_head = total / max(1, len(people))

    ranking = sorted(
        (RankingEntry(person=b.person, amount=b.effective_contribution) for b in balances),
        key=lambda entry: -entry.amount
    )

    # Only the paying half of a settlement pair is history
    history = sorted(
        (r for r in records if r.settlement and r.amount > 0),
        key=lambda r: (r.date, r.created_at),
        reverse=True
    )

    return PlanSummary(
        total=total,
        per_head=per_head,
        balances=balances,
        settlements=compute_settlements(balances),
        ranking=ranking,
        payment_history=history
    )
