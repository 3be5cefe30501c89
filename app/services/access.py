"""Plan lookups and permission checks shared by the ledger services."""

from app.core.exceptions import NotFoundError, PermissionDeniedError
from app.models.plan import Plan, Person
from app.repositories.plan_repo import PlanRepository


async def load_plan(plans: PlanRepository, plan_id: str) -> Plan:
    plan = await plans.get_plan(plan_id)
    if plan is None:
        raise NotFoundError(f"Plan {plan_id} not found")
    return plan


def require_member(plan: Plan, user_id: str) -> None:
    if not plan.is_member(user_id):
        raise PermissionDeniedError("Only plan members can change this plan")


async def load_person(plans: PlanRepository, plan: Plan, person_id: str) -> Person:
    person = await plans.get_person(plan.str_id, person_id)
    if person is None:
        raise NotFoundError(f"Person {person_id} is not part of plan {plan.str_id}")
    return person
