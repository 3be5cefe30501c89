from datetime import datetime, timezone
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.db.batch import WriteBatch
from app.models.base import parse_object_id
from app.models.plan import Plan, Person


class PlanRepository:
    """Plan and plan-people database operations."""

    PLANS = "plans"
    PEOPLE = "people"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.plans = db[self.PLANS]
        self.people = db[self.PEOPLE]

    async def get_plan(self, plan_id: str) -> Optional[Plan]:
        """Get a plan by id."""
        oid = parse_object_id(plan_id)
        if oid is None:
            return None
        doc = await self.plans.find_one({"_id": oid})
        if doc:
            return Plan(**doc)
        return None

    async def list_people(self, plan_id: str) -> List[Person]:
        """List the people of a plan in joining order."""
        cursor = self.people.find({"plan_id": plan_id}).sort("created_at", 1)
        docs = await cursor.to_list(None)
        return [Person(**doc) for doc in docs]

    async def get_person(self, plan_id: str, person_id: str) -> Optional[Person]:
        """Get a person of a plan by id."""
        oid = parse_object_id(person_id)
        if oid is None:
            return None
        doc = await self.people.find_one({"_id": oid, "plan_id": plan_id})
        if doc:
            return Person(**doc)
        return None

    def stage_version_guard(self, batch: WriteBatch, plan: Plan) -> None:
        """
        Stage the optimistic lock for a ledger batch.

        The batch only commits if the plan still has the version read at the
        start of the operation; a concurrent writer or a deleted plan makes
        the guarded update match nothing.
        """
        # Plans created before versioning carry no field at all
        expected = plan.version if plan.version else {"$in": [0, None]}
        batch.update(
            self.PLANS,
            {"_id": plan.id, "version": expected},
            {
                "$inc": {"version": 1},
                "$set": {"updated_at": datetime.now(timezone.utc)}
            },
            guard_plan_id=plan.str_id
        )

    def stage_remove_person(self, batch: WriteBatch, plan: Plan, person: Person) -> None:
        """Stage deletion of a person and, if registered, their membership."""
        batch.delete(self.PEOPLE, {"_id": person.id, "plan_id": plan.str_id})
        if person.is_registered:
            batch.update(
                self.PLANS,
                {"_id": plan.id},
                {
                    "$pull": {"members": person.user_id},
                    "$set": {"updated_at": datetime.now(timezone.utc)}
                },
                guard_plan_id=plan.str_id
            )
