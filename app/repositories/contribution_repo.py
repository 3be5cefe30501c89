from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.base import parse_object_id
from app.models.contribution import ContributionRecord

# Most recent first
LEDGER_ORDER = [("date", -1), ("created_at", -1)]


class ContributionRepository:
    """Contribution and settlement record queries.

    Writes go through WriteBatch so they can be grouped atomically.
    """

    COLLECTION = "contributions"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[self.COLLECTION]

    async def list_for_plan(self, plan_id: str) -> List[ContributionRecord]:
        """All records of a plan, most recent first."""
        cursor = self.collection.find({"plan_id": plan_id}).sort(LEDGER_ORDER)
        docs = await cursor.to_list(None)
        return [ContributionRecord(**doc) for doc in docs]

    async def list_for_payer(
        self,
        plan_id: str,
        payer_id: str,
        include_settlements: bool = False
    ) -> List[ContributionRecord]:
        """Records paid by one person; pool contributions only by default."""
        query = {"plan_id": plan_id, "payer_id": payer_id}
        if not include_settlements:
            query["settlement"] = {"$ne": True}
        cursor = self.collection.find(query).sort(LEDGER_ORDER)
        docs = await cursor.to_list(None)
        return [ContributionRecord(**doc) for doc in docs]

    async def get(self, plan_id: str, record_id: str) -> Optional[ContributionRecord]:
        """Get a record of a plan by id."""
        oid = parse_object_id(record_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid, "plan_id": plan_id})
        if doc:
            return ContributionRecord(**doc)
        return None

    def watch(self):
        """Change stream over the ledger collection.

        Delete events carry no plan_id, so every change is reported and
        consumers re-query their plan.
        """
        return self.collection.watch(
            [{"$match": {"operationType": {"$in": ["insert", "update", "replace", "delete"]}}}]
        )
