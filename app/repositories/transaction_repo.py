from datetime import datetime, timezone
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.base import parse_object_id
from app.models.transaction import PendingTransaction


class TransactionRepository:
    """Pending external transactions."""

    COLLECTION = "transactions"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[self.COLLECTION]

    async def list_pending(self, user_id: str) -> List[PendingTransaction]:
        """Pending transactions addressed to a user, newest first."""
        cursor = self.collection.find({
            "user_id": user_id,
            "pending": True
        }).sort("created_at", -1)
        docs = await cursor.to_list(None)
        return [PendingTransaction(**doc) for doc in docs]

    async def list_unclaimed(self, plan_id: str) -> List[PendingTransaction]:
        """Pending transactions of a plan addressed to unregistered people."""
        cursor = self.collection.find({
            "plan_id": plan_id,
            "user_id": None,
            "pending": True
        }).sort("created_at", -1)
        docs = await cursor.to_list(None)
        return [PendingTransaction(**doc) for doc in docs]

    async def get(self, transaction_id: str) -> Optional[PendingTransaction]:
        """Get a transaction by id."""
        oid = parse_object_id(transaction_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        if doc:
            return PendingTransaction(**doc)
        return None

    async def mark_resolved(self, transaction_id: str) -> Optional[PendingTransaction]:
        """Clear the pending flag; None if it was not pending any more."""
        oid = parse_object_id(transaction_id)
        if oid is None:
            return None
        result = await self.collection.find_one_and_update(
            {"_id": oid, "pending": True},
            {"$set": {
                "pending": False,
                "updated_at": datetime.now(timezone.utc)
            }},
            return_document=True
        )
        if result:
            return PendingTransaction(**result)
        return None
