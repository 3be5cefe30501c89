from motor.motor_asyncio import AsyncIOMotorDatabase


class AccountRepository:
    """Read-only lookup of linked financial accounts (cards)."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["cards"]

    async def has_linked_account(self, user_id: str | None) -> bool:
        """True when at least one card lists the user as a member."""
        if not user_id:
            return False
        doc = await self.collection.find_one({"members": user_id}, {"_id": 1})
        return doc is not None
