from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.base import parse_object_id


class UserRepository:
    """Read-only user profile lookups."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["users"]

    async def get_display_name(self, user_id: str | None) -> str | None:
        """Resolve a user id to a display name, None when unknown."""
        if not user_id:
            return None
        oid = parse_object_id(user_id)
        doc = await self.collection.find_one(
            {"_id": oid if oid is not None else user_id},
            {"name": 1, "display_name": 1}
        )
        if not doc:
            return None
        return doc.get("display_name") or doc.get("name")
