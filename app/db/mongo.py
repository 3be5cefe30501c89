import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from app.core.config import settings

logger = logging.getLogger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URI)
    mongodb.db = mongodb.client[settings.MONGODB_DB]

    await create_indexes()
    logger.info("Connected to MongoDB: %s", settings.MONGODB_DB)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes."""
    # Plan membership lookups
    await mongodb.db["plans"].create_index("members")

    # People of a plan, and the person linked to a user
    await mongodb.db["people"].create_index("plan_id")
    await mongodb.db["people"].create_index([("plan_id", 1), ("user_id", 1)])

    # Ledger: ordered listing and per-payer lookups
    await mongodb.db["contributions"].create_index(
        [("plan_id", 1), ("date", -1), ("created_at", -1)]
    )
    await mongodb.db["contributions"].create_index([("plan_id", 1), ("payer_id", 1)])

    # Pending external transactions per recipient
    await mongodb.db["transactions"].create_index([("user_id", 1), ("pending", 1)])
    await mongodb.db["transactions"].create_index([("plan_id", 1), ("user_id", 1), ("pending", 1)])

    # Account lookup
    await mongodb.db["cards"].create_index("members")

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
