from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING
from .config import settings
from .logging_config import get_logger

logger = get_logger(__name__)

client = AsyncIOMotorClient(settings.MONGODB_URL)
db = client[settings.DATABASE_NAME]


async def get_db():
    return db


async def ensure_indexes(database):
    """Create the unique indexes the services rely on for conflict detection."""
    await database.blogs.create_index("slug", unique=True)
    await database.blogs.create_index("shareable_link", unique=True, sparse=True)
    await database.blogs.create_index([("author", ASCENDING), ("created_at", DESCENDING)])
    await database.blogs.create_index([("created_at", DESCENDING)])
    await database.sites.create_index("site_id", unique=True)
    await database.sites.create_index("api_key", unique=True)
    await database.sites.create_index("owner")
    await database.users.create_index("email", unique=True)
    logger.info("Indexes ensured on database %s", database.name)
