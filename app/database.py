"""MongoDB database connection using Motor (async driver)."""
import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from app.config import settings

logger = structlog.get_logger(__name__)

TIMER_COLLECTIONS = frozenset({"time_entries", "active_timers", "projects", "tickets"})
IDENTITY_COLLECTIONS = frozenset({"users", "slack_identities"})


class Database:
    """MongoDB database connection manager."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        """Connect to MongoDB and make sure the indexes exist."""
        self.client = AsyncIOMotorClient(settings.mongodb_url)
        self.db = self.client[settings.mongodb_db_name]
        await ensure_indexes(self.db)
        logger.info("database.connected", db_name=settings.mongodb_db_name)

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("database.disconnected")


async def ensure_indexes(db) -> None:
    """Create the indexes the timer queries rely on."""
    await db["time_entries"].create_index(
        [("user_id", ASCENDING), ("start_time", DESCENDING)]
    )
    await db["tickets"].create_index(
        [("project_id", ASCENDING), ("ticket_number", ASCENDING)]
    )
    await db["projects"].create_index([("created_at", DESCENDING)])


class StoreCredential:
    """
    Service-level access to the store, limited to a fixed set of collections.

    Webhook handlers act on behalf of chat users without a user session, so
    they bypass per-user scoping. The credential makes that capability
    explicit: it is built per request and handed to the services that need
    it, and only the collections it names can be opened through it.
    """

    def __init__(self, db, collections: frozenset[str]):
        self._db = db
        self.collections = collections

    def __getitem__(self, name: str):
        if name not in self.collections:
            raise PermissionError(f"Collection '{name}' is outside this credential's scope")
        return self._db[name]


# Global database instance
database = Database()


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get database instance."""
    if database.db is None:
        raise RuntimeError("Database not connected")
    return database.db


async def get_timer_credential() -> StoreCredential:
    """Dependency giving the timer engine its scoped store access."""
    return StoreCredential(await get_database(), TIMER_COLLECTIONS)


async def get_identity_credential() -> StoreCredential:
    """Dependency giving the identity resolver its scoped store access."""
    return StoreCredential(await get_database(), IDENTITY_COLLECTIONS)
