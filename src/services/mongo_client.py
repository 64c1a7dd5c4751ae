"""MongoDB client and the audit collection context."""

from typing import Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from src.utils.config import AppConfig
from src.utils.errors import ConfigurationError, DocumentStoreError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

# Global client instance (singleton pattern)
_client: Optional[AsyncIOMotorClient] = None


def get_mongo_client() -> AsyncIOMotorClient:
    """Get or create the Motor client singleton."""
    global _client

    if _client is None:
        try:
            uri = AppConfig.mongodb_uri()
        except ConfigurationError as e:
            raise DocumentStoreError(str(e))

        _client = AsyncIOMotorClient(
            uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            maxPoolSize=20,
            tz_aware=True,
        )
        logger.info("MongoDB client initialized", database=AppConfig.mongodb_database())

    return _client


def close_mongo_client() -> None:
    """Close the Motor client and drop the reference."""
    global _client
    if _client is not None:
        _client.close()
        _client = None
        logger.info("MongoDB client closed")


class MongoDbContext:
    """Audit collections of the document store."""

    STATUS_HISTORIES = "StatusHistories"
    CASE_HISTORIES = "CaseHistories"
    USER_ACTIVITY_LOGS = "UserActivityLogs"

    def __init__(self, database: Optional[AsyncIOMotorDatabase] = None):
        self._database = database

    @property
    def client(self) -> AsyncIOMotorClient:
        return get_mongo_client()

    @property
    def database(self) -> AsyncIOMotorDatabase:
        if self._database is not None:
            return self._database
        # Not cached: the global client may be replaced between event loops
        return self.client[AppConfig.mongodb_database()]

    @property
    def status_histories(self) -> AsyncIOMotorCollection:
        return self.database[self.STATUS_HISTORIES]

    @property
    def case_histories(self) -> AsyncIOMotorCollection:
        return self.database[self.CASE_HISTORIES]

    @property
    def user_activity_logs(self) -> AsyncIOMotorCollection:
        return self.database[self.USER_ACTIVITY_LOGS]

    async def ensure_indexes(self) -> None:
        """Create lookup indexes and the unique follow-up index on each collection."""
        try:
            await self.status_histories.create_index(
                [("listing_case_id", ASCENDING), ("changed_at", DESCENDING)],
                name="listing_case_changed_at",
            )
            await self.case_histories.create_index(
                [("listing_case_id", ASCENDING), ("changed_at", DESCENDING)],
                name="listing_case_changed_at",
            )
            await self.user_activity_logs.create_index(
                [("user_id", ASCENDING), ("timestamp", DESCENDING)],
                name="user_timestamp",
            )
            for collection in (self.status_histories, self.case_histories, self.user_activity_logs):
                await collection.create_index(
                    [("follow_up_id", ASCENDING)],
                    unique=True,
                    sparse=True,
                    name="follow_up_id_unique",
                )
            logger.debug("Audit collection indexes ensured")
        except PyMongoError as e:
            raise DocumentStoreError(f"Failed to create audit indexes: {e}")
