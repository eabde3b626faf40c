from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class Database:
    """Holds the single Motor client used by the flight school API"""
    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self, mongo_url: str, db_name: str):
        """Open the client and check the server answers"""
        try:
            self.client = AsyncIOMotorClient(mongo_url, tz_aware=True)
            self.db = self.client[db_name]
            await self.client.admin.command('ping')
            logger.info(f"Connected to MongoDB database: {db_name}")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    async def ensure_indexes(self, index_map: Dict[str, List[dict]]):
        """Create the declared indexes, one collection at a time"""
        database = self.get_db()
        for collection_name, indexes in index_map.items():
            for index in indexes:
                options = {k: v for k, v in index.items() if k != "keys"}
                await database[collection_name].create_index(index["keys"], **options)
            logger.info(f"Indexes ensured on {collection_name} ({len(indexes)})")

    async def disconnect(self):
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("Disconnected from MongoDB")

    def get_db(self) -> AsyncIOMotorDatabase:
        if self.db is None:
            raise RuntimeError("Database not connected")
        return self.db


db = Database()


async def get_database() -> AsyncIOMotorDatabase:
    return db.get_db()
