"""
MongoDB connection and initialization using Beanie ODM.
All CodeLearnn collections are registered through DOCUMENT_MODELS.
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from beanie import init_beanie
from typing import Optional
from loguru import logger

from config.settings import settings
from backend.models import DOCUMENT_MODELS


class MongoDB:
    """MongoDB connection manager shared by the API and the batch scripts."""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def connect(cls, url: Optional[str] = None, db_name: Optional[str] = None):
        """Connect to MongoDB and register the document models with Beanie."""
        url = url or settings.mongodb_url
        db_name = db_name or settings.mongodb_db_name

        try:
            logger.info(f"Connecting to MongoDB database '{db_name}'")

            cls.client = AsyncIOMotorClient(
                url,
                minPoolSize=settings.mongodb_min_pool_size,
                maxPoolSize=settings.mongodb_max_pool_size,
                tz_aware=False,
            )
            cls.db = cls.client[db_name]

            # Creates the declared indexes, including the OTP TTL index
            await init_beanie(database=cls.db, document_models=DOCUMENT_MODELS)

            logger.success(f"Connected to MongoDB, {len(DOCUMENT_MODELS)} collections registered")

        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    @classmethod
    async def disconnect(cls):
        if cls.client:
            cls.client.close()
            cls.client = None
            cls.db = None
            logger.info("Disconnected from MongoDB")

    @classmethod
    async def ping(cls) -> bool:
        """Check MongoDB connection."""
        if cls.client is None:
            return False
        try:
            await cls.client.admin.command("ping")
            return True
        except Exception as e:
            logger.error(f"MongoDB ping failed: {e}")
            return False


# Global instance
mongodb = MongoDB()
