"""
MongoDB connection management for the catalog.
Handles connection, indexing and health checks; record access lives in the repositories.
"""

from typing import Any, Dict, Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure

logger = structlog.get_logger(__name__)


class MongoDBManager:
    """
    Async MongoDB manager for the catalog database.
    Owns the process-wide client; repositories receive the database handle.
    """

    def __init__(self, connection_url: str, database_name: str):
        """
        Initialize MongoDB manager.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> AsyncIOMotorDatabase:
        """Establish connection to MongoDB and return the database handle."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url)
            self.database = self.client[self.database_name]

            await self.client.admin.command('ping')
            logger.info("Successfully connected to MongoDB", database=self.database_name)

            await self._create_indexes()
            return self.database

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """
        Create indexes for the lookups the controllers perform.
        Genre names are indexed but not unique: deduplication is done by the
        create handler.
        """
        try:
            await self.database.authors.create_index("family_name")
            await self.database.genres.create_index("name")
            await self.database.books.create_index("title")

            # Dependency checks before delete and detail pages
            await self.database.books.create_index("author")
            await self.database.books.create_index("genre")
            await self.database.bookinstances.create_index("book")

            await self.database.bookinstances.create_index("status")

            logger.info("Successfully created MongoDB indexes")

        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        if self.database is None:
            return {"status": "unhealthy", "error": "not connected"}
        try:
            await self.database.command("ping")
            return {"status": "healthy", "database": self.database_name}
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}
