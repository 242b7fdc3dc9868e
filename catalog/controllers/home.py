"""
Site home page with catalog counts.
"""

import structlog

from catalog.models import BookInstanceStatus
from catalog.parallel import fetch_parallel
from catalog.pipeline import Render
from catalog.repository import CatalogRepositories

logger = structlog.get_logger(__name__)


class HomeController:
    """Handler for /catalog/."""

    def __init__(self, repositories: CatalogRepositories):
        self.repositories = repositories

    async def index(self) -> Render:
        """
        Count records of every kind concurrently.

        A store failure does not fail the page: the counts are left out and
        the error message is shown instead.
        """
        repositories = self.repositories

        async def available():
            return await repositories.book_instances.count_documents(
                {"status": BookInstanceStatus.AVAILABLE.value}
            )

        try:
            data = await fetch_parallel({
                "book_count": repositories.books.count_documents,
                "book_instance_count": repositories.book_instances.count_documents,
                "book_instance_available_count": available,
                "author_count": repositories.authors.count_documents,
                "genre_count": repositories.genres.count_documents,
            })
            error = None
        except Exception as e:
            logger.error("Failed to load catalog counts", error=str(e))
            data = {}
            error = str(e)

        return Render(
            template="index",
            context={"title": "Local Library Home", "error": error, "data": data},
        )
