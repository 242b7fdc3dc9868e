"""
Genre handlers.
"""

from typing import Any, Mapping, Optional

from catalog.models import Genre
from catalog.pipeline import EntityForm, Outcome, Render, RequestPipeline
from catalog.repository import CatalogRepositories
from catalog.validation import FormValidator, check

GENRE_VALIDATOR = FormValidator(
    check("name", "Genre name required").trim().is_length(min=1),
)


class GenreController:
    """Handlers for /catalog/genre(s)."""

    def __init__(self, repositories: CatalogRepositories):
        self.repositories = repositories
        self.pipeline = RequestPipeline("genre", repositories.genres, "/catalog/genres")
        self.form = EntityForm("genre_form", Genre, GENRE_VALIDATOR)

    async def list(self) -> Render:
        return await self.pipeline.list_view("genre_list", "Genre List", "genre_list", self.repositories.genres.find)

    async def detail(self, genre_id: str) -> Render:
        async def genre_books():
            return await self.repositories.books.find({"genre": genre_id})

        return await self.pipeline.detail_view(
            "genre_detail", "Genre Detail", genre_id,
            related={"genre_books": genre_books},
        )

    async def create_get(self) -> Render:
        return await self.pipeline.form_view(self.form, "Create Genre")

    async def _same_name(self, candidate: Genre) -> Optional[Genre]:
        return await self.repositories.genres.find_one({"name": candidate.name})

    async def create_post(self, body: Mapping[str, Any]) -> Outcome:
        return await self.pipeline.create_submit(self.form, "Create Genre", body, existing=self._same_name)

    async def delete_get(self, genre_id: str) -> Outcome:
        return self.pipeline.not_supported("genre_delete_get")

    async def delete_post(self, genre_id: str) -> Outcome:
        return self.pipeline.not_supported("genre_delete_post")

    async def update_get(self, genre_id: str) -> Outcome:
        return self.pipeline.not_supported("genre_update_get")

    async def update_post(self, genre_id: str, body: Mapping[str, Any]) -> Outcome:
        return self.pipeline.not_supported("genre_update_post")
