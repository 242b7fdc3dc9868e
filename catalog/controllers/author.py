"""
Author handlers.
"""

from typing import Any, Mapping

from catalog.models import Author
from catalog.pipeline import EntityForm, Outcome, Render, RequestPipeline
from catalog.repository import ASCENDING, CatalogRepositories
from catalog.validation import FormValidator, check, sanitize

AUTHOR_VALIDATOR = FormValidator(
    check("first_name").trim()
    .is_length(min=1).with_message("First name must be specified.")
    .is_alphanumeric().with_message("First name has non-alphanumeric characters."),
    check("family_name").trim()
    .is_length(min=1).with_message("Family name must be specified.")
    .is_alphanumeric().with_message("Family name has non-alphanumeric characters."),
    check("date_of_birth", "Invalid date of birth").optional(check_falsy=True).is_iso8601(),
    check("date_of_death", "Invalid date of death").optional(check_falsy=True).is_iso8601(),
    sanitize("date_of_birth").to_date(),
    sanitize("date_of_death").to_date(),
)


class AuthorController:
    """Handlers for /catalog/author(s)."""

    def __init__(self, repositories: CatalogRepositories):
        self.repositories = repositories
        self.pipeline = RequestPipeline("author", repositories.authors, "/catalog/authors")
        self.form = EntityForm("author_form", Author, AUTHOR_VALIDATOR)

    async def list(self) -> Render:
        async def authors():
            return await self.repositories.authors.find(sort=[("family_name", ASCENDING)])

        return await self.pipeline.list_view("author_list", "Author List", "author_list", authors)

    def _books_by(self, author_id: str, projection=None):
        async def books():
            return await self.repositories.books.find({"author": author_id}, projection=projection)
        return books

    async def detail(self, author_id: str) -> Render:
        return await self.pipeline.detail_view(
            "author_detail",
            "Author Detail",
            author_id,
            related={"author_books": self._books_by(author_id, projection=["title", "summary"])},
        )

    async def create_get(self) -> Render:
        return await self.pipeline.form_view(self.form, "Create Author")

    async def create_post(self, body: Mapping[str, Any]) -> Outcome:
        return await self.pipeline.create_submit(self.form, "Create Author", body)

    async def delete_get(self, author_id: str) -> Outcome:
        return await self.pipeline.delete_view(
            "author_delete", "Delete Author", author_id,
            dependents={"author_books": self._books_by(author_id)},
            remove=False,
        )

    async def delete_post(self, author_id: str) -> Outcome:
        return await self.pipeline.delete_view(
            "author_delete", "Delete Author", author_id,
            dependents={"author_books": self._books_by(author_id)},
            remove=True,
        )

    async def update_get(self, author_id: str) -> Outcome:
        return self.pipeline.not_supported("author_update_get")

    async def update_post(self, author_id: str, body: Mapping[str, Any]) -> Outcome:
        return self.pipeline.not_supported("author_update_post")
