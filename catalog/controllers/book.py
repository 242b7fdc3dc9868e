"""
Book handlers.
"""

from typing import Any, Dict, Mapping

from catalog.models import Book, reference_id
from catalog.pipeline import EntityForm, Outcome, Render, RequestPipeline
from catalog.repository import CatalogRepositories
from catalog.validation import FormValidator, check, sanitize

BOOK_VALIDATOR = FormValidator(
    # A single checked box arrives as a scalar, none at all as a missing field
    sanitize("genre").to_list(),
    check("title", "Title must not be empty.").trim().is_length(min=1),
    check("author", "Author must not be empty.").trim().is_length(min=1),
    check("summary", "Summary must not be empty.").trim().is_length(min=1),
    check("isbn", "ISBN must not be empty").trim().is_length(min=1),
)


def mark_selected(context: Dict[str, Any]) -> None:
    """Expose the ids of the book's author and genres so the form can preselect them."""
    book = context.get("book")
    if book is None:
        context["selected_author"] = None
        context["selected_genres"] = []
        return
    context["selected_author"] = reference_id(getattr(book, "author", None))
    context["selected_genres"] = book.genre_ids


class BookController:
    """Handlers for /catalog/book(s)."""

    def __init__(self, repositories: CatalogRepositories):
        self.repositories = repositories
        self.pipeline = RequestPipeline("book", repositories.books, "/catalog/books")
        self.form = EntityForm(
            "book_form",
            Book,
            BOOK_VALIDATOR,
            references={
                "authors": repositories.authors.find,
                "genres": repositories.genres.find,
            },
            decorate=mark_selected,
        )

    async def list(self) -> Render:
        async def books():
            return await self.repositories.books.find(projection=["title", "author"], populate=["author"])

        return await self.pipeline.list_view("book_list", "Book List", "book_list", books)

    def _instances_of(self, book_id: str):
        async def book_instances():
            return await self.repositories.book_instances.find({"book": book_id})
        return book_instances

    async def detail(self, book_id: str) -> Render:
        return await self.pipeline.detail_view(
            "book_detail",
            lambda context: context["book"].title,
            book_id,
            related={"book_instances": self._instances_of(book_id)},
            populate=["author", "genre"],
        )

    async def create_get(self) -> Render:
        return await self.pipeline.form_view(self.form, "Create Book")

    async def create_post(self, body: Mapping[str, Any]) -> Outcome:
        return await self.pipeline.create_submit(self.form, "Create Book", body)

    async def delete_get(self, book_id: str) -> Outcome:
        return await self.pipeline.delete_view(
            "book_delete", "Delete Book", book_id,
            dependents={"book_instances": self._instances_of(book_id)},
            remove=False,
        )

    async def delete_post(self, book_id: str) -> Outcome:
        return await self.pipeline.delete_view(
            "book_delete", "Delete Book", book_id,
            dependents={"book_instances": self._instances_of(book_id)},
            remove=True,
        )

    async def update_get(self, book_id: str) -> Outcome:
        return await self.pipeline.form_view(self.form, "Update Book", record_id=book_id)

    async def update_post(self, book_id: str, body: Mapping[str, Any]) -> Outcome:
        return await self.pipeline.update_submit(self.form, "Update Book", book_id, body)
