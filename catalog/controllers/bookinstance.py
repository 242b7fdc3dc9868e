"""
BookInstance (physical copy) handlers.
"""

from typing import Any, Dict, Mapping

from catalog.models import Book, BookInstance, BookInstanceStatus, reference_id
from catalog.pipeline import EntityForm, Outcome, Render, RequestPipeline
from catalog.repository import CatalogRepositories
from catalog.validation import FormValidator, check, sanitize

BOOK_INSTANCE_VALIDATOR = FormValidator(
    check("book", "Book must be specified").trim().is_length(min=1),
    check("imprint", "Imprint must be specified").trim().is_length(min=1),
    check("due_back", "Invalid date").optional(check_falsy=True).is_iso8601(),
    check("status", "Invalid status").trim().optional(check_falsy=True)
    .is_in([status.value for status in BookInstanceStatus]),
    sanitize("due_back").to_date(),
)


def copy_title(context: Dict[str, Any]) -> str:
    book = context["bookinstance"].book
    return "Copy: " + (book.title if isinstance(book, Book) else "Unknown book")


def mark_selected(context: Dict[str, Any]) -> None:
    """Expose the id of the copy's book so the form can preselect it."""
    instance = context.get("bookinstance")
    context["selected_book"] = reference_id(getattr(instance, "book", None)) if instance else None
    context["statuses"] = [status.value for status in BookInstanceStatus]


class BookInstanceController:
    """Handlers for /catalog/bookinstance(s)."""

    def __init__(self, repositories: CatalogRepositories):
        self.repositories = repositories
        self.pipeline = RequestPipeline("bookinstance", repositories.book_instances, "/catalog/bookinstances")

        async def book_list():
            return await repositories.books.find(projection=["title"])

        self.form = EntityForm(
            "bookinstance_form",
            BookInstance,
            BOOK_INSTANCE_VALIDATOR,
            references={"book_list": book_list},
            decorate=mark_selected,
        )

    async def list(self) -> Render:
        async def book_instances():
            return await self.repositories.book_instances.find(populate=["book"])

        return await self.pipeline.list_view(
            "bookinstance_list", "Book Instance List", "bookinstance_list", book_instances
        )

    async def detail(self, instance_id: str) -> Render:
        return await self.pipeline.detail_view(
            "bookinstance_detail", copy_title, instance_id, populate=["book"]
        )

    async def create_get(self) -> Render:
        return await self.pipeline.form_view(self.form, "Create BookInstance")

    async def create_post(self, body: Mapping[str, Any]) -> Outcome:
        return await self.pipeline.create_submit(self.form, "Create BookInstance", body)

    async def delete_get(self, instance_id: str) -> Outcome:
        return self.pipeline.not_supported("bookinstance_delete_get")

    async def delete_post(self, instance_id: str) -> Outcome:
        return self.pipeline.not_supported("bookinstance_delete_post")

    async def update_get(self, instance_id: str) -> Outcome:
        return self.pipeline.not_supported("bookinstance_update_get")

    async def update_post(self, instance_id: str, body: Mapping[str, Any]) -> Outcome:
        return self.pipeline.not_supported("bookinstance_update_post")
