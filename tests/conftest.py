"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import pytest
from bson import ObjectId

from catalog.controllers import CatalogControllers
from catalog.models import Author, Book, BookInstance, BookInstanceStatus, CatalogRecord, Genre, reference_id
from catalog.repository import CatalogRepositories


class InMemoryRepository:
    """
    Test double for DocumentRepository keeping records in a dict.

    Every write is appended to ``writes`` as (operation, record_id).
    """

    def __init__(self, model, default_sort: Optional[str] = None, references: Optional[Dict[str, "InMemoryRepository"]] = None):
        self.model = model
        self.default_sort = default_sort
        self.references = references or {}
        self.records: Dict[str, CatalogRecord] = {}
        self.writes: List[tuple] = []

    def add(self, record: CatalogRecord) -> CatalogRecord:
        """Seed a record without counting it as a write."""
        stored = record.model_copy(update={"id": record.id or str(ObjectId())})
        self.records[stored.id] = stored
        return stored

    @staticmethod
    def _matches(record: CatalogRecord, filter_query: Dict[str, Any]) -> bool:
        for key, value in filter_query.items():
            if key == "id":
                if record.id != value:
                    return False
                continue
            actual = getattr(record, key, None)
            if isinstance(actual, list):
                if value not in [reference_id(item) for item in actual]:
                    return False
            elif reference_id(actual) != value:
                return False
        return True

    def _populate(self, record: CatalogRecord, fields: Sequence[str]) -> CatalogRecord:
        updates = {}
        for field in fields:
            target = self.references[field]
            value = getattr(record, field)
            if isinstance(value, list):
                updates[field] = [target.records[v] for v in value if v in target.records]
            else:
                updates[field] = target.records.get(value, value)
        return record.model_copy(update=updates)

    async def find(self, filter_query=None, projection=None, sort=None, populate=()):
        records = [r for r in self.records.values() if self._matches(r, filter_query or {})]
        sort_key = sort[0][0] if sort else self.default_sort
        if sort_key:
            records.sort(key=lambda r: getattr(r, sort_key))
        return [self._populate(r, populate) for r in records]

    async def find_by_id(self, record_id, populate=()):
        record = self.records.get(record_id)
        if record is None:
            return None
        return self._populate(record, populate)

    async def find_one(self, filter_query):
        for record in self.records.values():
            if self._matches(record, filter_query):
                return record
        return None

    async def count_documents(self, filter_query=None):
        return len([r for r in self.records.values() if self._matches(r, filter_query or {})])

    async def save(self, record):
        saved = record.model_copy(update={"id": str(ObjectId())})
        self.records[saved.id] = saved
        self.writes.append(("save", saved.id))
        return saved

    async def find_by_id_and_update(self, record_id, record):
        if record_id not in self.records:
            return False
        self.records[record_id] = record.model_copy(update={"id": record_id})
        self.writes.append(("update", record_id))
        return True

    async def find_by_id_and_remove(self, record_id):
        if self.records.pop(record_id, None) is None:
            return False
        self.writes.append(("remove", record_id))
        return True


def total_writes(repositories: CatalogRepositories) -> int:
    return sum(
        len(repo.writes)
        for repo in (repositories.authors, repositories.books, repositories.genres, repositories.book_instances)
    )


@pytest.fixture
def repositories():
    """Four in-memory repositories wired like the MongoDB ones."""
    authors = InMemoryRepository(Author, default_sort="family_name")
    genres = InMemoryRepository(Genre, default_sort="name")
    books = InMemoryRepository(Book, default_sort="title", references={"author": authors, "genre": genres})
    book_instances = InMemoryRepository(BookInstance, references={"book": books})
    return CatalogRepositories(authors=authors, books=books, genres=genres, book_instances=book_instances)


@pytest.fixture
def controllers(repositories):
    return CatalogControllers(repositories)


@pytest.fixture
def sample_author(repositories):
    return repositories.authors.add(Author(
        first_name="Patrick",
        family_name="Rothfuss",
        date_of_birth=datetime(1973, 6, 6),
    ))


@pytest.fixture
def sample_genres(repositories):
    return [
        repositories.genres.add(Genre(name="Fantasy")),
        repositories.genres.add(Genre(name="Poetry")),
    ]


@pytest.fixture
def sample_book(repositories, sample_author, sample_genres):
    return repositories.books.add(Book(
        title="The Name of the Wind",
        summary="A young man grows to be the most notorious magician.",
        isbn="9781473211896",
        author=sample_author.id,
        genre=[sample_genres[0].id],
    ))


@pytest.fixture
def sample_instance(repositories, sample_book):
    return repositories.book_instances.add(BookInstance(
        book=sample_book.id,
        imprint="Gollancz, 2011.",
        status=BookInstanceStatus.AVAILABLE.value,
    ))
