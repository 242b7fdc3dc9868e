"""
Unit tests for the MongoDB repositories.
Motor collections and cursors are replaced by mocks.
"""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import ConnectionFailure

from catalog.models import Author, Book, Genre
from catalog.repository import (
    AuthorRepository, BookInstanceRepository, BookRepository, CatalogRepositories,
    GenreRepository, decode_document, to_object_id
)


def make_collection(documents=None):
    """Mock collection whose find() cursor yields ``documents``."""
    collection = MagicMock()
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(documents or []))
    collection.find.return_value = cursor
    collection.find_one = AsyncMock(return_value=None)
    collection.count_documents = AsyncMock(return_value=0)
    collection.insert_one = AsyncMock()
    collection.replace_one = AsyncMock()
    collection.delete_one = AsyncMock()
    return collection


def make_database(**collections):
    database = MagicMock()
    database.__getitem__.side_effect = lambda name: collections.setdefault(name, make_collection())
    return database


class TestHelpers:
    """Test cases for identity conversion helpers."""

    def test_to_object_id(self):
        oid = ObjectId()
        assert to_object_id(str(oid)) == oid
        assert to_object_id("not-an-id") == "not-an-id"
        assert to_object_id(None) is None

    def test_decode_document(self):
        oid, author_id, genre_id = ObjectId(), ObjectId(), ObjectId()
        decoded = decode_document({
            "_id": oid, "title": "Dune", "author": author_id, "genre": [genre_id]
        })
        assert decoded == {
            "id": str(oid), "title": "Dune", "author": str(author_id), "genre": [str(genre_id)]
        }


class TestDocumentRepository:
    """Test cases for the generic repository operations."""

    @pytest.mark.asyncio
    async def test_find_applies_default_sort(self):
        oid = ObjectId()
        authors = make_collection([{"_id": oid, "first_name": "Ann", "family_name": "Leckie"}])
        repository = AuthorRepository(make_database(authors=authors))

        records = await repository.find()

        authors.find.assert_called_once_with({}, None)
        authors.find.return_value.sort.assert_called_once_with([("family_name", 1)])
        assert records == [Author(id=str(oid), first_name="Ann", family_name="Leckie")]

    @pytest.mark.asyncio
    async def test_find_converts_reference_filters(self):
        author_id = ObjectId()
        books = make_collection()
        repository = BookRepository(make_database(books=books))

        await repository.find({"author": str(author_id)}, projection=["title", "summary"])

        books.find.assert_called_once_with({"author": author_id}, ["title", "summary"])

    @pytest.mark.asyncio
    async def test_find_with_projection_returns_partial_records(self):
        oid = ObjectId()
        books = make_collection([{"_id": oid, "title": "Dune"}])
        repository = BookRepository(make_database(books=books))

        records = await repository.find(projection=["title"])

        assert records[0].id == str(oid)
        assert records[0].title == "Dune"

    @pytest.mark.asyncio
    async def test_find_populates_references(self):
        book_id, author_id, genre_id, missing_genre = ObjectId(), ObjectId(), ObjectId(), ObjectId()
        books = make_collection([{
            "_id": book_id, "title": "Dune", "summary": "Spice.", "isbn": "123",
            "author": author_id, "genre": [genre_id, missing_genre],
        }])
        authors = make_collection([{"_id": author_id, "first_name": "Frank", "family_name": "Herbert"}])
        genres = make_collection([{"_id": genre_id, "name": "Science Fiction"}])
        repository = BookRepository(make_database(books=books, authors=authors, genres=genres))

        records = await repository.find(populate=["author", "genre"])

        book = records[0]
        assert isinstance(book.author, Author)
        assert book.author.name == "Herbert, Frank"
        assert book.genre == [Genre(id=str(genre_id), name="Science Fiction")]
        authors.find.assert_called_once_with({"_id": {"$in": [author_id]}})

    @pytest.mark.asyncio
    async def test_populate_rejects_unknown_field(self):
        books = make_collection([{"_id": ObjectId(), "title": "Dune", "summary": "", "isbn": "", "author": ObjectId()}])
        repository = BookRepository(make_database(books=books))

        with pytest.raises(ValueError):
            await repository.find(populate=["publisher"])

    @pytest.mark.asyncio
    async def test_find_by_id_malformed_id_is_absent(self):
        authors = make_collection()
        repository = AuthorRepository(make_database(authors=authors))

        assert await repository.find_by_id("not-an-object-id") is None
        authors.find_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_find_by_id(self):
        oid = ObjectId()
        authors = make_collection()
        authors.find_one.return_value = {
            "_id": oid, "first_name": "Ann", "family_name": "Leckie", "date_of_birth": datetime(1966, 3, 2)
        }
        repository = AuthorRepository(make_database(authors=authors))

        author = await repository.find_by_id(str(oid))

        authors.find_one.assert_called_once_with({"_id": oid})
        assert author.id == str(oid)
        assert author.date_of_birth == datetime(1966, 3, 2)

    @pytest.mark.asyncio
    async def test_find_by_id_not_found(self):
        repository = AuthorRepository(make_database(authors=make_collection()))
        assert await repository.find_by_id(str(ObjectId())) is None

    @pytest.mark.asyncio
    async def test_find_one(self):
        oid = ObjectId()
        genres = make_collection()
        genres.find_one.return_value = {"_id": oid, "name": "Fantasy"}
        repository = GenreRepository(make_database(genres=genres))

        genre = await repository.find_one({"name": "Fantasy"})

        genres.find_one.assert_called_once_with({"name": "Fantasy"})
        assert genre == Genre(id=str(oid), name="Fantasy")

    @pytest.mark.asyncio
    async def test_count_documents(self):
        instances = make_collection()
        instances.count_documents.return_value = 4
        repository = BookInstanceRepository(make_database(bookinstances=instances))

        assert await repository.count_documents({"status": "Available"}) == 4
        instances.count_documents.assert_called_once_with({"status": "Available"})

    @pytest.mark.asyncio
    async def test_save_stores_references_as_object_ids(self):
        new_id, author_id, genre_id = ObjectId(), ObjectId(), ObjectId()
        books = make_collection()
        books.insert_one.return_value = MagicMock(inserted_id=new_id)
        repository = BookRepository(make_database(books=books))
        book = Book(title="Dune", summary="Spice.", isbn="123", author=str(author_id), genre=[str(genre_id)])

        saved = await repository.save(book)

        books.insert_one.assert_called_once_with({
            "title": "Dune", "summary": "Spice.", "isbn": "123",
            "author": author_id, "genre": [genre_id],
        })
        assert saved.id == str(new_id)
        assert saved.url == f"/catalog/book/{new_id}"
        assert book.id is None

    @pytest.mark.asyncio
    async def test_save_unwraps_populated_references(self):
        author_id = ObjectId()
        books = make_collection()
        books.insert_one.return_value = MagicMock(inserted_id=ObjectId())
        repository = BookRepository(make_database(books=books))
        author = Author(id=str(author_id), first_name="Frank", family_name="Herbert")

        await repository.save(Book(title="Dune", summary="", isbn="", author=author))

        document = books.insert_one.call_args.args[0]
        assert document["author"] == author_id
        assert document["genre"] == []

    @pytest.mark.asyncio
    async def test_find_by_id_and_update(self):
        oid = ObjectId()
        genres = make_collection()
        genres.replace_one.return_value = MagicMock(matched_count=1)
        repository = GenreRepository(make_database(genres=genres))

        assert await repository.find_by_id_and_update(str(oid), Genre(id=str(oid), name="Horror")) is True
        genres.replace_one.assert_called_once_with({"_id": oid}, {"name": "Horror"})

    @pytest.mark.asyncio
    async def test_find_by_id_and_update_missing(self):
        genres = make_collection()
        genres.replace_one.return_value = MagicMock(matched_count=0)
        repository = GenreRepository(make_database(genres=genres))

        assert await repository.find_by_id_and_update(str(ObjectId()), Genre(name="Horror")) is False
        assert await repository.find_by_id_and_update("bad-id", Genre(name="Horror")) is False

    @pytest.mark.asyncio
    async def test_find_by_id_and_remove(self):
        oid = ObjectId()
        authors = make_collection()
        authors.delete_one.return_value = MagicMock(deleted_count=1)
        repository = AuthorRepository(make_database(authors=authors))

        assert await repository.find_by_id_and_remove(str(oid)) is True
        authors.delete_one.assert_called_once_with({"_id": oid})

    @pytest.mark.asyncio
    async def test_find_by_id_and_remove_missing(self):
        authors = make_collection()
        authors.delete_one.return_value = MagicMock(deleted_count=0)
        repository = AuthorRepository(make_database(authors=authors))

        assert await repository.find_by_id_and_remove(str(ObjectId())) is False

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self):
        authors = make_collection()
        authors.find_one.side_effect = ConnectionFailure("connection refused")
        repository = AuthorRepository(make_database(authors=authors))

        with pytest.raises(ConnectionFailure):
            await repository.find_by_id(str(ObjectId()))


class TestCatalogRepositories:
    """Test cases for the repository bundle."""

    def test_from_database(self):
        database = make_database()
        repositories = CatalogRepositories.from_database(database)

        assert isinstance(repositories.authors, AuthorRepository)
        assert isinstance(repositories.books, BookRepository)
        assert isinstance(repositories.genres, GenreRepository)
        assert isinstance(repositories.book_instances, BookInstanceRepository)
        assert repositories.book_instances.collection_name == "bookinstances"
