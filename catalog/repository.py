"""
Per-entity repositories over MongoDB collections.
Each repository exposes the same find/insert/update/delete-by-id contract and
can inline referenced records ("populate") for display.
"""

from typing import Any, ClassVar, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from .models import Author, Book, BookInstance, CatalogRecord, Genre, reference_id

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=CatalogRecord)

SortSpec = List[Tuple[str, int]]

ASCENDING = 1


def to_object_id(value: Any) -> Any:
    """Convert a hex string identity to an ObjectId, leaving anything else untouched."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def decode_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Turn a raw MongoDB document into model fields.

    ``_id`` becomes ``id`` and every ObjectId (single or in a list) becomes
    its hex string.
    """
    decoded = {}
    for key, value in document.items():
        if key == "_id":
            decoded["id"] = str(value)
        elif isinstance(value, ObjectId):
            decoded[key] = str(value)
        elif isinstance(value, list):
            decoded[key] = [str(v) if isinstance(v, ObjectId) else v for v in value]
        else:
            decoded[key] = value
    return decoded


class DocumentRepository(Generic[RecordT]):
    """
    Async CRUD access to one collection.

    Subclasses set ``collection_name`` and ``model``, an optional
    ``default_sort``, and ``references``: a mapping from reference field to
    the (collection name, model) it points at.
    """

    collection_name: ClassVar[str]
    model: ClassVar[Type[CatalogRecord]]
    default_sort: ClassVar[Optional[SortSpec]] = None
    references: ClassVar[Dict[str, Tuple[str, Type[CatalogRecord]]]] = {}

    def __init__(self, database: AsyncIOMotorDatabase):
        self.database = database
        self.collection = database[self.collection_name]

    def _prepare_filter(self, filter_query: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Map ``id`` to ``_id`` and string identities on reference fields to ObjectIds."""
        prepared = {}
        for key, value in (filter_query or {}).items():
            if key in ("id", "_id"):
                prepared["_id"] = to_object_id(value)
            elif key in self.references:
                prepared[key] = to_object_id(value)
            else:
                prepared[key] = value
        return prepared

    def _to_document(self, record: CatalogRecord) -> Dict[str, Any]:
        """Serialize a record for storage; references are stored as ObjectIds."""
        document = record.model_dump(exclude={"id", *self.references})
        for field in self.references:
            value = getattr(record, field)
            if isinstance(value, list):
                document[field] = [to_object_id(reference_id(v)) for v in value]
            else:
                document[field] = to_object_id(reference_id(value))
        return document

    def _to_record(self, document: Dict[str, Any], partial: bool = False) -> RecordT:
        """Build a model from decoded fields; projected documents skip validation."""
        if partial:
            return self.model.model_construct(**document)
        return self.model(**document)

    async def _populate(self, documents: List[Dict[str, Any]], fields: Iterable[str]) -> None:
        """
        Replace reference identities with the referenced records, in place.

        One query per field. A dangling single reference keeps its identity;
        dangling entries of a list reference are dropped.
        """
        for field in fields:
            if field not in self.references:
                raise ValueError(f"{field!r} is not a reference field of {self.collection_name}")
            target_collection, target_model = self.references[field]

            wanted = set()
            for document in documents:
                value = document.get(field)
                if isinstance(value, list):
                    wanted.update(value)
                elif value is not None:
                    wanted.add(value)
            if not wanted:
                continue

            cursor = self.database[target_collection].find(
                {"_id": {"$in": [to_object_id(v) for v in wanted]}}
            )
            found = {}
            for raw in await cursor.to_list(length=None):
                target = decode_document(raw)
                found[target["id"]] = target_model(**target)

            for document in documents:
                value = document.get(field)
                if isinstance(value, list):
                    document[field] = [found[v] for v in value if v in found]
                elif value is not None:
                    document[field] = found.get(value, value)

    async def find(
        self,
        filter_query: Optional[Dict[str, Any]] = None,
        projection: Optional[Sequence[str]] = None,
        sort: Optional[SortSpec] = None,
        populate: Sequence[str] = (),
    ) -> List[RecordT]:
        """
        Find records matching a filter.

        Args:
            filter_query: MongoDB filter; ``id`` and reference fields accept hex strings
            projection: Field names to load; records are then partial
            sort: List of (field, direction) pairs, defaults to ``default_sort``
            populate: Reference fields to replace with the referenced records

        Returns:
            List of records
        """
        try:
            cursor = self.collection.find(
                self._prepare_filter(filter_query),
                list(projection) if projection else None,
            )
            sort = sort or self.default_sort
            if sort:
                cursor = cursor.sort(sort)

            documents = [decode_document(raw) for raw in await cursor.to_list(length=None)]
            if populate:
                await self._populate(documents, populate)

            return [self._to_record(document, partial=bool(projection)) for document in documents]

        except Exception as e:
            logger.error("Failed to find records", collection=self.collection_name, error=str(e))
            raise

    async def find_by_id(self, record_id: str, populate: Sequence[str] = ()) -> Optional[RecordT]:
        """
        Get a record by identity.

        Args:
            record_id: Hex string identity
            populate: Reference fields to replace with the referenced records

        Returns:
            The record, or None if it does not exist or the identity is malformed
        """
        if not ObjectId.is_valid(record_id):
            return None
        try:
            raw = await self.collection.find_one({"_id": ObjectId(record_id)})
            if raw is None:
                return None

            document = decode_document(raw)
            if populate:
                await self._populate([document], populate)
            return self._to_record(document)

        except Exception as e:
            logger.error("Failed to get record by ID", collection=self.collection_name,
                         record_id=record_id, error=str(e))
            raise

    async def find_one(self, filter_query: Dict[str, Any]) -> Optional[RecordT]:
        """Get the first record matching a filter, or None."""
        try:
            raw = await self.collection.find_one(self._prepare_filter(filter_query))
            if raw is None:
                return None
            return self._to_record(decode_document(raw))

        except Exception as e:
            logger.error("Failed to find record", collection=self.collection_name, error=str(e))
            raise

    async def count_documents(self, filter_query: Optional[Dict[str, Any]] = None) -> int:
        """Count records matching a filter."""
        try:
            return await self.collection.count_documents(self._prepare_filter(filter_query))
        except Exception as e:
            logger.error("Failed to count records", collection=self.collection_name, error=str(e))
            raise

    async def save(self, record: RecordT) -> RecordT:
        """
        Insert a new record.

        Returns:
            A copy of the record carrying its new identity
        """
        try:
            result = await self.collection.insert_one(self._to_document(record))
            saved = record.model_copy(update={"id": str(result.inserted_id)})
            logger.debug("Successfully inserted record", collection=self.collection_name, record_id=saved.id)
            return saved

        except Exception as e:
            logger.error("Failed to insert record", collection=self.collection_name, error=str(e))
            raise

    async def find_by_id_and_update(self, record_id: str, record: RecordT) -> bool:
        """
        Replace a stored record with ``record``.

        Returns:
            bool: True if the record existed, False otherwise
        """
        if not ObjectId.is_valid(record_id):
            return False
        try:
            result = await self.collection.replace_one(
                {"_id": ObjectId(record_id)},
                self._to_document(record)
            )
            if result.matched_count > 0:
                logger.debug("Successfully updated record", collection=self.collection_name, record_id=record_id)
                return True
            logger.warning("Record not found for update", collection=self.collection_name, record_id=record_id)
            return False

        except Exception as e:
            logger.error("Failed to update record", collection=self.collection_name,
                         record_id=record_id, error=str(e))
            raise

    async def find_by_id_and_remove(self, record_id: str) -> bool:
        """
        Delete a record by identity.

        Returns:
            bool: True if deleted, False if not found
        """
        if not ObjectId.is_valid(record_id):
            return False
        try:
            result = await self.collection.delete_one({"_id": ObjectId(record_id)})
            if result.deleted_count > 0:
                logger.debug("Successfully deleted record", collection=self.collection_name, record_id=record_id)
                return True
            logger.warning("Record not found for deletion", collection=self.collection_name, record_id=record_id)
            return False

        except Exception as e:
            logger.error("Failed to delete record", collection=self.collection_name,
                         record_id=record_id, error=str(e))
            raise


class AuthorRepository(DocumentRepository[Author]):
    collection_name = "authors"
    model = Author
    default_sort = [("family_name", ASCENDING)]


class GenreRepository(DocumentRepository[Genre]):
    collection_name = "genres"
    model = Genre
    default_sort = [("name", ASCENDING)]


class BookRepository(DocumentRepository[Book]):
    collection_name = "books"
    model = Book
    default_sort = [("title", ASCENDING)]
    references = {
        "author": ("authors", Author),
        "genre": ("genres", Genre),
    }


class BookInstanceRepository(DocumentRepository[BookInstance]):
    collection_name = "bookinstances"
    model = BookInstance
    references = {
        "book": ("books", Book),
    }


class CatalogRepositories:
    """The four entity repositories sharing one database handle."""

    def __init__(
        self,
        authors: DocumentRepository,
        books: DocumentRepository,
        genres: DocumentRepository,
        book_instances: DocumentRepository,
    ):
        self.authors = authors
        self.books = books
        self.genres = genres
        self.book_instances = book_instances

    @classmethod
    def from_database(cls, database: AsyncIOMotorDatabase) -> "CatalogRepositories":
        return cls(
            authors=AuthorRepository(database),
            books=BookRepository(database),
            genres=GenreRepository(database),
            book_instances=BookInstanceRepository(database),
        )
