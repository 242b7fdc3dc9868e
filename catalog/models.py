"""
Pydantic models for catalog records.
Implements the Author, Genre, Book and BookInstance schemas with their display helpers.
"""

from datetime import datetime
from enum import Enum
from typing import ClassVar, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class BookInstanceStatus(str, Enum):
    """Enum for the circulation status of a physical copy."""
    AVAILABLE = "Available"
    MAINTENANCE = "Maintenance"
    LOANED = "Loaned"
    RESERVED = "Reserved"


def format_date(value: Optional[datetime]) -> str:
    """Render an optional date as YYYY-MM-DD, or an empty string."""
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d")


class CatalogRecord(BaseModel):
    """
    Base class for every persisted record.

    The identity is the MongoDB ObjectId rendered as a hex string; it is
    None until the record has been saved.
    """
    id: Optional[str] = Field(None, description="Document identifier")

    url_segment: ClassVar[str] = ""

    @property
    def url(self) -> str:
        """Detail page URL for this record."""
        return f"/catalog/{self.url_segment}/{self.id}"


class Author(CatalogRecord):
    """Author of one or more books."""
    first_name: str = Field(..., max_length=100, description="Given name")
    family_name: str = Field(..., max_length=100, description="Family name")
    date_of_birth: Optional[datetime] = Field(None, description="Date of birth")
    date_of_death: Optional[datetime] = Field(None, description="Date of death")

    url_segment: ClassVar[str] = "author"

    @property
    def name(self) -> str:
        """Full name, family name first."""
        return f"{self.family_name}, {self.first_name}"

    @property
    def lifespan(self) -> str:
        """Birth and death dates joined for display; unknown dates are left blank."""
        return f"{format_date(self.date_of_birth)} - {format_date(self.date_of_death)}"


class Genre(CatalogRecord):
    """Book category."""
    name: str = Field(..., max_length=100, description="Genre name")

    url_segment: ClassVar[str] = "genre"


class Book(CatalogRecord):
    """
    Book title.

    ``author`` and ``genre`` hold identities, or the full referenced records
    once they have been populated.
    """
    title: str = Field(..., description="Book title")
    summary: str = Field(..., description="Short summary")
    isbn: str = Field(..., description="ISBN")
    author: Union[Author, str] = Field(..., description="Author reference")
    genre: List[Union[Genre, str]] = Field(default_factory=list, description="Genre references")

    url_segment: ClassVar[str] = "book"

    @property
    def genre_ids(self) -> List[str]:
        """Identities of the referenced genres, populated or not."""
        return [g.id if isinstance(g, Genre) else g for g in self.genre]


class BookInstance(CatalogRecord):
    """A physical copy of a book."""
    model_config = ConfigDict(use_enum_values=True)

    book: Union[Book, str] = Field(..., description="Book reference")
    imprint: str = Field(..., description="Publisher imprint")
    status: BookInstanceStatus = Field(default=BookInstanceStatus.MAINTENANCE.value, description="Circulation status")
    due_back: Optional[datetime] = Field(None, description="Date the copy is due back")

    url_segment: ClassVar[str] = "bookinstance"

    @property
    def due_back_formatted(self) -> str:
        """Due date for display."""
        if self.due_back is None:
            return ""
        return self.due_back.strftime("%b %d, %Y")


def reference_id(value: Union[CatalogRecord, str, None]) -> Optional[str]:
    """Identity held by a reference field, whether or not it was populated."""
    if isinstance(value, CatalogRecord):
        return value.id
    return value
