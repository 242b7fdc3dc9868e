"""
Exceptions surfaced by the request pipeline to the web layer.
"""

from typing import Optional


class CatalogError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(CatalogError):
    """A detail, delete or update target does not exist."""

    status_code = 404
