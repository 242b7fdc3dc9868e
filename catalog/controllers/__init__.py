"""
Request handlers, one controller per entity.
"""

from catalog.repository import CatalogRepositories

from .author import AuthorController
from .book import BookController
from .bookinstance import BookInstanceController
from .genre import GenreController
from .home import HomeController


class CatalogControllers:
    """All controllers wired to one set of repositories."""

    def __init__(self, repositories: CatalogRepositories):
        self.repositories = repositories
        self.home = HomeController(repositories)
        self.authors = AuthorController(repositories)
        self.books = BookController(repositories)
        self.genres = GenreController(repositories)
        self.book_instances = BookInstanceController(repositories)


__all__ = [
    "AuthorController",
    "BookController",
    "BookInstanceController",
    "CatalogControllers",
    "GenreController",
    "HomeController",
]
