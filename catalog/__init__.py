"""
Local library catalog.

This package contains:
- Entity models (Author, Book, Genre, BookInstance)
- MongoDB connection management and per-entity repositories
- Form validation and sanitization chains
- The parallel fetch coordinator and the generic request pipeline
- One controller per entity
"""

__version__ = "1.0.0"
