"""
Web application configuration settings.
"""

from pathlib import Path

from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """Web application configuration settings."""

    # Application Settings
    api_title: str = "Local Library"
    api_version: str = "1.0.0"
    api_description: str = "Catalog of authors, books, genres and book copies"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Views
    templates_directory: str = str(Path(__file__).parent / "templates")

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore extra fields from .env
    }


# Global config instance
config = APIConfig()
