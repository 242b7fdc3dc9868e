"""
Tests for environment-driven configuration.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from utilities.config import CatalogConfig


def test_defaults(monkeypatch):
    for name in ("MONGODB_DATABASE", "DEBUG", "LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    config = CatalogConfig(_env_file=None)
    assert config.mongodb_database == "local_library"
    assert config.get_log_file_path() is None
    assert config.debug is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MONGODB_URL", "mongodb://db:27017")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FILE", "logs/library.log")

    config = CatalogConfig(_env_file=None)

    assert config.mongodb_url == "mongodb://db:27017"
    assert config.log_level == "DEBUG"
    assert config.get_log_file_path() == Path("logs/library.log")


@pytest.mark.parametrize("field,value", [
    ("log_level", "LOUD"),
    ("log_format", "xml"),
    ("mongodb_database", "local library"),
])
def test_invalid_values(field, value):
    with pytest.raises(ValidationError):
        CatalogConfig(_env_file=None, **{field: value})
