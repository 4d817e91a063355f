"""Pytest configuration and fixtures."""

import pytest
from pathlib import Path

from winzig.gateway import ChangeNotifier, DataGateway
from winzig.store.database import Database
from winzig.store.resources import MappingScriptSource

from tests.fakes import NOTES_AUTHORITY, NOTES_SCHEMA


@pytest.fixture
def test_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path for tests."""
    return tmp_path / "test.db"


@pytest.fixture
def notes_source() -> MappingScriptSource:
    """Provide an in-memory script source with the notes schema."""
    return MappingScriptSource({"create_schema": NOTES_SCHEMA})


@pytest.fixture
def db(test_db_path: Path, notes_source: MappingScriptSource) -> Database:
    """Provide a connected database instance with the notes schema."""
    database = Database(test_db_path, source=notes_source)
    database.connect()
    yield database
    database.close()


@pytest.fixture
def notifier() -> ChangeNotifier:
    """Provide a ChangeNotifier instance."""
    return ChangeNotifier()


@pytest.fixture
def gateway(db: Database, notifier: ChangeNotifier) -> DataGateway:
    """Provide a DataGateway over the notes database."""
    return DataGateway(db, NOTES_AUTHORITY, notifier=notifier)
