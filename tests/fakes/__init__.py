"""Test fakes and shared test models.

This module provides:
- Entity classes matching the notes schema used across the tests
- A recording EntityStore (for testing Entity CRUD without a database)

Example:
    from tests.fakes import Note, RecordingEntityStore

    store = RecordingEntityStore()
    Note(title="Hello").create(store)
    assert store.calls[0][0] == "insert"
"""

from .entities import (
    NOTES_AUTHORITY,
    NOTES_SCHEMA,
    SAMPLES_SCHEMA,
    Note,
    Priority,
    Sample,
    Tag,
)
from .stores import FakeRowCursor, RecordingEntityStore

__all__ = [
    # Models
    "NOTES_AUTHORITY",
    "NOTES_SCHEMA",
    "Note",
    "Priority",
    "SAMPLES_SCHEMA",
    "Sample",
    "Tag",
    # Store fakes
    "RecordingEntityStore",
    "FakeRowCursor",
]
