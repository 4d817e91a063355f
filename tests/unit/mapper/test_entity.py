"""Tests for the Entity base class."""

from datetime import datetime, timezone

import pytest
from loguru import logger

from winzig.core.exceptions import (
    CardinalityError,
    DatabaseError,
    EntityStateError,
    InvalidFieldValueError,
)
from winzig.mapper import Entity, combine_projections, decode_many, fields
from winzig.store.database import Database

from tests.fakes import SAMPLES_SCHEMA, Note, Priority, RecordingEntityStore, Sample, Tag

NOTE_COLUMNS = ["_id", "title", "body", "pinned", "priority", "score", "created_at", "data"]


class TestEntitySchema:
    """Tests for field collection and projections."""

    def test_identity_is_first_field(self):
        """The identity field should be at ordinal 0."""
        assert Note.fields()[0].name == "_id"
        assert Note.fields()[0].ordinal == 0

    def test_projection_in_declaration_order(self):
        """Projection should list identity then declared fields in order."""
        assert Note.projection() == NOTE_COLUMNS
        assert [f.ordinal for f in Note.fields()] == list(range(len(NOTE_COLUMNS)))

    def test_projection_with_prefix(self):
        """A prefix should qualify every column."""
        assert Tag.projection("t") == ["t._id", "t.note_id", "t.name"]

    def test_field_count(self):
        """field_count should match the projection length."""
        assert Note.field_count() == len(Note.projection())

    def test_subclass_inherits_fields(self):
        """A subclass should extend its parent's fields."""

        class PinnedNote(Note):
            reason = fields.string("reason")

        assert PinnedNote.projection() == NOTE_COLUMNS + ["reason"]
        assert PinnedNote.reason.ordinal == len(NOTE_COLUMNS)

    def test_duplicate_column_rejected(self):
        """Declaring the same column twice should fail."""
        with pytest.raises(TypeError):

            class Broken(Entity):
                first = fields.string("name")
                second = fields.string("name")

    def test_address(self):
        """Entities should know the address of their table and row."""
        note = Note()
        note.id = 7

        assert str(Note.base_address()) == "content://winzig.test/notes"
        assert str(note.address()) == "content://winzig.test/notes/7"

    def test_missing_table_name(self):
        """An entity without table should not produce a table name."""

        class Floating(Entity):
            name = fields.string("name")

        with pytest.raises(EntityStateError):
            Floating.table_name()


class TestEntityValues:
    """Tests for value handling."""

    def test_defaults(self):
        """A new entity should hold default values and no id."""
        note = Note()

        assert note.id is None
        assert note.title == ""
        assert note.body is None
        assert note.pinned is False
        assert note.priority is Priority.LOW

    def test_constructor_values(self):
        """Keyword arguments should set fields."""
        note = Note(title="Hello", pinned=True)

        assert note.title == "Hello"
        assert note.pinned is True

    def test_unknown_constructor_key(self):
        """Unknown keyword arguments should be rejected."""
        with pytest.raises(TypeError):
            Note(color="red")

    def test_invalid_assignment_rejected(self):
        """Assigning an invalid value should raise."""
        note = Note()

        with pytest.raises(InvalidFieldValueError):
            note.title = None

    def test_equality_and_unhashable(self):
        """Entities compare by value and cannot be hashed."""
        assert Note(title="a") == Note(title="a")
        assert Note(title="a") != Note(title="b")
        with pytest.raises(TypeError):
            hash(Note())

    def test_snapshot_is_hashable_and_independent(self):
        """Snapshots should be hashable and detached from the entity."""
        note = Note(title="a")
        snapshot = note.snapshot()

        note.title = "changed"

        assert {snapshot: 1}[Note(title="a").snapshot()] == 1
        assert snapshot.to_entity().title == "a"
        assert snapshot == Note(title="a").snapshot()

    def test_copy_is_independent(self):
        """copy() should not share state with the original."""
        note = Note(title="a")
        other = note.copy()

        other.title = "b"

        assert note.title == "a"

    def test_repr(self):
        """repr should list column values."""
        assert repr(Tag(note_id=3, name="x")) == "Tag{_id=None, note_id=3, name='x'}"


class TestEntityRows:
    """Tests for encode and decode."""

    def test_encode_includes_identity_first(self):
        """encode() should produce columns in projection order."""
        note = Note(title="a", pinned=True, priority=Priority.HIGH)

        values = note.encode()

        assert list(values) == NOTE_COLUMNS
        assert values["_id"] is None
        assert values["pinned"] == 1
        assert values["priority"] == "HIGH"
        assert values["created_at"] == 0

    def test_decode_round_trip(self):
        """Decoding an encoded row should give an equal entity."""
        note = Note(
            title="a",
            body="text",
            pinned=True,
            priority=Priority.HIGH,
            score=1.5,
            created_at=datetime(2024, 5, 6, 7, 8, 9, 123456, tzinfo=timezone.utc),
            data=b"\x01",
        )
        note.id = 4

        decoded = Note.from_row(tuple(note.encode().values()))

        assert decoded == note
        assert decoded.created_at.microsecond == 123000

    def test_null_round_trip(self):
        """NULL columns of nullable fields should survive a round trip."""
        note = Note(title="a")

        values = note.encode()
        decoded = Note.from_row(tuple(values.values()))

        assert values["body"] is None
        assert values["data"] is None
        assert decoded == note

    def test_decode_with_offset(self):
        """decode() should read from offset + ordinal."""
        row = ("ignored", 9, 1, "tag")

        tag = Tag().decode(row, offset=1)

        assert (tag.id, tag.note_id, tag.name) == (9, 1, "tag")

    def test_decode_stops_at_first_invalid_column(self):
        """Fields before an invalid column should be updated, later ones not."""
        tag = Tag(name="before")

        with pytest.raises(InvalidFieldValueError):
            tag.decode((5, None, "after"))

        assert tag.id == 5
        assert tag.name == "before"

    def test_decode_many_consecutive_ranges(self):
        """decode_many should read entities from consecutive column ranges."""
        row = (1, 10, "x", 2, 20, "y")
        first, second = Tag(), Tag()

        end = decode_many(row, first, second)

        assert end == 6
        assert (first.id, first.name) == (1, "x")
        assert (second.id, second.name) == (2, "y")

    def test_combine_projections(self):
        """Projections should be concatenated in order."""
        combined = combine_projections(Tag.projection("a"), Tag.projection("b"))

        assert combined == ["a._id", "a.note_id", "a.name", "b._id", "b.note_id", "b.name"]


class TestEntityCrudWithFakeStore:
    """Tests for CRUD against a recording store."""

    def test_create_adopts_new_id(self):
        """create() should insert without identity and adopt the returned id."""
        store = RecordingEntityStore(next_id=42)
        note = Note(title="a")

        assert note.create(store) == 42

        assert note.id == 42
        op, table, values = store.calls[0]
        assert (op, table) == ("insert", "notes")
        assert "_id" not in values

    def test_create_twice_gives_distinct_ids(self):
        """Creating the same entity twice should create two rows."""
        store = RecordingEntityStore()
        note = Note(title="a")

        first = note.create(store)
        second = note.create(store)

        assert first != second
        assert all("_id" not in call[2] for call in store.calls)

    def test_create_without_id_fails(self):
        """A store that reports no id should make create() fail."""
        store = RecordingEntityStore(next_id=None)

        with pytest.raises(DatabaseError):
            Note(title="a").create(store)

    def test_update_without_id_fails_before_store(self):
        """update() without id should fail without touching the store."""
        store = RecordingEntityStore()

        with pytest.raises(EntityStateError):
            Note(title="a").update(store)

        assert store.calls == []

    def test_update_requires_exactly_one_row(self):
        """update() should fail unless exactly one row changed."""
        store = RecordingEntityStore(affected=0)
        note = Note(title="a")
        note.id = 3

        with pytest.raises(CardinalityError) as exc_info:
            note.update(store)

        assert exc_info.value.actual == 0

    def test_delete_without_id_fails(self):
        """delete() needs an id."""
        with pytest.raises(EntityStateError):
            Note().delete(RecordingEntityStore())

    def test_create_or_update(self):
        """create_or_update should pick create or update by identity."""
        store = RecordingEntityStore()
        note = Note(title="a")

        note.create_or_update(store)
        note.create_or_update(store)

        assert [call[0] for call in store.calls] == ["insert", "update"]

    def test_query_by_id_decodes_single_row(self):
        """query_by_id should decode the one matching row."""
        store = RecordingEntityStore(rows=[(5, 1, "tag")])

        tag = Tag.get(store, 5)

        assert (tag.id, tag.name) == (5, "tag")
        assert store.calls[0] == ("query", "tags", ["_id", "note_id", "name"], 5)
        assert store.cursors[0].closed

    @pytest.mark.parametrize("rows", [[], [(1, 1, "a"), (2, 1, "b")]])
    def test_query_by_id_requires_one_row(self, rows):
        """Zero or several rows should raise a cardinality error."""
        store = RecordingEntityStore(rows=rows)

        with pytest.raises(CardinalityError):
            Tag.get(store, 1)
        assert store.cursors[0].closed


class TestEntityCrudWithDatabase:
    """Tests for CRUD against a real database."""

    def test_create_and_get(self, db: Database):
        """A created entity should be readable by id."""
        note = Note(title="stored", body="text", priority=Priority.HIGH, data=b"\x00\xff")
        note.create(db)

        loaded = Note.get(db, note.id)

        assert loaded == note

    def test_update(self, db: Database):
        """update() should persist changed values."""
        note = Note(title="old")
        note.create(db)

        note.title = "new"
        note.update(db)

        assert Note.get(db, note.id).title == "new"

    def test_update_of_deleted_row_fails(self, db: Database):
        """Updating a row that no longer exists should fail."""
        note = Note(title="gone")
        note.create(db)
        note.delete(db)

        with pytest.raises(CardinalityError):
            note.update(db)

    def test_delete(self, db: Database):
        """delete() should remove the row."""
        note = Note(title="a")
        note.create(db)

        assert note.delete(db) == 1
        with pytest.raises(CardinalityError):
            Note.get(db, note.id)

    def test_join_decodes_both_entities(self, db: Database):
        """A join selected with combined projections should decode per entity."""
        note = Note(title="parent")
        note.create(db)
        tag = Tag(note_id=note.id, name="child")
        tag.create(db)

        columns = ", ".join(combine_projections(Note.projection("n"), Tag.projection("t")))
        row = db.execute(
            f"SELECT {columns} FROM notes n JOIN tags t ON t.note_id = n._id"
        ).fetchone()
        loaded_note, loaded_tag = Note(), Tag()
        decode_many(row, loaded_note, loaded_tag)

        assert loaded_note == note
        assert loaded_tag == tag

    def test_create_logged_at_info(self, db: Database):
        """Creating a row should be logged at info level."""
        records = []
        handler_id = logger.add(lambda message: records.append(message.record), level="INFO")
        try:
            Note(title="logged").create(db)
        finally:
            logger.remove(handler_id)

        created = [r for r in records if r["message"].startswith("Created Note")]
        assert len(created) == 1
        assert created[0]["level"].name == "INFO"


@pytest.fixture
def samples_db(db: Database) -> Database:
    """Database with an extra table holding every field kind."""
    db.executescript(SAMPLES_SCHEMA)
    return db


def filled_sample() -> Sample:
    """Sample with boundary values in every column."""
    values = dict(
        flag=True,
        tiny=-128,
        small=32767,
        medium=-(2**31),
        big=2**63 - 1,
        weight=3.4028234663852886e38,
        ratio=-1.7976931348623157e308,
        label="päß",
        raw=b"\x00\xff",
        moment=datetime(1969, 12, 31, 23, 59, 59, 999000, tzinfo=timezone.utc),
        level=Priority.HIGH,
    )
    sample = Sample(**values)
    sample.opt_flag = False
    sample.opt_tiny = 127
    sample.opt_small = -32768
    sample.opt_medium = 2**31 - 1
    sample.opt_big = -(2**63)
    sample.opt_weight = 0.1
    sample.opt_ratio = 0.1
    sample.opt_label = ""
    sample.opt_raw = b""
    sample.opt_moment = datetime(2024, 5, 6, 7, 8, 9, 123000, tzinfo=timezone.utc)
    sample.opt_level = Priority.LOW
    return sample


class TestAllFieldKinds:
    """Tests for round trips of every field kind, required and nullable."""

    def test_encode_decode_round_trip(self):
        """Decoding the encoded row should restore every value."""
        sample = filled_sample()
        sample.id = 1

        decoded = Sample.from_row(tuple(sample.encode().values()))

        assert decoded == sample

    def test_create_and_get(self, samples_db: Database):
        """Boundary values of every kind should survive the database."""
        sample = filled_sample()
        sample.create(samples_db)

        loaded = Sample.get(samples_db, sample.id)

        assert loaded == sample
        assert loaded.tiny == -128
        assert loaded.big == 2**63 - 1
        assert loaded.opt_big == -(2**63)
        assert loaded.opt_weight == fields.float32("f").validate(0.1)
        assert loaded.opt_weight != 0.1
        assert loaded.moment == datetime(1969, 12, 31, 23, 59, 59, 999000, tzinfo=timezone.utc)

    def test_nullable_columns_stored_as_null(self, samples_db: Database):
        """Unset nullable fields should be written and read back as NULL."""
        sample = filled_sample()
        for field in Sample.fields():
            if field.name.startswith("opt_"):
                setattr(sample, field.attr, None)
        sample.create(samples_db)

        row = samples_db.execute(
            "SELECT opt_flag, opt_tiny, opt_weight, opt_raw, opt_moment, opt_level "
            "FROM samples WHERE _id = ?",
            (sample.id,),
        ).fetchone()
        loaded = Sample.get(samples_db, sample.id)

        assert tuple(row) == (None,) * 6
        assert loaded == sample
        assert all(
            getattr(loaded, f.attr) is None for f in Sample.fields() if f.name.startswith("opt_")
        )

    def test_out_of_range_ints_rejected(self):
        """Each integer kind should reject the first value outside its range."""
        for attr, value in [("tiny", 128), ("small", -32769), ("medium", 2**31), ("big", 2**63)]:
            with pytest.raises(InvalidFieldValueError):
                setattr(Sample(), attr, value)
