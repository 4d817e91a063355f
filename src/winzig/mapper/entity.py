"""Entity base class: a typed, mutable in-memory table row.

Declare an entity by subclassing and listing its fields in column order:

    class Note(Entity):
        __table__ = "notes"
        __namespace__ = "com.example.notes"

        title = fields.string("title")
        body = fields.string("body", nullable=True)
        created_at = fields.timestamp("created_at")

Every entity owns the identity field ``id`` (column ``_id``) at ordinal 0;
declared fields follow in declaration order. ``Note.projection()`` and
``note.decode(row)`` use the same order, so a row selected with the
projection decodes column for column.

Entities are mutable and deliberately unhashable. ``snapshot()`` gives an
immutable, hashable copy of the current values for use in sets and dicts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Sequence

from loguru import logger

from ..core.exceptions import CardinalityError, DatabaseError, EntityStateError
from ..core.types import DEFAULT_SCHEME, ResourceAddress
from .fields import ID_COLUMN, Field, FieldKind
from .store import as_entity_store

if TYPE_CHECKING:
    from .store import StoreTarget


@dataclass(frozen=True)
class EntitySnapshot:
    """Immutable copy of an entity's field values."""

    entity_type: type
    values: tuple

    def to_entity(self) -> "Entity":
        """Build a new, independent entity holding these values."""
        entity = self.entity_type()
        entity._values = list(self.values)
        return entity


def _collect_fields(cls: type) -> None:
    parents = [b for b in cls.__bases__ if isinstance(b, type) and issubclass(b, Entity)]
    if len(parents) > 1:
        raise TypeError(f"{cls.__name__} cannot inherit fields from more than one entity")

    fields: list[Field] = list(parents[0].__fields__) if parents else []
    columns = {f.name for f in fields}

    for value in cls.__dict__.values():
        if not isinstance(value, Field) or value in fields:
            continue
        if value.name in columns:
            raise TypeError(f"{cls.__name__} declares column {value.name!r} twice")
        value.bind(cls, len(fields))
        fields.append(value)
        columns.add(value.name)

    cls.__fields__ = tuple(fields)


class Entity:
    """Base class for entities mapped to a single table."""

    __table__: ClassVar[str] = ""
    __namespace__: ClassVar[str | None] = None
    __scheme__: ClassVar[str] = DEFAULT_SCHEME
    __fields__: ClassVar[tuple[Field, ...]] = ()

    id = Field(ID_COLUMN, FieldKind.INT64, nullable=True)

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        _collect_fields(cls)

    def __init__(self, **values: Any):
        """Create an entity with default values, then apply ``values``.

        Args:
            **values: Initial values keyed by attribute name.

        Raises:
            TypeError: If a key is not a field of this entity.
            InvalidFieldValueError: If a value is not valid for its field.
        """
        self._values: list[Any] = [f.default() for f in self.__fields__]
        attrs = {f.attr for f in self.__fields__}
        for key, value in values.items():
            if key not in attrs:
                raise TypeError(f"{type(self).__name__} has no field {key!r}")
            setattr(self, key, value)

    # -------------------------------------------------------------------------
    # Schema
    # -------------------------------------------------------------------------

    @classmethod
    def fields(cls) -> tuple[Field, ...]:
        """Fields in ordinal order, identity first."""
        return cls.__fields__

    @classmethod
    def field_count(cls) -> int:
        """Number of fields, which is also the projection length."""
        return len(cls.__fields__)

    @classmethod
    def projection(cls, prefix: str = "") -> list[str]:
        """Column names in ordinal order.

        Args:
            prefix: Table alias; ``"n"`` turns ``_id`` into ``n._id``. Use it
                to disambiguate columns in multi-table queries.
        """
        if prefix:
            return [f"{prefix}.{f.name}" for f in cls.__fields__]
        return [f.name for f in cls.__fields__]

    @classmethod
    def table_name(cls) -> str:
        if not cls.__table__:
            raise EntityStateError(f"{cls.__name__} has no __table__")
        return cls.__table__

    @classmethod
    def base_address(cls) -> ResourceAddress:
        """Address of this entity's table."""
        if not cls.__namespace__:
            raise EntityStateError(f"{cls.__name__} has no __namespace__")
        return ResourceAddress(cls.__namespace__, cls.table_name(), scheme=cls.__scheme__)

    def address(self) -> ResourceAddress:
        """Address of this entity's row, requires the identity to be set."""
        return self.base_address().with_id(self._require_id("address"))

    # -------------------------------------------------------------------------
    # Row conversion
    # -------------------------------------------------------------------------

    def decode(self, row: Sequence[Any], offset: int = 0) -> "Entity":
        """Set all fields from a positioned row.

        Field ``k`` is read from column ``offset + k``. Decoding stops at the
        first invalid column, leaving earlier fields updated.

        Args:
            row: ``sqlite3.Row``, tuple or positioned ``RowCursor``.
            offset: Column of this entity's identity field.

        Returns:
            self
        """
        for f in self.__fields__:
            self._values[f.ordinal] = f.from_storage(row[offset + f.ordinal])
        return self

    @classmethod
    def from_row(cls, row: Sequence[Any], offset: int = 0) -> "Entity":
        """Create an entity decoded from ``row``."""
        return cls().decode(row, offset)

    def encode(self) -> dict[str, Any]:
        """Column values for a single-row write, in projection order."""
        return {f.name: f.to_storage(self._values[f.ordinal]) for f in self.__fields__}

    def to_dict(self) -> dict[str, Any]:
        """Python values keyed by attribute name."""
        return {f.attr: self._values[f.ordinal] for f in self.__fields__}

    def snapshot(self) -> EntitySnapshot:
        return EntitySnapshot(type(self), tuple(self._values))

    def copy(self) -> "Entity":
        return self.snapshot().to_entity()

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def create(self, store: StoreTarget) -> int:
        """Insert the current values as a new row and adopt its id.

        Any id already set is ignored, so each call creates another row.

        Returns:
            The new row id.

        Raises:
            DatabaseError: If the store does not report a usable id.
        """
        target = as_entity_store(store, self.__namespace__)
        values = self.encode()
        values.pop(ID_COLUMN)

        row_id = target.insert(self.table_name(), values)
        if row_id is None or row_id < 0:
            raise DatabaseError(f"Could not create {self!r}, insert returned id {row_id!r}")

        self._values[0] = row_id
        logger.info(f"Created {type(self).__name__}: id={row_id}")
        return row_id

    def update(self, store: StoreTarget) -> None:
        """Write the current values to the row with this entity's id.

        Raises:
            EntityStateError: If the id is not set.
            CardinalityError: If not exactly one row was updated.
        """
        row_id = self._require_id("update")
        target = as_entity_store(store, self.__namespace__)
        values = self.encode()
        values.pop(ID_COLUMN)

        count = target.update_by_id(self.table_name(), values, row_id)
        if count != 1:
            raise CardinalityError(
                f"Update of {self!r} failed, expected one updated row, got {count}",
                actual=count,
            )
        logger.debug(f"Updated {type(self).__name__}: id={row_id}")

    def delete(self, store: StoreTarget) -> int:
        """Delete the row with this entity's id.

        Returns:
            Number of deleted rows.

        Raises:
            EntityStateError: If the id is not set.
        """
        row_id = self._require_id("delete")
        target = as_entity_store(store, self.__namespace__)
        count = target.delete_by_id(self.table_name(), row_id)
        logger.debug(f"Deleted {type(self).__name__}: id={row_id}, rows={count}")
        return count

    def create_or_update(self, store: StoreTarget) -> None:
        """Create the row when the id is unset, otherwise update it."""
        if self.id is None:
            self.create(store)
        else:
            self.update(store)

    def query_by_id(self, store: StoreTarget, row_id: int) -> "Entity":
        """Load the row with ``row_id`` into this entity.

        Raises:
            CardinalityError: If zero or several rows match.
        """
        target = as_entity_store(store, self.__namespace__)
        with target.query_by_id(self.table_name(), self.projection(), row_id) as cursor:
            rows = cursor.fetch_many(2)
            if len(rows) != 1:
                raise CardinalityError(
                    f"Expected exactly one {type(self).__name__} for id {row_id}, got {len(rows)}",
                    actual=len(rows),
                )
            return self.decode(rows[0])

    @classmethod
    def get(cls, store: StoreTarget, row_id: int) -> "Entity":
        """Load a new entity by id."""
        return cls().query_by_id(store, row_id)

    def _require_id(self, operation: str) -> int:
        row_id = self.id
        if row_id is None:
            raise EntityStateError(f"Cannot {operation} {self!r}, id is None")
        return row_id

    # -------------------------------------------------------------------------
    # Value semantics
    # -------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return type(self) is type(other) and self._values == other._values

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        values = ", ".join(f"{f.name}={self._values[f.ordinal]!r}" for f in self.__fields__)
        return f"{type(self).__name__}{{{values}}}"


Entity.id.bind(Entity, 0)
Entity.__fields__ = (Entity.id,)


def decode_many(row: Sequence[Any], *entities: Entity, offset: int = 0) -> int:
    """Decode several entities from one wide row.

    Entities are read from consecutive column ranges in argument order, for
    rows selected with ``combine_projections(A.projection("a"),
    B.projection("b"))``.

    Returns:
        Column offset after the last entity.
    """
    for entity in entities:
        entity.decode(row, offset)
        offset += entity.field_count()
    return offset


def combine_projections(*projections: Sequence[str]) -> list[str]:
    """Concatenate projections for a query spanning several tables."""
    result: list[str] = []
    for projection in projections:
        result.extend(projection)
    return result
