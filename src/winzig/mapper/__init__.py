"""Entity mapper for winzig.

Declares typed row schemas once and converts between rows and entities:

- Entity: base class with ordinal-safe decode / encode and CRUD
- fields: typed column descriptors (``fields.string("title")`` ...)
- EntityStore: the storage port behind Entity CRUD
- ValuesBuilder: fluent builder for column value maps

Example:
    from winzig.mapper import Entity, fields

    class Note(Entity):
        __table__ = "notes"
        title = fields.string("title")

    note = Note(title="Hello")
    note.create(db)
"""

from . import fields
from .entity import Entity, EntitySnapshot, combine_projections, decode_many
from .fields import ID_COLUMN, Field, FieldKind
from .store import DatabaseStore, EntityStore, GatewayStore, as_entity_store
from .values import ValuesBuilder

__all__ = [
    "fields",
    "Entity",
    "EntitySnapshot",
    "decode_many",
    "combine_projections",
    "Field",
    "FieldKind",
    "ID_COLUMN",
    "EntityStore",
    "DatabaseStore",
    "GatewayStore",
    "as_entity_store",
    "ValuesBuilder",
]
