"""winzig: a small data-access layer for SQLite.

Typed entities, a resource-address CRUD gateway, a versioned schema
migrator and a comment-aware SQL script tokenizer.
"""

from .core import (
    CardinalityError,
    Config,
    DatabaseError,
    EntityStateError,
    InvalidAddressError,
    InvalidFieldValueError,
    MigrationError,
    ResourceAddress,
    WinzigError,
)
from .gateway import ChangeNotifier, DataGateway
from .mapper import Entity, fields
from .store import Database, SchemaMigrator, SeededDatabase, parse_sql_script

__version__ = "1.0.0"

__all__ = [
    "Config",
    "Database",
    "SeededDatabase",
    "SchemaMigrator",
    "parse_sql_script",
    "DataGateway",
    "ChangeNotifier",
    "Entity",
    "fields",
    "ResourceAddress",
    "WinzigError",
    "DatabaseError",
    "MigrationError",
    "InvalidAddressError",
    "InvalidFieldValueError",
    "CardinalityError",
    "EntityStateError",
]
