"""Data access layer for winzig.

This package provides the storage side of winzig:
- Database: SQLite connection, transactions and single-table operations
- SeededDatabase: Database copied from a bundled SQLite file
- SchemaMigrator: versioned schema creation and upgrades from named scripts
- parse_sql_script / execute_statements: comment-aware script tokenizer
- ScriptSource implementations for directories, packages and mappings

Example:
    from winzig.store import Database, DirectoryScriptSource

    db = Database("app.db", version=3, source=DirectoryScriptSource("schema"))
    db.connect()
"""

from .cursor import RowCursor
from .database import Database, quote_identifier
from .migrations import MigrationStep, SchemaMigrator, upgrade_resource_name
from .resources import (
    DirectoryScriptSource,
    MappingScriptSource,
    PackageScriptSource,
    ScriptSource,
)
from .script import execute_statements, parse_sql_script, strip_block_comments
from .seeded import SeededDatabase

__all__ = [
    # Database
    "Database",
    "SeededDatabase",
    "RowCursor",
    "quote_identifier",
    # Migrations
    "SchemaMigrator",
    "MigrationStep",
    "upgrade_resource_name",
    # Scripts
    "parse_sql_script",
    "execute_statements",
    "strip_block_comments",
    # Resources
    "ScriptSource",
    "DirectoryScriptSource",
    "PackageScriptSource",
    "MappingScriptSource",
]
