"""Database migrations for winzig.

This module provides versioned schema migrations driven by named SQL
scripts, using SQLite's PRAGMA user_version for tracking.

Example:
    from winzig.store.migrations import SchemaMigrator

    migrator = SchemaMigrator(connection, source)
    steps = migrator.migrate(3)
"""

from .runner import (
    CREATE_RESOURCE_NAMES,
    UPGRADE_RESOURCE_TEMPLATE,
    MigrationStep,
    SchemaMigrator,
    upgrade_resource_name,
)

__all__ = [
    "CREATE_RESOURCE_NAMES",
    "UPGRADE_RESOURCE_TEMPLATE",
    "MigrationStep",
    "SchemaMigrator",
    "upgrade_resource_name",
]
