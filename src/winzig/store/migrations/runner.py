"""Schema migrator for winzig.

Uses SQLite PRAGMA user_version for tracking schema version. Scripts are
resolved by naming convention from a ScriptSource:

- ``create_schema`` (or ``create_db``) builds a fresh database directly at
  the target version.
- ``upgrade_schema_<n>`` moves an existing database from version ``n - 1``
  to ``n``. A missing upgrade script means the version bump needs no schema
  change; it is skipped unless ``skip_missing_upgrades`` is disabled.

There is no downgrade path.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from loguru import logger

from ...core.exceptions import DatabaseError, MigrationError
from ..resources import ScriptSource
from ..script import execute_statements, parse_sql_script

CREATE_RESOURCE_NAMES = ("create_schema", "create_db")
UPGRADE_RESOURCE_TEMPLATE = "upgrade_schema_{version}"


def upgrade_resource_name(version: int) -> str:
    """Name of the script producing schema ``version``."""
    return UPGRADE_RESOURCE_TEMPLATE.format(version=version)


@dataclass
class MigrationStep:
    """One applied or skipped migration step."""

    version: int
    resource_name: str
    statements: int = 0
    skipped: bool = False

    def __repr__(self) -> str:
        state = "skipped" if self.skipped else f"{self.statements} statements"
        return f"MigrationStep({self.version}, {self.resource_name!r}, {state})"


class SchemaMigrator:
    """Creates and upgrades a SQLite schema from named scripts.

    Example:
        migrator = SchemaMigrator(connection, DirectoryScriptSource("schema"))
        steps = migrator.migrate(5)
        migrator.ensure_foreign_keys()
    """

    def __init__(
        self,
        connection: sqlite3.Connection,
        source: ScriptSource,
        read_only: bool = False,
        skip_missing_upgrades: bool = True,
        literal_aware: bool = False,
    ):
        """Initialize with database connection and script source.

        Args:
            connection: SQLite connection to migrate.
            source: Resolves script resource names.
            read_only: Connection must not be modified.
            skip_missing_upgrades: Treat a missing upgrade script as a no-op
                version bump instead of an error.
            literal_aware: Tokenizer mode for the scripts.
        """
        self.conn = connection
        self.source = source
        self.read_only = read_only
        self.skip_missing_upgrades = skip_missing_upgrades
        self.literal_aware = literal_aware

    def get_version(self) -> int:
        """Get current schema version from user_version pragma."""
        cursor = self.conn.execute("PRAGMA user_version")
        try:
            return cursor.fetchone()[0]
        finally:
            cursor.close()

    def set_version(self, version: int) -> None:
        """Set schema version.

        Args:
            version: New version number to set.
        """
        # PRAGMA doesn't support parameters, int() keeps the formatting safe
        self.conn.execute(f"PRAGMA user_version = {int(version)}")

    def pending_versions(self, target_version: int) -> list[int]:
        """Versions that ``migrate(target_version)`` would produce, in order."""
        current = self.get_version()
        if current == 0:
            return [target_version]
        return list(range(current + 1, target_version + 1))

    def migrate(self, target_version: int) -> list[MigrationStep]:
        """Bring the database to ``target_version``.

        Args:
            target_version: Schema version the application expects, >= 1.

        Returns:
            Steps applied or skipped, empty when already up to date.

        Raises:
            ValueError: If target_version is lower than 1.
            MigrationError: If a script is missing or fails, or the stored
                version is newer than the target.
            DatabaseError: If migration is needed on a read-only connection.
        """
        if target_version < 1:
            raise ValueError(f"Schema version must be >= 1, got {target_version}")

        current = self.get_version()
        if current == target_version:
            logger.debug(f"Database at version {current}, no migrations to apply")
            return []

        if current > target_version:
            raise MigrationError(
                f"Cannot downgrade database from version {current} to {target_version}",
                version=target_version,
            )

        if self.read_only:
            raise DatabaseError(
                f"Database at version {current} needs migration to {target_version}, "
                "but the connection is read-only"
            )

        if current == 0:
            return [self.create(target_version)]
        return self.upgrade(current, target_version)

    def create(self, target_version: int) -> MigrationStep:
        """Run the creation script and stamp ``target_version``."""
        for name in CREATE_RESOURCE_NAMES:
            script = self.source.read_text(name)
            if script is not None:
                break
        else:
            raise MigrationError(
                f"Could not initialize database, no script named "
                f"{' or '.join(CREATE_RESOURCE_NAMES)} in {self.source!r}",
                version=target_version,
                resource_name=CREATE_RESOURCE_NAMES[0],
            )

        logger.info(f"Creating schema at version {target_version} from {name!r}")
        step = self._apply(target_version, name, script)
        logger.info(f"Schema created at version {target_version}")
        return step

    def upgrade(self, current: int, target_version: int) -> list[MigrationStep]:
        """Apply upgrade scripts for every version in ``(current, target]``."""
        steps = []
        for version in range(current + 1, target_version + 1):
            name = upgrade_resource_name(version)
            script = self.source.read_text(name)

            if script is None:
                if not self.skip_missing_upgrades:
                    raise MigrationError(
                        f"Could not update database to version {version}, "
                        f"resource not found: {name}",
                        version=version,
                        resource_name=name,
                    )
                logger.warning(f"Skipping upgrade to version {version}, resource not found: {name}")
                self.set_version(version)
                self.conn.commit()
                steps.append(MigrationStep(version, name, skipped=True))
                continue

            logger.info(f"Upgrading schema to version {version} from {name!r}")
            steps.append(self._apply(version, name, script))

        applied = sum(1 for s in steps if not s.skipped)
        logger.info(
            f"Applied {applied} upgrade script(s), "
            f"database now at version {self.get_version()}"
        )
        return steps

    def ensure_foreign_keys(self) -> None:
        """Make sure foreign key constraints are enforced.

        Raises:
            DatabaseError: If SQLite was built without foreign key support, or
                enforcement is off and the connection is read-only.
        """
        if self._foreign_keys_enabled():
            return

        if self.read_only:
            raise DatabaseError("Cannot activate foreign key support, database is read-only")

        self.conn.execute("PRAGMA foreign_keys = ON")
        if not self._foreign_keys_enabled():
            raise DatabaseError("Could not activate foreign key support")
        logger.debug("Foreign key support enabled")

    def _foreign_keys_enabled(self) -> bool:
        cursor = self.conn.execute("PRAGMA foreign_keys")
        try:
            row = cursor.fetchone()
        finally:
            cursor.close()
        # no row at all means SQLite was compiled without foreign keys
        if row is None:
            raise DatabaseError("Database has no foreign key support")
        return row[0] != 0

    def _apply(self, version: int, name: str, script: str) -> MigrationStep:
        statements = parse_sql_script(script, literal_aware=self.literal_aware)
        try:
            count = execute_statements(self.conn, statements)
            self.set_version(version)
            self.conn.commit()
        except Exception as e:
            logger.error(f"Migration to version {version} failed ({name}): {e}")
            self.conn.rollback()
            raise MigrationError(
                f"Could not update database to version {version}, "
                f"problem with resource {name}: {e}",
                version=version,
                resource_name=name,
            ) from e

        logger.debug(f"Migration {version} applied successfully ({count} statements)")
        return MigrationStep(version, name, statements=count)
