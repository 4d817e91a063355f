"""Database initialized from a bundled SQLite file instead of scripts.

The bundled file is looked up in the script source as ``<stem>.sqlite``
(``app.db`` looks for ``app.sqlite``). It is copied into place when the
database file does not exist yet, and copied again, replacing the existing
file, when the stored schema version is lower than the expected one. Data
written to the old file is lost on such a replacement.
"""

from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path

from loguru import logger

from ..core.exceptions import DatabaseError
from .database import Database
from .migrations import SchemaMigrator
from .resources import ScriptSource


class SeededDatabase(Database):
    """A Database whose content ships as a ready-made SQLite file."""

    def __init__(
        self,
        path: Path | str,
        source: ScriptSource,
        version: int = 1,
        asset_name: str | None = None,
        read_only: bool = False,
    ):
        """Initialize with target path and seed location.

        Args:
            path: Where the database file lives.
            source: Provides the bundled file via ``read_bytes``.
            version: Schema version expected by the application.
            asset_name: Name of the bundled file, defaults to ``<stem>.sqlite``.
            read_only: Open the copied database without write access.
        """
        super().__init__(path, version=version, source=source, read_only=read_only)
        if self.is_memory:
            raise DatabaseError("A seeded database needs a file path")
        self.asset_name = asset_name or f"{self.path.stem}.sqlite"

    def connect(self) -> None:
        """Copy the bundled file if needed, then connect."""
        if self._connection:
            return
        if not self.path.exists():
            self.copy_seed()
        elif not self.read_only and self._stored_version() < self.version:
            logger.info(f"Replacing database {str(self.path)!r} with bundled version {self.version}")
            self.copy_seed()
        super().connect()

    def copy_seed(self) -> None:
        """Write the bundled file to ``path``.

        Raises:
            DatabaseError: If the source has no file named ``asset_name``.
        """
        logger.debug(f"Copying database {self.asset_name!r} to {str(self.path)!r}")
        data = self.source.read_bytes(self.asset_name)
        if data is None:
            raise DatabaseError(
                f"Could not copy database from asset {self.asset_name!r} "
                f"to file {str(self.path)!r}, asset not found in {self.source!r}"
            )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(data)

    def _stored_version(self) -> int:
        with closing(sqlite3.connect(str(self.path))) as conn:
            return conn.execute("PRAGMA user_version").fetchone()[0]

    def _prepare_schema(self, migrator: SchemaMigrator) -> None:
        current = migrator.get_version()
        if current >= self.version:
            return
        if self.read_only:
            raise DatabaseError(
                f"Bundled database is at version {current}, expected {self.version}, "
                "and the connection is read-only"
            )
        migrator.set_version(self.version)
        self.connection.commit()
