"""SQLite database connection manager for winzig."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Mapping, Sequence

from loguru import logger

from ..core.exceptions import DatabaseError, MigrationError
from .cursor import RowCursor
from .migrations import MigrationStep, SchemaMigrator
from .resources import ScriptSource
from .script import execute_statements

MEMORY = ":memory:"


def quote_identifier(name: str) -> str:
    """Quote a table or column name, ``t.col`` is quoted per part."""
    if name == "*":
        return name
    return ".".join('"' + part.replace('"', '""') + '"' for part in name.split("."))


def _where(where: str | None) -> str:
    return f" WHERE {where}" if where else ""


class Database:
    """SQLite database connection manager.

    When a script source is given, ``connect()`` creates or upgrades the
    schema to ``version`` through the SchemaMigrator. Foreign key
    enforcement is always switched on (or the connection fails).
    """

    def __init__(
        self,
        path: Path | str,
        version: int = 1,
        source: ScriptSource | None = None,
        read_only: bool = False,
        skip_missing_upgrades: bool = True,
        literal_aware_scripts: bool = False,
    ):
        """Initialize database with path.

        Args:
            path: Path to the SQLite database file, or ``":memory:"``.
            version: Schema version expected by the application.
            source: Script source for schema creation and upgrades.
            read_only: Open the database without write access.
            skip_missing_upgrades: Passed on to the SchemaMigrator.
            literal_aware_scripts: Tokenizer mode for schema scripts.
        """
        self.path = path if str(path) == MEMORY else Path(path)
        self.version = version
        self.source = source
        self.read_only = read_only
        self.skip_missing_upgrades = skip_missing_upgrades
        self.literal_aware_scripts = literal_aware_scripts
        self.migration_steps: list[MigrationStep] = []
        self._connection: sqlite3.Connection | None = None

    @property
    def is_memory(self) -> bool:
        return str(self.path) == MEMORY

    @property
    def connection(self) -> sqlite3.Connection:
        """The open sqlite3 connection.

        Raises:
            DatabaseError: If the database is not connected.
        """
        if not self._connection:
            raise DatabaseError("Database not connected")
        return self._connection

    def connect(self) -> None:
        """Open the connection, migrate the schema and enable foreign keys."""
        if self._connection:
            return
        try:
            self._connection = self._open()
            self._connection.row_factory = sqlite3.Row
            migrator = self._migrator()
            self._prepare_schema(migrator)
            migrator.ensure_foreign_keys()
        except Exception as e:
            if self._connection:
                self._connection.close()
                self._connection = None
            if isinstance(e, DatabaseError):
                raise
            raise DatabaseError(f"Failed to connect to database: {e}") from e

        logger.info(f"Database connected: path={str(self.path)!r}, version={self.get_version()}")

    def _open(self) -> sqlite3.Connection:
        if self.is_memory:
            return sqlite3.connect(MEMORY)
        if self.read_only:
            return sqlite3.connect(f"{self.path.resolve().as_uri()}?mode=ro", uri=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(str(self.path))

    def _migrator(self) -> SchemaMigrator:
        return SchemaMigrator(
            self.connection,
            self.source,
            read_only=self.read_only,
            skip_missing_upgrades=self.skip_missing_upgrades,
            literal_aware=self.literal_aware_scripts,
        )

    def _prepare_schema(self, migrator: SchemaMigrator) -> None:
        """Create or upgrade the schema before the connection is used."""
        if self.source is None:
            return
        self.migration_steps = migrator.migrate(self.version)

    def close(self) -> None:
        """Close database connection."""
        if self._connection:
            try:
                self._connection.close()
            except Exception as e:
                raise DatabaseError(f"Failed to close database: {e}") from e
            finally:
                self._connection = None

    def drop(self) -> bool:
        """Close and delete the database file.

        Returns:
            True if a file was deleted.
        """
        self.close()
        if self.is_memory or not self.path.exists():
            return False
        self.path.unlink()
        logger.info(f"Database dropped: path={str(self.path)!r}")
        return True

    def __enter__(self) -> "Database":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get_version(self) -> int:
        """Current schema version (PRAGMA user_version)."""
        return self._migrator().get_version()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """Context manager for database transactions.

        Yields:
            A cursor for executing SQL statements.

        Raises:
            DatabaseError: If connection is not available or transaction fails.
        """
        connection = self.connection
        cursor = connection.cursor()
        try:
            yield cursor
            connection.commit()
        except Exception as e:
            connection.rollback()
            raise DatabaseError(f"Transaction failed: {e}") from e
        finally:
            cursor.close()

    def execute(self, sql: str, params: Sequence[Any] | Mapping[str, Any] = ()) -> sqlite3.Cursor:
        """Execute a SQL query.

        Args:
            sql: SQL statement to execute.
            params: Parameters for the SQL statement.

        Returns:
            A cursor with the query results.

        Raises:
            DatabaseError: If connection is not available or query fails.
        """
        connection = self.connection
        try:
            return connection.execute(sql, params)
        except Exception as e:
            raise DatabaseError(f"Query execution failed: {e}") from e

    def executescript(self, sql: str) -> int:
        """Execute a script through the comment-aware tokenizer.

        Args:
            sql: Script with ``;``-terminated statements.

        Returns:
            Number of statements executed.

        Raises:
            DatabaseError: If connection is not available or a statement fails.
        """
        connection = self.connection
        try:
            count = execute_statements(connection, sql, literal_aware=self.literal_aware_scripts)
            connection.commit()
            return count
        except Exception as e:
            raise DatabaseError(f"Script execution failed: {e}") from e

    # -- table operations -----------------------------------------------------

    def query(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        where: str | None = None,
        args: Sequence[Any] = (),
        order_by: str | None = None,
    ) -> RowCursor:
        """Select rows from a single table.

        Args:
            table: Table name.
            columns: Projection, ``None`` selects all columns.
            where: Optional filter with ``?`` placeholders.
            args: Values for the placeholders.
            order_by: Optional ORDER BY clause.

        Returns:
            RowCursor positioned before the first row.
        """
        projection = ", ".join(quote_identifier(c) for c in columns) if columns else "*"
        sql = f"SELECT {projection} FROM {quote_identifier(table)}{_where(where)}"
        if order_by:
            sql += f" ORDER BY {order_by}"
        logger.debug(f"Query: {sql} args={list(args)!r}")
        return RowCursor(self.execute(sql, tuple(args)))

    def raw_query(self, sql: str, args: Sequence[Any] = ()) -> RowCursor:
        """Run a caller supplied read statement with writes disabled.

        Raises:
            DatabaseError: If the statement fails or tries to write.
        """
        connection = self.connection
        connection.execute("PRAGMA query_only = ON")
        try:
            logger.debug(f"Raw query: {sql} args={list(args)!r}")
            return RowCursor(self.execute(sql, tuple(args)))
        finally:
            connection.execute("PRAGMA query_only = OFF")

    def insert(self, table: str, values: Mapping[str, Any]) -> int:
        """Insert a row.

        Returns:
            Row id assigned by SQLite.
        """
        if values:
            columns = ", ".join(quote_identifier(c) for c in values)
            placeholders = ", ".join("?" for _ in values)
            sql = f"INSERT INTO {quote_identifier(table)} ({columns}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {quote_identifier(table)} DEFAULT VALUES"

        with self.transaction() as cursor:
            cursor.execute(sql, tuple(values.values()))
            row_id = cursor.lastrowid

        logger.debug(f"Inserted into {table}: id={row_id}")
        return row_id

    def update(
        self,
        table: str,
        values: Mapping[str, Any],
        where: str | None = None,
        args: Sequence[Any] = (),
    ) -> int:
        """Update rows matching ``where``.

        Returns:
            Number of affected rows.
        """
        if not values:
            raise DatabaseError(f"Cannot update {table}, no values given")
        assignments = ", ".join(f"{quote_identifier(c)} = ?" for c in values)
        sql = f"UPDATE {quote_identifier(table)} SET {assignments}{_where(where)}"

        with self.transaction() as cursor:
            cursor.execute(sql, (*values.values(), *args))
            count = cursor.rowcount

        logger.debug(f"Updated {table}: where={where!r}, rows={count}")
        return count

    def delete(self, table: str, where: str | None = None, args: Sequence[Any] = ()) -> int:
        """Delete rows matching ``where``.

        Returns:
            Number of affected rows.
        """
        sql = f"DELETE FROM {quote_identifier(table)}{_where(where)}"

        with self.transaction() as cursor:
            cursor.execute(sql, tuple(args))
            count = cursor.rowcount

        logger.debug(f"Deleted from {table}: where={where!r}, rows={count}")
        return count

    def table_names(self) -> list[str]:
        """Names of all user tables, sorted."""
        cursor = self.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        try:
            return [row[0] for row in cursor.fetchall()]
        finally:
            cursor.close()

    def foreign_keys_enabled(self) -> bool:
        cursor = self.execute("PRAGMA foreign_keys")
        try:
            row = cursor.fetchone()
        finally:
            cursor.close()
        return bool(row and row[0])
