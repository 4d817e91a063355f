"""Forward-only row cursor returned by database and gateway queries."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING, Any, Callable, Iterator

from loguru import logger

from ..core.exceptions import DatabaseError

if TYPE_CHECKING:
    from ..core.types import ResourceAddress
    from ..gateway.notify import ChangeNotifier


class RowCursor:
    """A positioned, forward-only cursor over query results.

    The cursor starts before the first row. ``move_to_next()`` advances it and
    ``cursor[i]`` reads column ``i`` of the current row, so a positioned cursor
    can be handed directly to ``Entity.decode``.

    Cursors hold a database resource and must be closed; use them as context
    managers.

    Example:
        with db.query("notes", ["_id", "title"]) as cursor:
            while cursor.move_to_next():
                print(cursor[0], cursor[1])
    """

    def __init__(self, cursor: sqlite3.Cursor):
        """Initialize with an executed sqlite3 cursor.

        Args:
            cursor: Cursor on which a query has already been executed.
        """
        self._cursor = cursor
        self._row: sqlite3.Row | tuple | None = None
        self._closed = False
        self._listeners: list[Callable[["RowCursor"], None]] = []
        self._unregister: Callable[[], None] | None = None
        self.changed = False
        self.columns: list[str] = [d[0] for d in cursor.description] if cursor.description else []

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def row(self) -> sqlite3.Row | tuple | None:
        """Current row, or None before the first / after the last row."""
        return self._row

    def move_to_next(self) -> bool:
        """Advance to the next row.

        Returns:
            True if the cursor is positioned on a row afterwards.
        """
        self._check_open()
        self._row = self._cursor.fetchone()
        return self._row is not None

    def __getitem__(self, index: int | str) -> Any:
        if self._row is None:
            raise DatabaseError("Cursor is not positioned on a row")
        return self._row[index]

    def __len__(self) -> int:
        return len(self.columns)

    def is_null(self, index: int | str) -> bool:
        return self[index] is None

    def fetch_one(self) -> sqlite3.Row | tuple | None:
        """Advance and return the new current row (None when exhausted)."""
        self.move_to_next()
        return self._row

    def fetch_many(self, size: int) -> list:
        self._check_open()
        rows = self._cursor.fetchmany(size)
        self._row = rows[-1] if rows else None
        return rows

    def fetch_all(self) -> list:
        """Return all remaining rows."""
        self._check_open()
        rows = self._cursor.fetchall()
        self._row = None
        return rows

    def __iter__(self) -> Iterator:
        while self.move_to_next():
            yield self._row

    def close(self) -> None:
        """Release the underlying cursor and stop listening for changes."""
        if self._closed:
            return
        self._closed = True
        self._row = None
        if self._unregister is not None:
            self._unregister()
            self._unregister = None
        self._cursor.close()

    def __enter__(self) -> "RowCursor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def set_notification_address(self, notifier: ChangeNotifier, address: ResourceAddress) -> None:
        """Mark this cursor as changed whenever ``address`` is notified."""
        if self._unregister is not None:
            self._unregister()
        handle = notifier.register(address, self._on_change)
        self._unregister = lambda: notifier.unregister(handle)

    def on_change(self, callback: Callable[["RowCursor"], None]) -> None:
        """Register a callback invoked when the underlying data changes."""
        self._listeners.append(callback)

    def _on_change(self, address: ResourceAddress) -> None:
        logger.debug(f"Cursor data changed: {address}")
        self.changed = True
        for callback in list(self._listeners):
            callback(self)

    def _check_open(self) -> None:
        if self._closed:
            raise DatabaseError("Cursor is closed")
