"""URI-routed CRUD gateway over a Database.

Addresses have the form ``scheme://authority[/table[/id]]``:

- ``content://ns`` addresses the database itself. Only queries are allowed
  and ``selection`` is run as a raw read statement.
- ``content://ns/notes`` addresses a table.
- ``content://ns/notes/7`` addresses the row with ``_id = 7``.

The raw query path runs caller supplied SQL. It is read-only (writes are
rejected by SQLite) but otherwise unrestricted, so a gateway must not be
exposed to untrusted callers. Disable it with ``allow_raw_queries=False``.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from loguru import logger

from ..core.exceptions import InvalidAddressError
from ..core.types import DEFAULT_SCHEME, ResourceAddress
from ..mapper.fields import ID_COLUMN
from ..store.cursor import RowCursor
from ..store.database import Database
from .notify import ChangeNotifier

_BY_ID = f"{ID_COLUMN} = ?"

AddressLike = str | ResourceAddress


class DataGateway:
    """Exposes table CRUD through resource addresses.

    Example:
        gateway = DataGateway(db, "com.example.notes")
        address = gateway.insert("content://com.example.notes/notes", {"title": "Hi"})
        with gateway.query(address, ["_id", "title"]) as cursor:
            cursor.move_to_next()
    """

    def __init__(
        self,
        db: Database,
        authority: str,
        notifier: ChangeNotifier | None = None,
        scheme: str = DEFAULT_SCHEME,
        allow_raw_queries: bool = True,
    ):
        """Initialize with database and address namespace.

        Args:
            db: Connected database.
            authority: Namespace every address must carry.
            notifier: Change notifier, a private one is created if omitted.
            scheme: Scheme used for addresses built by this gateway.
            allow_raw_queries: Permit raw statements on the database address.
        """
        self.db = db
        self.authority = authority
        self.notifier = notifier if notifier is not None else ChangeNotifier()
        self.scheme = scheme
        self.allow_raw_queries = allow_raw_queries

    def base_address(self) -> ResourceAddress:
        """Address of the database as a whole."""
        return ResourceAddress(self.authority, scheme=self.scheme)

    def table_address(self, table: str) -> ResourceAddress:
        """Address of ``table``."""
        return ResourceAddress(self.authority, table, scheme=self.scheme)

    def parse_address(self, uri: AddressLike) -> ResourceAddress:
        """Parse and validate an address against this gateway's authority.

        Raises:
            InvalidAddressError: If the address is malformed or foreign.
        """
        return ResourceAddress.parse(uri, self.authority)

    def query(
        self,
        uri: AddressLike,
        projection: Sequence[str] | None = None,
        selection: str | None = None,
        args: Sequence[Any] = (),
        order_by: str | None = None,
    ) -> RowCursor:
        """Query a table, a single row or (raw) the database.

        For a row address the caller's ``selection`` and ``args`` are
        ignored. For the database address ``selection`` is the statement to
        run and ``projection`` / ``order_by`` are ignored.

        Returns:
            A RowCursor that is flagged as changed when the address is
            notified, until it is closed.

        Raises:
            InvalidAddressError: If the address is invalid, or it is the
                database address and raw queries are disabled or no
                statement was given.
        """
        address = self.parse_address(uri)

        if address.is_raw:
            if not self.allow_raw_queries:
                raise InvalidAddressError(f"Raw queries are disabled, no table in {address}")
            if not selection:
                raise InvalidAddressError(f"Cannot query {address}, no table and no statement")
            cursor = self.db.raw_query(selection, args)
        elif address.id is not None:
            cursor = self.db.query(address.table, projection, _BY_ID, (address.id,), order_by)
        else:
            cursor = self.db.query(address.table, projection, selection, args, order_by)

        cursor.set_notification_address(self.notifier, address)
        return cursor

    def insert(self, uri: AddressLike, values: Mapping[str, Any]) -> ResourceAddress:
        """Insert a row into the addressed table.

        Returns:
            Address of the new row.

        Raises:
            InvalidAddressError: If the address has no table or has an id.
        """
        address = self.parse_address(uri)
        self._require_table(address, "insert")
        if address.id is not None:
            raise InvalidAddressError(f"Cannot insert, address contains id: {address}")

        row_id = self.db.insert(address.table, values)
        logger.debug(f"Gateway insert: {address} -> id={row_id}")
        self.notifier.notify_change(address)
        return address.with_id(row_id)

    def delete(self, uri: AddressLike, selection: str | None = None, args: Sequence[Any] = ()) -> int:
        """Delete the addressed row, or the table rows matching ``selection``.

        Returns:
            Number of deleted rows.
        """
        address = self.parse_address(uri)
        self._require_table(address, "delete")

        if address.id is not None:
            count = self.db.delete(address.table, _BY_ID, (address.id,))
        else:
            count = self.db.delete(address.table, selection, args)

        logger.debug(f"Gateway delete: {address}, rows={count}")
        self.notifier.notify_change(address)
        return count

    def update(
        self,
        uri: AddressLike,
        values: Mapping[str, Any],
        selection: str | None = None,
        args: Sequence[Any] = (),
    ) -> int:
        """Update the addressed row, or the table rows matching ``selection``.

        Returns:
            Number of updated rows.
        """
        address = self.parse_address(uri)
        self._require_table(address, "update")

        if address.id is not None:
            count = self.db.update(address.table, values, _BY_ID, (address.id,))
        else:
            count = self.db.update(address.table, values, selection, args)

        logger.debug(f"Gateway update: {address}, rows={count}")
        self.notifier.notify_change(address)
        return count

    def get_type(self, uri: AddressLike) -> str | None:
        """MIME type of the addressed data; generic query results have none."""
        return None

    @staticmethod
    def _require_table(address: ResourceAddress, operation: str) -> None:
        if address.is_raw:
            raise InvalidAddressError(f"Cannot {operation}, no table provided: {address}")
