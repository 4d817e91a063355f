"""Storage port used by Entity CRUD operations.

Entities perform create / update / delete / query-by-id through an
EntityStore. Two adapters exist, so both access paths share the Entity's
single CRUD implementation:

- DatabaseStore: talks to a Database directly.
- GatewayStore: routes every call through DataGateway resource addresses,
  which also notifies the gateway's change observers.

Entity methods accept a Database or DataGateway as well and adapt it with
``as_entity_store()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Protocol, Sequence, Union, runtime_checkable

from ..core.exceptions import InvalidAddressError
from .fields import ID_COLUMN

if TYPE_CHECKING:
    from ..gateway.provider import DataGateway
    from ..store.cursor import RowCursor
    from ..store.database import Database


@runtime_checkable
class EntityStore(Protocol):
    """Single-table, id-based row operations."""

    def insert(self, table: str, values: Mapping[str, Any]) -> int | None:
        """Insert a row and return its id."""
        ...

    def update_by_id(self, table: str, values: Mapping[str, Any], row_id: int) -> int:
        """Update the row with ``row_id``, return the affected row count."""
        ...

    def delete_by_id(self, table: str, row_id: int) -> int:
        """Delete the row with ``row_id``, return the affected row count."""
        ...

    def query_by_id(self, table: str, projection: Sequence[str], row_id: int) -> RowCursor:
        """Select ``projection`` of the row with ``row_id``."""
        ...


StoreTarget = Union[EntityStore, "Database", "DataGateway"]

_BY_ID = f"{ID_COLUMN} = ?"


class DatabaseStore:
    """EntityStore backed by a Database."""

    def __init__(self, db: Database):
        self.db = db

    def insert(self, table: str, values: Mapping[str, Any]) -> int | None:
        return self.db.insert(table, values)

    def update_by_id(self, table: str, values: Mapping[str, Any], row_id: int) -> int:
        return self.db.update(table, values, _BY_ID, (row_id,))

    def delete_by_id(self, table: str, row_id: int) -> int:
        return self.db.delete(table, _BY_ID, (row_id,))

    def query_by_id(self, table: str, projection: Sequence[str], row_id: int) -> RowCursor:
        return self.db.query(table, projection, _BY_ID, (row_id,))


class GatewayStore:
    """EntityStore that goes through a DataGateway's resource addresses."""

    def __init__(self, gateway: DataGateway):
        self.gateway = gateway

    def insert(self, table: str, values: Mapping[str, Any]) -> int | None:
        address = self.gateway.insert(self.gateway.table_address(table), values)
        return address.id

    def update_by_id(self, table: str, values: Mapping[str, Any], row_id: int) -> int:
        return self.gateway.update(self.gateway.table_address(table).with_id(row_id), values)

    def delete_by_id(self, table: str, row_id: int) -> int:
        return self.gateway.delete(self.gateway.table_address(table).with_id(row_id))

    def query_by_id(self, table: str, projection: Sequence[str], row_id: int) -> RowCursor:
        return self.gateway.query(self.gateway.table_address(table).with_id(row_id), projection)


def as_entity_store(target: StoreTarget, namespace: str | None = None) -> EntityStore:
    """Adapt a Database or DataGateway to the EntityStore port.

    Args:
        target: Store, Database or DataGateway.
        namespace: Entity namespace; a gateway with another authority is
            rejected.

    Raises:
        InvalidAddressError: If the gateway's authority differs from
            ``namespace``.
        TypeError: If ``target`` is none of the supported types.
    """
    from ..gateway.provider import DataGateway
    from ..store.database import Database

    if isinstance(target, DataGateway):
        if namespace and namespace != target.authority:
            raise InvalidAddressError(
                f"Entity namespace {namespace!r} does not match gateway authority {target.authority!r}"
            )
        return GatewayStore(target)
    if isinstance(target, Database):
        return DatabaseStore(target)
    if isinstance(target, EntityStore):
        return target
    raise TypeError(f"Not an entity store: {type(target).__name__}")
