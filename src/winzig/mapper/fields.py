"""Typed column descriptors for entities.

Every field has a kind from the closed FieldKind set and a nullable flag.
Validation, storage encoding and decoding are selected by kind:

=========  =========================  ==============================
Kind       Python value               Stored as
=========  =========================  ==============================
BOOLEAN    bool                       integer 0 / 1
INT8..64   int (signed range checked) integer
FLOAT32    float (single precision)   real
FLOAT64    float                      real
STRING     str                        text
BLOB       bytes                      blob
TIMESTAMP  datetime (UTC)             integer epoch milliseconds
ENUM       member of ``enum_type``    text, the member name
=========  =========================  ==============================

Non-nullable fields start at the kind's zero value and reject None;
nullable fields start at None.
"""

from __future__ import annotations

import math
import struct
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from ..core.exceptions import InvalidFieldValueError

if TYPE_CHECKING:
    from .entity import Entity

ID_COLUMN = "_id"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


class FieldKind(Enum):
    """Storage type of a field."""

    BOOLEAN = "boolean"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    BLOB = "blob"
    TIMESTAMP = "timestamp"
    ENUM = "enum"


_INT_BITS = {
    FieldKind.INT8: 8,
    FieldKind.INT16: 16,
    FieldKind.INT32: 32,
    FieldKind.INT64: 64,
}


# =============================================================================
# Validation (Python value -> normalized Python value)
# =============================================================================


def _validate_boolean(field: Field, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise field.invalid(value)


def _validate_int(field: Field, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise field.invalid(value)
    bits = _INT_BITS[field.kind]
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    if not low <= value <= high:
        raise InvalidFieldValueError(
            f"Value {value} out of range for {field.kind.value} field {field.name!r}"
        )
    return value


def _validate_float32(field: Field, value: Any) -> float:
    value = _validate_float64(field, value)
    # infinities pass through, finite values must stay finite
    try:
        rounded = struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        rounded = math.inf
    if math.isinf(rounded) and not math.isinf(value):
        raise InvalidFieldValueError(
            f"Value {value} out of range for float32 field {field.name!r}"
        )
    return rounded


def _validate_float64(field: Field, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise field.invalid(value)
    try:
        value = float(value)
    except OverflowError:
        raise field.invalid(value) from None
    # SQLite stores nan as NULL
    if math.isnan(value):
        raise field.invalid(value)
    return value


def _validate_string(field: Field, value: Any) -> str:
    if not isinstance(value, str):
        raise field.invalid(value)
    return value


def _validate_blob(field: Field, value: Any) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise field.invalid(value)
    return bytes(value)


def _validate_timestamp(field: Field, value: Any) -> datetime:
    if not isinstance(value, datetime):
        raise field.invalid(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    # storage keeps milliseconds only
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def _validate_enum(field: Field, value: Any) -> Enum:
    if not isinstance(value, field.enum_type):
        raise field.invalid(value)
    return value


_VALIDATORS: dict[FieldKind, Callable[[Field, Any], Any]] = {
    FieldKind.BOOLEAN: _validate_boolean,
    FieldKind.INT8: _validate_int,
    FieldKind.INT16: _validate_int,
    FieldKind.INT32: _validate_int,
    FieldKind.INT64: _validate_int,
    FieldKind.FLOAT32: _validate_float32,
    FieldKind.FLOAT64: _validate_float64,
    FieldKind.STRING: _validate_string,
    FieldKind.BLOB: _validate_blob,
    FieldKind.TIMESTAMP: _validate_timestamp,
    FieldKind.ENUM: _validate_enum,
}


# =============================================================================
# Storage encoding (Python value -> column value) and decoding
# =============================================================================


def _encode_timestamp(value: datetime) -> int:
    return (value - EPOCH) // _MILLISECOND


_ENCODERS: dict[FieldKind, Callable[[Any], Any]] = {
    FieldKind.BOOLEAN: lambda v: 1 if v else 0,
    FieldKind.TIMESTAMP: _encode_timestamp,
    FieldKind.ENUM: lambda v: v.name,
}


def _decode_enum(field: Field, raw: Any) -> Enum:
    try:
        return field.enum_type[raw]
    except KeyError:
        raise InvalidFieldValueError(
            f"Unknown {field.enum_type.__name__} name {raw!r} in column {field.name!r}"
        ) from None


_DECODERS: dict[FieldKind, Callable[[Field, Any], Any]] = {
    FieldKind.BOOLEAN: lambda f, raw: int(raw) != 0,
    FieldKind.INT8: lambda f, raw: int(raw),
    FieldKind.INT16: lambda f, raw: int(raw),
    FieldKind.INT32: lambda f, raw: int(raw),
    FieldKind.INT64: lambda f, raw: int(raw),
    FieldKind.FLOAT32: lambda f, raw: float(raw),
    FieldKind.FLOAT64: lambda f, raw: float(raw),
    FieldKind.STRING: lambda f, raw: raw if isinstance(raw, str) else str(raw),
    FieldKind.BLOB: lambda f, raw: bytes(raw),
    FieldKind.TIMESTAMP: lambda f, raw: EPOCH + timedelta(milliseconds=int(raw)),
    FieldKind.ENUM: _decode_enum,
}


def _zero(field: Field) -> Any:
    kind = field.kind
    if kind is FieldKind.BOOLEAN:
        return False
    if kind in _INT_BITS:
        return 0
    if kind in (FieldKind.FLOAT32, FieldKind.FLOAT64):
        return 0.0
    if kind is FieldKind.STRING:
        return ""
    if kind is FieldKind.BLOB:
        return b""
    if kind is FieldKind.TIMESTAMP:
        return EPOCH
    return next(iter(field.enum_type))


# =============================================================================
# Field descriptor
# =============================================================================


class Field:
    """A typed, named column of an Entity.

    Fields are declared as class attributes of an Entity subclass. The
    declaration order fixes each field's ordinal, which is both its position
    in the projection and its column offset when decoding a row.
    """

    def __init__(
        self,
        name: str,
        kind: FieldKind,
        nullable: bool = False,
        enum_type: type[Enum] | None = None,
    ):
        """Initialize a column descriptor.

        Args:
            name: Column name in the table.
            kind: Storage type.
            nullable: Whether None is an allowed value.
            enum_type: Enum class for ENUM fields.
        """
        if kind is FieldKind.ENUM:
            if enum_type is None or not issubclass(enum_type, Enum):
                raise TypeError(f"Enum field {name!r} needs an Enum type")
            if not len(enum_type):
                raise TypeError(f"Enum field {name!r} needs an Enum with members")
        elif enum_type is not None:
            raise TypeError(f"enum_type is only valid for enum fields, not {kind.value}")

        self.name = name
        self.kind = kind
        self.nullable = nullable
        self.enum_type = enum_type
        self.attr: str | None = None
        self.ordinal: int = -1
        self.owner: type | None = None

    def bind(self, owner: type, ordinal: int) -> None:
        """Attach to the Entity class declaring this field."""
        if self.owner is not None and self.owner is not owner:
            raise TypeError(
                f"Field {self.name!r} is already declared on {self.owner.__name__}"
            )
        self.owner = owner
        self.ordinal = ordinal

    def __set_name__(self, owner: type, attr: str) -> None:
        self.attr = attr

    def __get__(self, instance: Entity | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return instance._values[self.ordinal]

    def __set__(self, instance: Entity, value: Any) -> None:
        instance._values[self.ordinal] = self.validate(value)

    def default(self) -> Any:
        """Initial value for a new entity."""
        return None if self.nullable else _zero(self)

    def validate(self, value: Any) -> Any:
        """Check and normalize a value assigned to this field.

        Raises:
            InvalidFieldValueError: If the value is None for a non-nullable
                field or does not fit the field's kind.
        """
        if value is None:
            if self.nullable:
                return None
            raise InvalidFieldValueError(f"Attempt to set None on non-nullable field {self.name!r}")
        return _VALIDATORS[self.kind](self, value)

    def to_storage(self, value: Any) -> Any:
        """Convert a Python value to its column representation."""
        if value is None:
            return None
        encoder = _ENCODERS.get(self.kind)
        return encoder(value) if encoder else value

    def from_storage(self, raw: Any) -> Any:
        """Convert a column value read from a row to a Python value.

        Raises:
            InvalidFieldValueError: If the column is NULL for a non-nullable
                field or holds an unknown enum name.
        """
        if raw is None:
            if self.nullable:
                return None
            raise InvalidFieldValueError(
                f"Value for non-nullable field {self.name!r} at column {self.ordinal} is null"
            )
        return _DECODERS[self.kind](self, raw)

    def invalid(self, value: Any) -> InvalidFieldValueError:
        return InvalidFieldValueError(
            f"Invalid value {value!r} ({type(value).__name__}) for "
            f"{self.kind.value} field {self.name!r}"
        )

    def __repr__(self) -> str:
        suffix = ", nullable" if self.nullable else ""
        return f"Field({self.name!r}, {self.kind.value}{suffix}, ordinal={self.ordinal})"


# =============================================================================
# Factories
# =============================================================================


def boolean(name: str, nullable: bool = False) -> Field:
    return Field(name, FieldKind.BOOLEAN, nullable)


def int8(name: str, nullable: bool = False) -> Field:
    return Field(name, FieldKind.INT8, nullable)


def int16(name: str, nullable: bool = False) -> Field:
    return Field(name, FieldKind.INT16, nullable)


def int32(name: str, nullable: bool = False) -> Field:
    return Field(name, FieldKind.INT32, nullable)


def int64(name: str, nullable: bool = False) -> Field:
    return Field(name, FieldKind.INT64, nullable)


def float32(name: str, nullable: bool = False) -> Field:
    return Field(name, FieldKind.FLOAT32, nullable)


def float64(name: str, nullable: bool = False) -> Field:
    return Field(name, FieldKind.FLOAT64, nullable)


def string(name: str, nullable: bool = False) -> Field:
    return Field(name, FieldKind.STRING, nullable)


def blob(name: str, nullable: bool = False) -> Field:
    return Field(name, FieldKind.BLOB, nullable)


def timestamp(name: str, nullable: bool = False) -> Field:
    return Field(name, FieldKind.TIMESTAMP, nullable)


def enum(name: str, enum_type: type[Enum], nullable: bool = False) -> Field:
    return Field(name, FieldKind.ENUM, nullable, enum_type=enum_type)
