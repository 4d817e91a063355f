"""Core types, configuration and errors for winzig."""

from .config import Config
from .exceptions import (
    CardinalityError,
    DatabaseError,
    EntityStateError,
    InvalidAddressError,
    InvalidFieldValueError,
    MigrationError,
    WinzigError,
)
from .types import DEFAULT_SCHEME, ResourceAddress, append_to_uri, content_uri

__all__ = [
    "Config",
    "WinzigError",
    "DatabaseError",
    "MigrationError",
    "InvalidAddressError",
    "InvalidFieldValueError",
    "CardinalityError",
    "EntityStateError",
    "DEFAULT_SCHEME",
    "ResourceAddress",
    "content_uri",
    "append_to_uri",
]
