"""Command implementations for winzig CLI."""

from .query import handle_query
from .schema import handle_migrate, handle_status
from .scripts import handle_split

__all__ = [
    "handle_split",
    "handle_migrate",
    "handle_status",
    "handle_query",
]
