"""Type definitions for winzig."""

import re
from dataclasses import dataclass, replace
from urllib.parse import quote, unquote, urlsplit

from .exceptions import InvalidAddressError

DEFAULT_SCHEME = "content"

_ID_PATTERN = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class ResourceAddress:
    """Parsed form of a ``scheme://authority[/table[/id]]`` address.

    An empty ``table`` addresses the database as a whole and is only
    meaningful for raw read queries.
    """

    authority: str
    table: str = ""
    id: int | None = None
    scheme: str = DEFAULT_SCHEME

    @classmethod
    def parse(cls, uri: "str | ResourceAddress", authority: str | None = None) -> "ResourceAddress":
        """Parse an address string.

        Both ``content://ns/table/7`` and the scheme-less ``ns/table/7`` are
        accepted.

        Args:
            uri: Address to parse. Already parsed addresses are re-validated.
            authority: Expected authority; ``None`` accepts any.

        Returns:
            Parsed ResourceAddress.

        Raises:
            InvalidAddressError: If the authority does not match, the address
                has a query, fragment or empty segment, the path has more than
                two segments or the id segment is not a base-10 non-negative
                integer.
        """
        if isinstance(uri, ResourceAddress):
            uri = str(uri)

        if "://" in uri:
            parts = urlsplit(uri)
            scheme = parts.scheme or DEFAULT_SCHEME
            found_authority = parts.netloc
            path = parts.path.removeprefix("/")
            if parts.query or parts.fragment:
                raise InvalidAddressError(f"Query or fragment not allowed in address: {uri!r}")
        else:
            scheme = DEFAULT_SCHEME
            found_authority, _, path = uri.partition("/")
            if "?" in uri or "#" in uri:
                raise InvalidAddressError(f"Query or fragment not allowed in address: {uri!r}")

        if authority is not None and found_authority != authority:
            raise InvalidAddressError(
                f"Expected authority {authority!r}, got {found_authority!r} in {uri!r}"
            )
        if not found_authority:
            raise InvalidAddressError(f"No authority in address: {uri!r}")

        # a trailing slash is allowed, empty segments are not
        path = path.removesuffix("/")
        segments = [unquote(s) for s in path.split("/")] if path else []
        if "" in segments:
            raise InvalidAddressError(f"Empty path segment in address: {uri!r}")
        if len(segments) > 2:
            raise InvalidAddressError(f"Address path too long: {uri!r}")

        table = segments[0] if segments else ""
        row_id = None
        if len(segments) == 2:
            if not _ID_PATTERN.fullmatch(segments[1]):
                raise InvalidAddressError(f"Not a valid id: {segments[1]!r}")
            row_id = int(segments[1])

        return cls(authority=found_authority, table=table, id=row_id, scheme=scheme)

    @property
    def is_raw(self) -> bool:
        """True when no table is addressed."""
        return self.table == ""

    def with_table(self, table: str) -> "ResourceAddress":
        return replace(self, table=table, id=None)

    def with_id(self, row_id: int) -> "ResourceAddress":
        """Return the address of a single row of this table."""
        if not self.table:
            raise InvalidAddressError(f"Cannot add an id to an address without table: {self}")
        return replace(self, id=row_id)

    def base(self) -> "ResourceAddress":
        """Return the address without the id segment."""
        return replace(self, id=None)

    def is_ancestor_of(self, other: "ResourceAddress") -> bool:
        """Check whether ``other`` equals this address or lies below it."""
        if (self.scheme, self.authority) != (other.scheme, other.authority):
            return False
        if not self.table:
            return True
        if self.table != other.table:
            return False
        return self.id is None or self.id == other.id

    def __str__(self) -> str:
        """Convert to string representation."""
        return content_uri(self.authority, *self.segments(), scheme=self.scheme)

    def segments(self) -> list[str]:
        result = []
        if self.table:
            result.append(self.table)
            if self.id is not None:
                result.append(str(self.id))
        return result


def content_uri(authority: str, *segments: object, scheme: str = DEFAULT_SCHEME) -> str:
    """Build an address string from an authority and path segments.

    Args:
        authority: Namespace of the address.
        *segments: Path segments, converted with ``str()``.
        scheme: Address scheme.

    Returns:
        Address such as ``content://authority/table/7``.
    """
    path = "".join(f"/{quote(str(s), safe='')}" for s in segments)
    return f"{scheme}://{authority}{path}"


def append_to_uri(uri: str, *segments: object) -> str:
    """Append path segments to an existing address string."""
    path = "".join(f"/{quote(str(s), safe='')}" for s in segments)
    return uri.rstrip("/") + path
