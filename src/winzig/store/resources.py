"""Named script resources for schema creation and upgrades.

A ScriptSource resolves a resource name such as ``create_schema`` or
``upgrade_schema_3`` to its content. ``None`` means the resource does not
exist; any other read failure propagates.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import Mapping, Protocol, runtime_checkable


@runtime_checkable
class ScriptSource(Protocol):
    """Resolves resource names to script text or raw bytes."""

    def read_text(self, name: str) -> str | None:
        """Return the UTF-8 text of resource ``name``, or None if missing."""
        ...

    def read_bytes(self, name: str) -> bytes | None:
        """Return the raw content of resource ``name``, or None if missing."""
        ...


class DirectoryScriptSource:
    """Scripts stored as files in a directory.

    ``read_text("create_schema")`` reads ``<root>/create_schema.sql``. A name
    that already carries an extension is looked up as an exact file name.
    """

    def __init__(self, root: Path | str, suffix: str = ".sql"):
        """Initialize with script directory.

        Args:
            root: Directory containing the scripts.
            suffix: Extension appended to resource names.
        """
        self.root = Path(root)
        self.suffix = suffix

    def _resolve(self, name: str) -> Path | None:
        for candidate in (self.root / f"{name}{self.suffix}", self.root / name):
            if candidate.is_file():
                return candidate
        return None

    def read_text(self, name: str) -> str | None:
        path = self._resolve(name)
        return path.read_text(encoding="utf-8") if path else None

    def read_bytes(self, name: str) -> bytes | None:
        path = self._resolve(name)
        return path.read_bytes() if path else None

    def __repr__(self) -> str:
        return f"DirectoryScriptSource({str(self.root)!r})"


class PackageScriptSource:
    """Scripts shipped as package data, read through importlib.resources."""

    def __init__(self, package: str, subdir: str = "", suffix: str = ".sql"):
        """Initialize with package location.

        Args:
            package: Importable package holding the scripts.
            subdir: Optional directory inside the package.
            suffix: Extension appended to resource names.
        """
        self.package = package
        self.subdir = subdir
        self.suffix = suffix

    def _resolve(self, name: str):
        base = resources.files(self.package)
        if self.subdir:
            base = base.joinpath(self.subdir)
        for candidate in (base.joinpath(f"{name}{self.suffix}"), base.joinpath(name)):
            if candidate.is_file():
                return candidate
        return None

    def read_text(self, name: str) -> str | None:
        resource = self._resolve(name)
        return resource.read_text(encoding="utf-8") if resource else None

    def read_bytes(self, name: str) -> bytes | None:
        resource = self._resolve(name)
        return resource.read_bytes() if resource else None

    def __repr__(self) -> str:
        return f"PackageScriptSource({self.package!r}, subdir={self.subdir!r})"


class MappingScriptSource:
    """In-memory scripts keyed by resource name."""

    def __init__(self, scripts: Mapping[str, str | bytes] | None = None):
        self.scripts: dict[str, str | bytes] = dict(scripts or {})

    def read_text(self, name: str) -> str | None:
        value = self.scripts.get(name)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def read_bytes(self, name: str) -> bytes | None:
        value = self.scripts.get(name)
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    def __repr__(self) -> str:
        return f"MappingScriptSource({sorted(self.scripts)!r})"
