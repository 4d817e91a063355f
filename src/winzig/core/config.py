"""Configuration management for winzig."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .types import DEFAULT_SCHEME

if TYPE_CHECKING:
    from ..gateway.provider import DataGateway
    from ..store.database import Database

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"Invalid boolean for {name}: {value!r}")


def _default_db_path() -> Path:
    """Get default database path."""
    data_dir = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
    return data_dir / "winzig" / "winzig.db"


@dataclass
class Config:
    """Main application configuration."""

    db_path: Path = field(default_factory=_default_db_path)
    scripts_dir: Path = field(default_factory=lambda: Path("schema"))
    schema_version: int = 1
    authority: str = "winzig"
    scheme: str = DEFAULT_SCHEME
    # Missing upgrade_schema_<n> scripts are skipped instead of failing
    skip_missing_upgrades: bool = True
    # Empty-table addresses may run caller supplied SELECT statements
    allow_raw_queries: bool = True
    read_only: bool = False
    literal_aware_scripts: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        config = cls()

        if path := os.environ.get("WINZIG_DB_PATH"):
            config.db_path = Path(path)

        if scripts := os.environ.get("WINZIG_SCRIPTS_DIR"):
            config.scripts_dir = Path(scripts)

        if version := os.environ.get("WINZIG_SCHEMA_VERSION"):
            config.schema_version = int(version)

        if authority := os.environ.get("WINZIG_AUTHORITY"):
            config.authority = authority

        if scheme := os.environ.get("WINZIG_SCHEME"):
            config.scheme = scheme

        if skip := os.environ.get("WINZIG_SKIP_MISSING_UPGRADES"):
            config.skip_missing_upgrades = _parse_bool("WINZIG_SKIP_MISSING_UPGRADES", skip)

        if raw := os.environ.get("WINZIG_ALLOW_RAW_QUERIES"):
            config.allow_raw_queries = _parse_bool("WINZIG_ALLOW_RAW_QUERIES", raw)

        if read_only := os.environ.get("WINZIG_READ_ONLY"):
            config.read_only = _parse_bool("WINZIG_READ_ONLY", read_only)

        if literal_aware := os.environ.get("WINZIG_LITERAL_AWARE_SCRIPTS"):
            config.literal_aware_scripts = _parse_bool("WINZIG_LITERAL_AWARE_SCRIPTS", literal_aware)

        if level := os.environ.get("WINZIG_LOG_LEVEL"):
            config.log_level = level.upper()

        return config

    def open_database(self) -> Database:
        """Create and connect the configured database.

        Returns:
            Connected Database, migrated to ``schema_version``.
        """
        from ..store.database import Database
        from ..store.resources import DirectoryScriptSource

        db = Database(
            self.db_path,
            version=self.schema_version,
            source=DirectoryScriptSource(self.scripts_dir),
            read_only=self.read_only,
            skip_missing_upgrades=self.skip_missing_upgrades,
            literal_aware_scripts=self.literal_aware_scripts,
        )
        db.connect()
        return db

    def gateway(self, db: Database) -> DataGateway:
        """Create a gateway over ``db`` with the configured authority."""
        from ..gateway.provider import DataGateway

        return DataGateway(
            db,
            self.authority,
            scheme=self.scheme,
            allow_raw_queries=self.allow_raw_queries,
        )
