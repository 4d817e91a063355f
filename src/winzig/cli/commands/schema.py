"""Schema commands for winzig CLI."""

from pathlib import Path

from ...core.config import Config


def _apply_overrides(args, config: Config) -> None:
    if getattr(args, "db", None):
        config.db_path = Path(args.db)
    if getattr(args, "scripts", None):
        config.scripts_dir = Path(args.scripts)
    if getattr(args, "version", None) is not None:
        config.schema_version = args.version
    if getattr(args, "strict", False):
        config.skip_missing_upgrades = False


def handle_migrate(args, config: Config) -> None:
    """Create or upgrade the configured database.

    Args:
        args: Parsed command arguments.
        config: Application configuration.
    """
    _apply_overrides(args, config)
    db = config.open_database()

    try:
        if not db.migration_steps:
            print(f"Database already at version {db.get_version()}")
            return

        for step in db.migration_steps:
            if step.skipped:
                print(f"  - version {step.version}: skipped ({step.resource_name} not found)")
            else:
                print(f"  ✓ version {step.version}: {step.resource_name} ({step.statements} statements)")
        print(f"Database now at version {db.get_version()}")
    finally:
        db.close()


def handle_status(args, config: Config) -> None:
    """Print version, foreign key state and tables of the database.

    Args:
        args: Parsed command arguments.
        config: Application configuration.
    """
    from ...store.database import Database

    _apply_overrides(args, config)
    db = Database(config.db_path, read_only=config.read_only)
    db.connect()

    try:
        tables = db.table_names()
        print("winzig Database Status")
        print("=" * 50)
        print(f"Path: {db.path}")
        print(f"Version: {db.get_version()}")
        print(f"Foreign keys: {'on' if db.foreign_keys_enabled() else 'off'}")
        print(f"Tables: {len(tables)}")
        for table in tables:
            print(f"  • {table}")
    finally:
        db.close()
