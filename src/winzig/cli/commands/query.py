"""Gateway query command for winzig CLI."""

import json
from pathlib import Path

from ...core.config import Config
from ...store.database import Database


def handle_query(args, config: Config) -> None:
    """Run a gateway query and print each row as JSON.

    Args:
        args: Parsed command arguments with uri, projection, where, arg and
            order_by.
        config: Application configuration.
    """
    if args.db:
        config.db_path = Path(args.db)

    db = Database(config.db_path, read_only=config.read_only)
    db.connect()

    try:
        gateway = config.gateway(db)
        with gateway.query(
            args.uri,
            projection=args.projection or None,
            selection=args.where,
            args=args.arg or (),
            order_by=args.order_by,
        ) as cursor:
            count = 0
            for row in cursor:
                print(json.dumps(dict(zip(cursor.columns, tuple(row))), default=_json_default))
                count += 1
        print(f"{count} row(s)")
    finally:
        db.close()


def _json_default(value):
    if isinstance(value, bytes):
        return value.hex()
    raise TypeError(f"Cannot serialize {type(value).__name__}")
