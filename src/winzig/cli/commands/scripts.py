"""Script inspection command for winzig CLI."""

from pathlib import Path

from ...core.config import Config
from ...store.script import parse_sql_script


def handle_split(args, config: Config) -> None:
    """Print the statements the tokenizer finds in a script file.

    Args:
        args: Parsed command arguments with file and literal_aware.
        config: Application configuration.
    """
    script = Path(args.file).read_text(encoding="utf-8")
    literal_aware = args.literal_aware or config.literal_aware_scripts
    statements = parse_sql_script(script, literal_aware=literal_aware)

    for n, statement in enumerate(statements, start=1):
        print(f"-- statement {n}")
        print(statement)
    print(f"-- {len(statements)} statement(s)")
