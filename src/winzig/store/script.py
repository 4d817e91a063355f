"""SQL script tokenizer.

Splits schema and migration scripts into executable statements. Statements
must end with a semicolon at the end of a line (after comments are removed
and the line is trimmed). ``/* ... */`` block comments are removed before
``--`` line comments, so a line comment never hides the start or end of a
block comment.

By default comment markers are recognised everywhere, including inside
quoted string literals, so ``'--'`` cannot be used in a value. Pass
``literal_aware=True`` to keep comment markers that appear inside
single-quoted strings or double-quoted identifiers.

Example:
    from winzig.store.script import parse_sql_script

    parse_sql_script("A;\\n-- comment\\nB;\\n/* x\\ny */C;")
    # ['A;', 'B;', 'C;']
"""

from __future__ import annotations

from typing import Iterable, Protocol

from loguru import logger

STATEMENT_TERMINATOR = ";"
LINE_COMMENT = "--"
BLOCK_START = "/*"
BLOCK_END = "*/"


class Executor(Protocol):
    """Anything that can execute a single SQL statement."""

    def execute(self, sql: str, *args) -> object: ...


def strip_block_comments(script: str) -> str:
    """Remove ``/* ... */`` comments, an unterminated block runs to the end."""
    out: list[str] = []
    pos = 0
    while True:
        start = script.find(BLOCK_START, pos)
        if start == -1:
            out.append(script[pos:])
            break
        out.append(script[pos:start])
        end = script.find(BLOCK_END, start + 2)
        if end == -1:
            break
        pos = end + 2
    return "".join(out)


def _strip_comments_literal_aware(script: str) -> str:
    out: list[str] = []
    quote: str | None = None
    n = 0
    length = len(script)
    while n < length:
        current = script[n]
        pair = script[n : n + 2]

        if quote is not None:
            out.append(current)
            if current == quote:
                # doubled quote is an escaped quote, stay inside the literal
                if n + 1 < length and script[n + 1] == quote:
                    out.append(quote)
                    n += 1
                else:
                    quote = None
            n += 1
        elif current in ("'", '"'):
            quote = current
            out.append(current)
            n += 1
        elif pair == BLOCK_START:
            end = script.find(BLOCK_END, n + 2)
            n = length if end == -1 else end + 2
        elif pair == LINE_COMMENT:
            end = script.find("\n", n)
            n = length if end == -1 else end
        else:
            out.append(current)
            n += 1
    return "".join(out)


def parse_sql_script(script: str, literal_aware: bool = False) -> list[str]:
    """Split a script into statements.

    Args:
        script: Script text, possibly with comments and Windows line endings.
        literal_aware: Keep comment markers inside quoted literals.

    Returns:
        Statements in script order, each ending with the terminator. Lines
        of a multi-line statement are joined with ``\\n``.
    """
    if literal_aware:
        text = _strip_comments_literal_aware(script)
    else:
        text = strip_block_comments(script)

    statements: list[str] = []
    buffer: list[str] = []

    for line in text.split("\n"):
        if line.endswith("\r"):
            line = line[:-1]

        if not literal_aware:
            idx = line.find(LINE_COMMENT)
            if idx != -1:
                line = line[:idx]

        fragment = line.strip()
        if not fragment:
            continue

        buffer.append(fragment)
        if fragment.endswith(STATEMENT_TERMINATOR):
            statements.append("\n".join(buffer))
            buffer = []

    if buffer:
        logger.warning(f"Discarding unterminated statement at end of script: {buffer[0]!r}")

    return statements


def execute_statements(executor: Executor, statements: str | Iterable[str], literal_aware: bool = False) -> int:
    """Execute statements one after the other.

    The first failing statement aborts the rest and its error propagates
    unchanged. No rollback is attempted.

    Args:
        executor: Connection (or cursor) used to run each statement.
        statements: Script text to tokenize, or already split statements.
        literal_aware: Tokenizer mode when ``statements`` is a string.

    Returns:
        Number of statements executed.
    """
    if isinstance(statements, str):
        statements = parse_sql_script(statements, literal_aware=literal_aware)

    count = 0
    for statement in statements:
        if not statement or not statement.strip():
            continue
        logger.debug(f"Executing statement: {statement!r}")
        executor.execute(statement)
        count += 1
    return count
