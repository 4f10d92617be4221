"""LIKE predicates for the widget's search box."""
from typing import Optional

from sqlalchemy import String, Text, UnicodeText, cast, func
from sqlalchemy.types import NullType

ESCAPE_CHAR = "\\"

# Dialects whose LOWER() accepts non-text columns without an explicit cast.
_IMPLICIT_TEXT_DIALECTS = {"mysql", "mariadb", "sqlite"}


def escape_like(value: str) -> str:
    return (
        value.replace(ESCAPE_CHAR, ESCAPE_CHAR * 2)
        .replace("%", ESCAPE_CHAR + "%")
        .replace("_", ESCAPE_CHAR + "_")
    )


def like_pattern(value: str) -> str:
    return f"%{escape_like(value)}%"


def _is_textual(column) -> bool:
    column_type = getattr(column, "type", None)
    return column_type is None or isinstance(column_type, (String, NullType))


def as_text(column, dialect_name: Optional[str] = None):
    if dialect_name == "postgresql":
        return cast(column, Text)
    if dialect_name == "mssql":
        return cast(column, UnicodeText)
    return cast(column, String)


def contains(column, value: str):
    """``column LIKE '%value%'``, casting non-text columns to text first."""
    if not _is_textual(column):
        column = as_text(column)
    return column.like(like_pattern(value), escape=ESCAPE_CHAR)


def search_condition(column, value: str, *, dialect_name: Optional[str] = None, kind: Optional[str] = None):
    """Case-insensitive ``LOWER(expr) LIKE '%value%'``.

    `kind` is ``"text"`` for columns known to hold text, ``"numeric"`` for
    columns that must be cast before LOWER(), or ``None`` to decide from the
    dialect: PostgreSQL, SQL Server and unknown dialects cast, MySQL, MariaDB
    and SQLite use the column as is.
    """
    if kind == "text":
        expr = column
    elif kind == "numeric" or dialect_name not in _IMPLICIT_TEXT_DIALECTS:
        expr = as_text(column, dialect_name)
    else:
        expr = column
    return func.lower(expr).like(like_pattern(value.lower()), escape=ESCAPE_CHAR)
