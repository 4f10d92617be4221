"""Comparison operators accepted in configuration, mapped to SQLAlchemy column methods."""
from typing import Any, Callable

from sqlalchemy import not_

from serverside_datatable.exceptions import UnsupportedOperatorError


def _between(column, value):
    low, high = value
    return column.between(low, high)


OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "=": lambda c, v: c == v,
    "==": lambda c, v: c == v,
    "!=": lambda c, v: c != v,
    "<>": lambda c, v: c != v,
    "<": lambda c, v: c < v,
    "<=": lambda c, v: c <= v,
    ">": lambda c, v: c > v,
    ">=": lambda c, v: c >= v,
    "like": lambda c, v: c.like(v),
    "not like": lambda c, v: c.not_like(v),
    "ilike": lambda c, v: c.ilike(v),
    "not ilike": lambda c, v: c.not_ilike(v),
    "in": lambda c, v: c.in_(v),
    "not in": lambda c, v: c.not_in(v),
    "between": _between,
    "not between": lambda c, v: not_(_between(c, v)),
    "is": lambda c, v: c.is_(v),
    "is not": lambda c, v: c.is_not(v),
}

# Short names used by query-string style filters (`?age[gte]=18`).
ALIASES = {
    "eq": "=",
    "neq": "!=",
    "gt": ">",
    "gte": ">=",
    "lt": "<",
    "lte": "<=",
    "notin": "not in",
}

# Operators whose right-hand side is a list of values.
LIST_OPERATORS = {"in", "not in", "between", "not between"}


def normalize_operator(operator: Any) -> str:
    if not isinstance(operator, str):
        raise UnsupportedOperatorError(operator)
    key = " ".join(operator.strip().lower().split())
    key = ALIASES.get(key, key)
    if key not in OPERATORS:
        raise UnsupportedOperatorError(operator)
    return key


def compare(column, operator: Any, value: Any):
    """Build ``column <operator> value``; equality against ``None`` becomes IS [NOT] NULL."""
    key = normalize_operator(operator)
    if value is None and key in ("=", "=="):
        return column.is_(None)
    if value is None and key in ("!=", "<>"):
        return column.is_not(None)
    if key in LIST_OPERATORS and isinstance(value, (set, frozenset, range)):
        value = list(value)
    return OPERATORS[key](column, value)
