"""Eloquent-style query vocabulary over SQLAlchemy ``select()``."""
from .builder import QueryBuilder as QueryBuilder
from .builder import fold_conditions as fold_conditions
from .builder import raw_clause as raw_clause
from .columns import ColumnResolver as ColumnResolver
from .operators import compare as compare
from .search import search_condition as search_condition

__all__ = ["QueryBuilder", "ColumnResolver", "compare", "fold_conditions", "raw_clause", "search_condition"]
