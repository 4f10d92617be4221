from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


def normalize_direction(value: Any) -> str:
    """Return ``"desc"`` for a case-insensitive "desc", ``"asc"`` for anything else."""
    if isinstance(value, str) and value.strip().lower() == "desc":
        return "desc"
    return "asc"


@dataclass(frozen=True)
class OrderRequest:
    """One `order[i]` entry: the index of a widget column and a direction."""

    column: int
    dir: str = "asc"


@dataclass(frozen=True)
class ColumnRequest:
    """One `columns[i]` entry as sent by the widget."""

    data: Optional[str] = None
    name: Optional[str] = None
    searchable: bool = True
    orderable: bool = True
    search_value: Optional[str] = None
    search_regex: bool = False


@dataclass(frozen=True)
class DataTableRequest:
    """Server-side processing parameters sent by the DataTables widget.

    `start`/`length` stay ``None`` when the widget did not send them so the
    helpers can tell "no pagination requested" apart from an explicit zero.
    `params` keeps the full unflattened request for application extras.
    """

    draw: int = 1
    start: Optional[int] = None
    length: Optional[int] = None
    search_value: Optional[str] = None
    search_regex: bool = False
    order: tuple[OrderRequest, ...] = ()
    columns: tuple[ColumnRequest, ...] = ()
    params: Mapping[str, Any] = field(default_factory=dict)

    @property
    def has_pagination(self) -> bool:
        return self.start is not None and self.length is not None

    @property
    def primary_order(self) -> Optional[OrderRequest]:
        return self.order[0] if self.order else None

    def get(self, key: str, default: Any = None) -> Any:
        return self.params.get(key, default)
