from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class TableDefinition:
    """A FlexibleDataTable setup declared in a YAML file.

    `model` is an import path of the form ``"package.module:ClassName"``;
    `conditions` are dynamic-condition dicts (``{"method": ..., "args": [...]}``)
    applied to the query before search and ordering.
    """

    name: str
    model: str
    searchable: list[str] = field(default_factory=list)
    searchable_relations: dict[str, list[str]] = field(default_factory=dict)
    orderable: list[str] = field(default_factory=list)
    text_columns: list[str] = field(default_factory=list)
    numeric_columns: list[str] = field(default_factory=list)
    with_relations: list[Any] = field(default_factory=list)
    conditions: list[dict] = field(default_factory=list)
    default_length: Optional[int] = None
