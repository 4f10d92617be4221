"""Resolve configured column names (``col``, ``table.col``, ``relation.col``) to SQL expressions."""
from __future__ import annotations

import logging
import re
from typing import Optional

from sqlalchemy import MetaData, Table
from sqlalchemy.exc import NoSuchTableError
from sqlalchemy.orm import Session

from serverside_datatable.exceptions import ConfigurationError, UnknownColumnError, UnknownRelationError, UnknownTableError
from serverside_datatable.query import relations

logger = logging.getLogger(__name__)

_ALIAS = re.compile(r"^(?P<expr>.+?)\s+as\s+(?P<alias>[\w$]+)$", re.IGNORECASE)


def split_alias(ref: str) -> tuple[str, Optional[str]]:
    """Split ``"orders.total as amount"`` into ``("orders.total", "amount")``."""
    match = _ALIAS.match(ref.strip())
    if not match:
        return ref.strip(), None
    return match.group("expr").strip(), match.group("alias")


class ColumnResolver:
    """Name lookups for one query source.

    `source` is a mapped class, a `Table`, or a table name that gets reflected
    through `bind`. Tables referenced by name are looked up in the source's
    `MetaData` first and reflected into a private `MetaData` otherwise, so
    reflection never adds tables to an application's declarative metadata.
    """

    def __init__(self, source, *, metadata: Optional[MetaData] = None, bind=None, reflected: Optional[MetaData] = None):
        self.bind = bind
        self._reflected = reflected if reflected is not None else MetaData()
        self.metadata = metadata
        if isinstance(source, str):
            source = self.table(source)
        self.source = source
        self.mapper = relations.mapper_for(source)
        if self.mapper is not None:
            self.base_table = self.mapper.local_table
        elif isinstance(source, Table):
            self.base_table = source
        else:
            raise ConfigurationError(f"Cannot query from {source!r}")
        if self.metadata is None:
            self.metadata = self.base_table.metadata

    @property
    def source_name(self) -> str:
        return self.mapper.class_.__name__ if self.mapper is not None else self.base_table.name

    def for_source(self, source) -> "ColumnResolver":
        """Resolver for a related source sharing this resolver's metadata and bind."""
        return ColumnResolver(source, metadata=self.metadata, bind=self.bind, reflected=self._reflected)

    def table(self, name: str) -> Table:
        name = name.strip()
        base = getattr(self, "base_table", None)
        if base is not None and base.name == name:
            return base
        for metadata in (self.metadata, self._reflected):
            if metadata is not None and name in metadata.tables:
                return metadata.tables[name]
        if self.bind is None:
            raise UnknownTableError(name)
        connection = self.bind.connection() if isinstance(self.bind, Session) else self.bind
        try:
            table = Table(name, self._reflected, autoload_with=connection)
        except NoSuchTableError:
            raise UnknownTableError(name) from None
        logger.debug("Reflected table %s", name)
        return table

    def resolve(self, ref):
        """Return the column expression for `ref`; non-string references pass through."""
        if not isinstance(ref, str):
            return ref
        prefix, _, name = ref.strip().rpartition(".")
        if not prefix or prefix == self.base_table.name:
            return self.own_column(name)
        if self.mapper is not None:
            try:
                target = relations.target_class(self.source, prefix)
            except UnknownRelationError:
                pass
            else:
                return self.for_source(target).own_column(name)
        return self.table_column(self.table(prefix), name)

    def own_column(self, name: str):
        name = name.strip()
        if self.mapper is not None:
            if name in self.mapper.column_attrs:
                return getattr(self.mapper.class_, name)
            for prop in self.mapper.column_attrs:
                if any(getattr(col, "name", None) == name for col in prop.columns):
                    return getattr(self.mapper.class_, prop.key)
            raise UnknownColumnError(name, self.source_name)
        return self.table_column(self.base_table, name)

    def table_column(self, table: Table, name: str):
        try:
            return table.c[name.strip()]
        except KeyError:
            raise UnknownColumnError(name, table.name) from None

    def all_columns(self, prefix: Optional[str] = None) -> list:
        """Columns for ``*`` (the source) or ``prefix.*`` (a relation or table)."""
        if not prefix or prefix == self.base_table.name:
            if self.mapper is not None:
                return [getattr(self.mapper.class_, prop.key) for prop in self.mapper.column_attrs]
            return list(self.base_table.c)
        if self.mapper is not None:
            try:
                target = relations.target_class(self.source, prefix)
            except UnknownRelationError:
                pass
            else:
                return self.for_source(target).all_columns()
        return list(self.table(prefix).c)
