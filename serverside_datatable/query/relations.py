"""Relationship lookups on mapped classes: path walking, EXISTS clauses and counts."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import func, inspect, select
from sqlalchemy.orm import Mapper, RelationshipProperty

from serverside_datatable.exceptions import ConfigurationError, UnknownRelationError


def mapper_for(source) -> Optional[Mapper]:
    """Return the mapper of a mapped class, or None for tables and other selectables."""
    mapper = inspect(source, raiseerr=False)
    return mapper if isinstance(mapper, Mapper) else None


def relationship_property(source, name: str) -> RelationshipProperty:
    mapper = mapper_for(source)
    if mapper is None:
        raise ConfigurationError(f"Relations require a mapped class, got {source!r}")
    try:
        return mapper.relationships[name]
    except KeyError:
        raise UnknownRelationError(name, mapper.class_.__name__) from None


def resolve_path(source, path: str) -> list[tuple[type, RelationshipProperty]]:
    """Walk a dotted relation path and return ``(owner class, relationship)`` per hop."""
    hops = []
    owner = source
    for name in path.split("."):
        prop = relationship_property(owner, name.strip())
        hops.append((mapper_for(owner).class_, prop))
        owner = prop.mapper.class_
    return hops


def target_class(source, path: str) -> type:
    return resolve_path(source, path)[-1][1].mapper.class_


def exists_clause(source, path: str, criterion=None):
    """EXISTS over a (possibly nested) relation path, optionally constrained on the last hop.

    Collections use ``any()``, scalar relations use ``has()``.
    """
    name, _, rest = path.partition(".")
    prop = relationship_property(source, name.strip())
    attr = getattr(mapper_for(source).class_, prop.key)
    inner = exists_clause(prop.mapper.class_, rest, criterion) if rest else criterion
    method = attr.any if prop.uselist else attr.has
    return method(inner) if inner is not None else method()


def count_subquery(source, name: str):
    """Correlated ``SELECT count(*)`` of the rows related through `name`."""
    prop = relationship_property(source, name)
    owner = mapper_for(source).local_table
    if prop.secondary is not None:
        stmt = select(func.count()).select_from(prop.secondary).where(prop.primaryjoin)
    else:
        stmt = select(func.count()).select_from(prop.mapper.local_table).where(prop.primaryjoin)
    return stmt.correlate(owner).scalar_subquery()


def is_relation_path(source, path: str) -> bool:
    if mapper_for(source) is None or not path:
        return False
    try:
        resolve_path(source, path)
    except UnknownRelationError:
        return False
    return True
