"""Turn query results into the plain dicts sent as the DataTables ``data`` array."""
from typing import Any, Iterable, Optional

from sqlalchemy import inspect
from sqlalchemy.orm import Mapper


def _is_mapped_instance(value: Any) -> bool:
    state = inspect(value, raiseerr=False)
    return state is not None and isinstance(getattr(state, "mapper", None), Mapper)


def serialize_instance(instance: Any, _seen: Optional[set] = None) -> dict:
    """Serialize loaded column attributes and loaded relationships of a mapped instance.

    Unloaded attributes are skipped so serialization never triggers lazy loads;
    an instance already on the current path serializes to its columns only.
    """
    seen = set() if _seen is None else _seen
    state = inspect(instance)
    mapper = state.mapper
    unloaded = state.unloaded
    result = {}
    for prop in mapper.column_attrs:
        if prop.key not in unloaded:
            result[prop.key] = getattr(instance, prop.key)
    if id(instance) in seen:
        return result
    seen = seen | {id(instance)}
    for rel in mapper.relationships:
        if rel.key in unloaded:
            continue
        value = getattr(instance, rel.key)
        if value is None:
            result[rel.key] = None
        elif rel.uselist:
            result[rel.key] = [serialize_instance(item, seen) for item in value]
        else:
            result[rel.key] = serialize_instance(value, seen)
    return result


def serialize_row(row: Any) -> Any:
    """Rows become dicts keyed by label; a selected entity contributes its fields."""
    if _is_mapped_instance(row):
        return serialize_instance(row)
    mapping = getattr(row, "_mapping", None)
    if mapping is None:
        return row
    result = {}
    for key, value in mapping.items():
        if _is_mapped_instance(value):
            result.update(serialize_instance(value))
        else:
            result[key if isinstance(key, str) else str(key)] = value
    return result


def serialize_rows(rows: Iterable[Any]) -> list:
    return [serialize_row(row) for row in rows]
