import logging
from typing import Optional

from serverside_datatable.domain import TableDefinition

logger = logging.getLogger(__name__)


def _str_list(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


class TableDefinitionParser:
    """Parse a YAML dict into a TableDefinition.

    Responsibility: schema/validation for table definition files.
    It does NOT perform filesystem IO and does NOT import models.
    """

    def parse(self, *, name: str, data: dict) -> Optional[TableDefinition]:
        model = data.get("model")
        if not isinstance(model, str) or ":" not in model:
            logger.warning("Table definition %s needs 'model: package.module:Class'", name)
            return None

        relations = data.get("searchable_relations") or {}
        if not isinstance(relations, dict):
            logger.warning("Table definition %s: searchable_relations must be a mapping", name)
            return None

        conditions = data.get("conditions") or []
        if not all(isinstance(c, dict) and c.get("method") for c in conditions):
            logger.warning("Table definition %s: every condition needs a method", name)
            return None

        default_length = data.get("default_length")
        return TableDefinition(
            name=name,
            model=model,
            searchable=_str_list(data.get("searchable")),
            searchable_relations={str(k): _str_list(v) for k, v in relations.items()},
            orderable=_str_list(data.get("orderable")),
            text_columns=_str_list(data.get("text_columns")),
            numeric_columns=_str_list(data.get("numeric_columns")),
            with_relations=list(data.get("with") or []),
            conditions=[dict(c) for c in conditions],
            default_length=int(default_length) if default_length is not None else None,
        )
