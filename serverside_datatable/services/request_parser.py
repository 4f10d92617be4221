import logging
import re
from typing import Any, Iterable, Mapping, Optional, Union

from serverside_datatable.domain import ColumnRequest, DataTableRequest, OrderRequest
from serverside_datatable.domain.request import normalize_direction

logger = logging.getLogger(__name__)

_BRACKETS = re.compile(r"\[([^\]]*)\]")

ParamSource = Union[Mapping[str, Any], Iterable[tuple[str, Any]]]


def _split_key(key: str) -> list[str]:
    """``"order[0][column]"`` -> ``["order", "0", "column"]``."""
    head, _, rest = key.partition("[")
    if not rest:
        return [key]
    return [head] + _BRACKETS.findall("[" + rest)


def _listify(node):
    """Turn dicts keyed ``"0", "1", ...`` into lists, recursively."""
    if isinstance(node, dict):
        node = {k: _listify(v) for k, v in node.items()}
        if node and all(isinstance(k, str) and k.isdigit() for k in node):
            return [node[k] for k in sorted(node, key=int)]
        return node
    if isinstance(node, list):
        return [_listify(v) for v in node]
    return node


def unflatten(params: ParamSource) -> dict:
    """Rebuild the nested structure jQuery serialises as bracket keys."""
    items = params.items() if isinstance(params, Mapping) else params
    result: dict = {}
    for key, value in items:
        parts = _split_key(str(key))
        node = result
        for index, part in enumerate(parts):
            last = index == len(parts) - 1
            if part == "":
                part = str(len(node))
            if last:
                node[part] = value
            else:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = {} if child is None else {"0": child}
                    node[part] = child
                node = child
    return _listify(result)


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip() == "":
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        logger.warning("Ignoring non-numeric DataTables parameter %r", value)
        return None


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes", "on")


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text != "" else None


def _entries(node) -> list:
    if isinstance(node, list):
        return node
    if isinstance(node, dict):
        return list(node.values())
    return []


class DataTableRequestParser:
    """Parse DataTables server-side parameters into a DataTableRequest.

    Accepts the flat bracket form sent as a query string or form body
    (``order[0][column]=1``) as a mapping or as ``(key, value)`` pairs, and the
    already nested form sent as JSON. Unparseable numbers are treated as missing.
    """

    def parse(self, params: Optional[ParamSource]) -> DataTableRequest:
        if params is None:
            return DataTableRequest()
        if isinstance(params, Mapping) and not any("[" in str(k) for k in params):
            data = _listify(dict(params))
        else:
            data = unflatten(params)

        search = data.get("search")
        search = search if isinstance(search, dict) else {}

        order = []
        for entry in _entries(data.get("order")):
            if not isinstance(entry, dict):
                continue
            column = _as_int(entry.get("column"))
            if column is None:
                continue
            order.append(OrderRequest(column=column, dir=normalize_direction(entry.get("dir"))))

        columns = []
        for entry in _entries(data.get("columns")):
            if not isinstance(entry, dict):
                continue
            column_search = entry.get("search")
            column_search = column_search if isinstance(column_search, dict) else {}
            columns.append(ColumnRequest(
                data=_as_text(entry.get("data")),
                name=_as_text(entry.get("name")),
                searchable=_as_bool(entry.get("searchable"), True),
                orderable=_as_bool(entry.get("orderable"), True),
                search_value=_as_text(column_search.get("value")),
                search_regex=_as_bool(column_search.get("regex")),
            ))

        draw = _as_int(data.get("draw"))
        return DataTableRequest(
            draw=draw if draw is not None else 1,
            start=_as_int(data.get("start")),
            length=_as_int(data.get("length")),
            search_value=_as_text(search.get("value")),
            search_regex=_as_bool(search.get("regex")),
            order=tuple(order),
            columns=tuple(columns),
            params=data,
        )
