import logging
from typing import Optional, Sequence

from sqlalchemy import or_

from serverside_datatable.domain import DataTableRequest, DataTableResponse
from serverside_datatable.exceptions import ConfigurationError
from serverside_datatable.helpers.base import BaseDataTableHelper, requested_order_item
from serverside_datatable.query import QueryBuilder
from serverside_datatable.query.builder import is_callback
from serverside_datatable.query.search import contains

logger = logging.getLogger(__name__)

def resolve_arguments(args) -> list:
    """Invoke callable arguments so configurations can defer values until query time."""
    if args is None:
        return []
    if not isinstance(args, (list, tuple)):
        args = [args]
    return [arg() if is_callback(arg) else arg for arg in args]

def call_method(builder: QueryBuilder, method: str, args: Sequence) -> None:
    """``builder.<method>(*args)``; a where over ``[[col, value], ...]`` pairs uses the array form."""
    args = list(args)
    if (
        len(args) > 1
        and QueryBuilder.method_name(method) in ("where", "or_where")
        and all(isinstance(arg, (list, tuple)) for arg in args)
    ):
        builder.apply(method, args)
    else:
        builder.apply(method, *args)

def _apply_entries(builder: QueryBuilder, entries: list) -> None:
    for entry in entries:
        call_method(builder, entry["method"], resolve_arguments(entry.get("args")))

def _group_entries(group: dict) -> list:
    entries = list(group.get("conditions") or [])
    entries.extend(value for key, value in group.items() if key not in ("childMethod", "conditions") and isinstance(value, dict))
    return entries

def _apply_groups(builder: QueryBuilder, condition: dict) -> None:
    for group in condition.get("nestedMethod") or []:
        boolean = "or" if QueryBuilder.method_name(group.get("childMethod", "where")).startswith("or_") else "and"
        for entry in _group_entries(group):
            child = builder.new_query()
            call_method(child, entry.get("method", "where"), resolve_arguments(entry.get("args")))
            builder.where_expression(child.where_clause(), boolean)

def _apply_nested_relation(builder: QueryBuilder, condition: dict, args: list) -> None:
    if args:
        call_method(builder, "where", args)
    for nested in condition.get("nestedMethod") or []:
        builder.apply(
            nested.get("childMethod", "whereHas"),
            nested["relation"],
            lambda sub, n=nested: _apply_entries(sub, n.get("nestedConditions") or []),
        )


def apply_condition(builder: QueryBuilder, condition: dict, request: DataTableRequest) -> bool:
    """Apply one dynamic condition to `builder`.

    Returns True when the condition was a ``whereColumn`` whose ``condition``
    keyword equals the search value; callers then skip the text search.
    """
    method = condition.get("method")
    if not method:
        raise ConfigurationError(f"Dynamic condition without a method: {condition!r}")
    args = resolve_arguments(condition.get("args"))

    if method == "select":
        relations = condition.get("relation") or []
        if relations:
            builder.with_(list(relations))
        if args:
            builder.select(*args)
    elif method == "sortBy":
        column = requested_order_item(args, request)
        if column is None:
            logger.debug("sortBy skipped: no usable order index in request")
            return False
        builder.order_by(column, request.primary_order.dir)
    elif method == "nestedCondition":
        builder.apply(condition.get("parentMethod", "where"), lambda q: _apply_groups(q, condition))
    elif method == "whereRelation":
        child = condition.get("childMethod", "where")
        builder.apply(
            condition.get("parentMethod", "whereHas"),
            condition["relation"],
            lambda q: call_method(q, child, args),
        )
    elif method == "whereHas":
        builder.where_has(condition["relation"], lambda q: call_method(q, "where", args))
    elif method == "whereColumn":
        search = (request.search_value or "").lower()
        if not search or search != str(condition.get("condition", "")).lower():
            return False
        builder.where_column(*args)
        return True
    elif method == "nestedRelationCondition":
        builder.apply(
            condition.get("parentMethod", "whereHas"),
            condition["relation"],
            lambda q: _apply_nested_relation(q, condition, args),
        )
    else:
        builder.apply(method, *args)
    return False


class DynamicModelDataTableHelper(BaseDataTableHelper):
    """Server-side tables driven by an ordered list of dynamic conditions.

    Each condition is ``{"method": ..., "args": [...]}`` plus method-specific
    keys. ``select``, ``sortBy``, ``nestedCondition``, ``whereRelation``,
    ``whereHas``, ``whereColumn`` and ``nestedRelationCondition`` are handled
    by `apply_condition`; any other method name is dispatched onto the query builder.
    The global search covers `search_columns` on the model and, for each
    ``relation -> columns`` entry of `search_relationships`, an ``orWhereHas``.
    """

    def __init__(
        self,
        model,
        dynamic_conditions: Optional[list] = None,
        search_columns: Optional[list] = None,
        search_relationships: Optional[dict] = None,
        *,
        session_factory,
        max_length: Optional[int] = None,
    ):
        super().__init__(session_factory, max_length=max_length)
        self.model = model
        self.dynamic_conditions = list(dynamic_conditions or [])
        self.search_columns = list(search_columns or [])
        self.search_relationships = dict(search_relationships or {})

    def get_server_side_data_table(self, request: Optional[DataTableRequest] = None, query: bool = False):
        """Rows for the requested page, or the prepared (unbound) builder when `query` is true."""
        request = self.request_or_default(request)
        if query:
            return self.paginate(self.build_query(None, request), request)
        with self.session_scope() as session:
            builder = self.paginate(self.build_query(session, request), request)
            return self.fetch(builder, session)

    def count_filtered_server_side_data_table(self, request: Optional[DataTableRequest] = None) -> int:
        request = self.request_or_default(request)
        with self.session_scope() as session:
            return self.build_query(session, request).count()

    def count_total(self) -> int:
        with self.session_scope() as session:
            return QueryBuilder(self.model, session).count()

    def make(self, request: Optional[DataTableRequest] = None) -> DataTableResponse:
        request = self.request_or_default(request)
        data = self.get_server_side_data_table(request)
        filtered = self.count_filtered_server_side_data_table(request)
        return self.respond(request, self.count_total(), filtered, data)

    def build_query(self, session, request: DataTableRequest) -> QueryBuilder:
        """Apply every condition, then the text search unless a ``whereColumn`` keyword consumed it."""
        builder = QueryBuilder(self.model, session)
        keyword_matched = False
        for condition in self.dynamic_conditions:
            keyword_matched = apply_condition(builder, condition, request) or keyword_matched
        if request.search_value and not keyword_matched:
            self.apply_search(builder, request.search_value)
        return builder

    def apply_search(self, builder: QueryBuilder, value: str) -> None:
        group = builder.new_query()
        for column in self.search_columns:
            group.or_where_expression(contains(group.column(column), value))
        for relation, columns in self.search_relationships.items():
            group.or_where_has(relation, lambda q, cols=columns: _search_any(q, cols, value))
        builder.where_expression(group.where_clause())

def _search_any(builder: QueryBuilder, columns: list, value: str) -> None:
    if columns:
        builder.where_expression(or_(*[contains(builder.column(column), value) for column in columns]))
