import logging
from typing import Optional

from serverside_datatable.domain import DataTableRequest, DataTableResponse
from serverside_datatable.helpers.base import BaseDataTableHelper, join_reference, requested_order_item
from serverside_datatable.query import QueryBuilder
from serverside_datatable.query.search import contains

logger = logging.getLogger(__name__)


def _as_list(value) -> list:
    if value is None:
        return []
    return list(value) if isinstance(value, (list, tuple)) else [value]


class EloquentModelDataTableHelper(BaseDataTableHelper):
    """Server-side tables over a mapped model configured with query method names.

    Unlike `ModelDataTableHelper`, conditions name builder methods directly:
    ``with`` entries carry a ``conditionList`` of ``{function, column,
    operator?, value?}`` applied to the eager load, and ``customFunction``
    entries call relation methods such as ``whereHas`` or ``whereDoesntHave``.
    """

    def get_server_side_data_table(self, model, config: dict, request: Optional[DataTableRequest] = None) -> list:
        request = self.request_or_default(request)
        with self.session_scope() as session:
            builder = self.build_query(session, model, config, request, search=True)
            self.apply_ordering(builder, config, request)
            self.paginate(builder, request)
            return self.fetch(builder, session)

    def count_filtered_server_side_data_table(self, model, config: dict,
                                              request: Optional[DataTableRequest] = None) -> int:
        request = self.request_or_default(request)
        with self.session_scope() as session:
            return self.build_query(session, model, config, request, search=True).count()

    def get_data_with_join_tables(self, model, config: dict, request: Optional[DataTableRequest] = None) -> list:
        request = self.request_or_default(request)
        with self.session_scope() as session:
            builder = self.build_query(session, model, config, request, search=False)
            self.apply_ordering(builder, config, request)
            return self.fetch(builder, session)

    def count_total(self, model) -> int:
        with self.session_scope() as session:
            return QueryBuilder(model, session).count()

    def make(self, model, config: dict, request: Optional[DataTableRequest] = None) -> DataTableResponse:
        request = self.request_or_default(request)
        data = self.get_server_side_data_table(model, config, request)
        filtered = self.count_filtered_server_side_data_table(model, config, request)
        return self.respond(request, self.count_total(model), filtered, data)

    def build_query(self, session, model, config: dict, request: DataTableRequest, *, search: bool) -> QueryBuilder:
        builder = QueryBuilder(model, session)
        self.apply_where(builder, config.get("where") or [])
        self.apply_with(builder, config)
        self.apply_custom_functions(builder, config.get("customFunction") or [])
        if search and request.search_value:
            self.apply_search(builder, config, request.search_value)
        self.apply_select(builder, config.get("select") or [])
        return builder

    @staticmethod
    def apply_where(builder: QueryBuilder, conditions: list) -> None:
        for where in conditions:
            column = where["column"]
            operator = where.get("operator", "=")
            value = where.get("value")
            if where.get("isRaw"):
                sql = column if "?" in column else f"{column} {operator} ?"
                builder.where_raw(sql, [value])
            elif where.get("isArray"):
                builder.where_in(join_reference(builder, column), value)
            else:
                builder.where(join_reference(builder, column), operator, value)

    # eager loads -------------------------------------------------------

    def apply_with(self, builder: QueryBuilder, config: dict) -> None:
        for entry in config.get("with") or []:
            relation = entry.get("relation")
            if not relation:
                logger.warning("Skipping eager load without a relation: %r", entry)
                continue
            if "conditionList" in entry or "nested" in entry:
                builder.with_({relation: lambda q, e=entry: self._apply_condition_list(q, e)})
            else:
                builder.with_(relation)

    def _apply_condition_list(self, builder: QueryBuilder, entry: dict) -> None:
        for condition in entry.get("conditionList") or []:
            for function in _as_list(condition.get("function")):
                self._apply_function(builder, condition, function)
        if entry.get("nested"):
            self.apply_with(builder, entry["nested"])

    @staticmethod
    def _apply_function(builder: QueryBuilder, condition: dict, function: str) -> None:
        value = condition.get("value")
        for column in _as_list(condition.get("column")):
            if value is None:
                builder.apply(function, column)
            elif condition.get("operator") is not None:
                builder.apply(function, column, condition["operator"], value)
            else:
                builder.apply(function, column, value)

    # relation methods --------------------------------------------------

    def apply_custom_functions(self, builder: QueryBuilder, entries: list) -> None:
        for entry in entries:
            if not entry.get("relation") or not entry.get("function"):
                logger.warning("Skipping customFunction without relation and function: %r", entry)
                continue
            for relation in _as_list(entry["relation"]):
                self._call_relation_method(builder, relation, entry["function"], entry)

    def _call_relation_method(self, builder: QueryBuilder, relation: str, function: str, entry: dict) -> None:
        builder.apply(function, relation, lambda q: self._apply_nested_functions(q, entry))

    def _apply_nested_functions(self, builder: QueryBuilder, entry: dict) -> None:
        for condition in entry.get("conditionList") or []:
            for function in _as_list(condition.get("function")):
                if QueryBuilder.is_relation_method(function):
                    for relation in _as_list(condition.get("column")):
                        self._call_relation_method(builder, relation, function, condition)
                else:
                    self._apply_function(builder, condition, function)
        if entry.get("nested"):
            self.apply_custom_functions(builder, _as_list(entry["nested"]))

    # search ------------------------------------------------------------

    def apply_search(self, builder: QueryBuilder, config: dict, value: str) -> None:
        group = builder.new_query()
        for item in config.get("select") or []:
            group.or_where_expression(contains(group.column(join_reference(builder, item[0])), value))
        self._apply_custom_search(group, config.get("search") or [], value)
        builder.where_expression(group.where_clause())

    def _apply_custom_search(self, builder: QueryBuilder, entries: list, value: str) -> None:
        for entry in entries:
            relation = entry.get("relation")
            if relation:
                function = entry.get("function") or "orWhereHas"
                builder.apply(function, relation, lambda q, e=entry: self._search_columns(q, e, value))
            else:
                self._search_columns(builder, entry, value)

    def _search_columns(self, builder: QueryBuilder, entry: dict, value: str) -> None:
        for column in _as_list(entry.get("column")):
            builder.or_where_expression(contains(builder.column(column), value))
        if entry.get("nested"):
            self._apply_custom_search(builder, _as_list(entry["nested"]), value)

    # select / order ----------------------------------------------------

    @staticmethod
    def apply_select(builder: QueryBuilder, items: list) -> None:
        for item in items:
            ref = join_reference(builder, item[0])
            builder.add_select(f"{ref} as {item[1]}" if len(item) > 1 and item[1] else ref)

    @staticmethod
    def apply_ordering(builder: QueryBuilder, config: dict, request: DataTableRequest) -> None:
        item = requested_order_item(config.get("order"), request)
        if item is not None:
            builder.order_by(join_reference(builder, item[0]), request.primary_order.dir)
            return
        for order in config.get("orderBy") or []:
            builder.order_by(join_reference(builder, order["column"]), order.get("direction") or "asc")
