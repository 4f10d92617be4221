import logging
from typing import Optional

from sqlalchemy import func, literal_column

from serverside_datatable.domain import DataTableRequest, DataTableResponse
from serverside_datatable.exceptions import ConfigurationError
from serverside_datatable.helpers.base import (
    BaseDataTableHelper,
    join_reference,
    requested_order_item,
    split_reference,
)
from serverside_datatable.query import QueryBuilder, compare, fold_conditions
from serverside_datatable.query.search import contains

logger = logging.getLogger(__name__)


class ModelDataTableHelper(BaseDataTableHelper):
    """Server-side tables over a mapped model, with ``relation.column`` references.

    `config` keys:

    - ``where``: ``{column, operator, value, encrypted?, isRaw?, isArray?}``;
      a ``relation.column`` becomes a ``where_has`` on the relation.
    - ``select``: ``[column]`` or ``[column, alias]``; relation columns join
      the related table once.
    - ``search``: ``{isColumn, condition, column, operator, value}`` compares two
      columns when the lowercased search value equals ``condition``.
    - ``order`` / ``orderBy``: as for `DataTableHelper`, relation columns allowed.
    - ``with``: ``{relation, selectColumn?, nested?}`` eager loads.
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
        self.apply_with(builder, config.get("with") or [])
        if search and request.search_value:
            self.apply_search(builder, config, request.search_value)
        self.apply_select(builder, config.get("select") or [])
        return builder

    # where -------------------------------------------------------------

    def apply_where(self, builder: QueryBuilder, conditions: list) -> None:
        for where in conditions:
            column = where["column"]
            if where.get("isRaw") and "?" in column:
                builder.where_raw(column, [where.get("value")])
                continue
            relation, name = split_reference(column)
            if relation:
                builder.where_has(relation, lambda q, w=where, n=name: self._where_on(q, w, n))
            else:
                self._where_on(builder, where, name)

    @staticmethod
    def _where_on(builder: QueryBuilder, where: dict, name: str) -> None:
        operator = where.get("operator", "=")
        value = where.get("value")
        if where.get("isRaw"):
            expression = literal_column(name)
        else:
            expression = builder.column(name)
        if where.get("encrypted"):
            expression = func.md5(expression)
        if where.get("isArray"):
            builder.where_in(expression, value)
        else:
            builder.where_expression(compare(expression, operator, value))

    # with --------------------------------------------------------------

    def apply_with(self, builder: QueryBuilder, entries: list) -> None:
        for entry in entries:
            relation = entry.get("relation")
            if not relation:
                logger.warning("Skipping eager load without a relation: %r", entry)
                continue
            builder.with_({relation: lambda q, e=entry: self._constrain_loaded(q, e)})

    def _constrain_loaded(self, builder: QueryBuilder, entry: dict) -> None:
        for column in entry.get("selectColumn") or []:
            builder.add_select(column)
        nested = entry.get("nested")
        if nested:
            self.apply_with(builder, nested if isinstance(nested, list) else [nested])

    # search ------------------------------------------------------------

    def apply_search(self, builder: QueryBuilder, config: dict, value: str) -> None:
        terms = []
        for search in config.get("search") or []:
            if search.get("isColumn") and str(search.get("condition", "")).lower() == value.lower():
                first = join_reference(builder, search["column"])
                second = join_reference(builder, search["value"])
                terms.append(("and", compare(builder.column(first), search.get("operator", "="), builder.column(second))))
        for item in config.get("select") or []:
            ref = join_reference(builder, item[0])
            terms.append(("or", contains(builder.column(ref), value)))
        builder.where_expression(fold_conditions(terms))

    # select / order ----------------------------------------------------

    @staticmethod
    def apply_select(builder: QueryBuilder, items: list) -> None:
        for item in items:
            if not item:
                raise ConfigurationError("Empty select item")
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
