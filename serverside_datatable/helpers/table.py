import logging
from typing import Optional

from sqlalchemy import MetaData, or_

from serverside_datatable.domain import DataTableRequest, DataTableResponse
from serverside_datatable.exceptions import ConfigurationError
from serverside_datatable.helpers.base import BaseDataTableHelper, requested_order_item
from serverside_datatable.query import QueryBuilder
from serverside_datatable.query.search import contains

logger = logging.getLogger(__name__)


def _qualified(item) -> str:
    """``["orders", "total", "amount"]`` -> ``"orders.total as amount"``."""
    if len(item) < 2:
        raise ConfigurationError(f"Select item {item!r} needs a table and a column")
    ref = f"{item[0]}.{item[1]}"
    return f"{ref} as {item[2]}" if len(item) > 2 and item[2] else ref


class DataTableHelper(BaseDataTableHelper):
    """Server-side tables over plain database tables, optionally joined.

    `config` holds ``table``, ``select`` (``[table, column, alias?]``), ``order``
    (``[table, column]``, indexed by the widget's order column), ``where``
    (``{column, operator, value}``) and ``orderBy`` (``{column, direction}``).
    `join` holds parallel ``tables``/``fields``/``joinType`` lists: entry ``i``
    joins ``tables[i][0]`` on ``tables[i][0].fields[i][0] = tables[i][1].fields[i][1]``.

    Tables are taken from `metadata` when given and reflected otherwise.
    """

    def __init__(self, session_factory, *, metadata: Optional[MetaData] = None, max_length: Optional[int] = None):
        super().__init__(session_factory, max_length=max_length)
        self.metadata = metadata

    def get_server_side_data_table(self, config: dict, join: Optional[dict] = None,
                                   request: Optional[DataTableRequest] = None) -> list:
        request = self.request_or_default(request)
        with self.session_scope() as session:
            builder = self.build_query(session, config, join)
            self.apply_search(builder, config, request)
            self.apply_ordering(builder, config, request)
            self.paginate(builder, request)
            return self.fetch(builder, session)

    def count_filtered_server_side_data_table(self, config: dict, join: Optional[dict] = None,
                                              request: Optional[DataTableRequest] = None) -> int:
        request = self.request_or_default(request)
        with self.session_scope() as session:
            builder = self.build_query(session, config, join)
            self.apply_search(builder, config, request)
            return builder.count()

    def get_data_with_join_tables(self, config: dict, join: Optional[dict] = None,
                                  request: Optional[DataTableRequest] = None) -> list:
        request = self.request_or_default(request)
        with self.session_scope() as session:
            builder = self.build_query(session, config, join)
            self.apply_ordering(builder, config, request)
            return self.fetch(builder, session)

    def count_total(self, config: dict) -> int:
        with self.session_scope() as session:
            return QueryBuilder(self._table_name(config), session, metadata=self.metadata).count()

    def make(self, config: dict, join: Optional[dict] = None,
             request: Optional[DataTableRequest] = None) -> DataTableResponse:
        request = self.request_or_default(request)
        data = self.get_server_side_data_table(config, join, request)
        filtered = self.count_filtered_server_side_data_table(config, join, request)
        return self.respond(request, self.count_total(config), filtered, data)

    @staticmethod
    def _table_name(config: dict) -> str:
        table = config.get("table")
        if not table:
            raise ConfigurationError("Table configuration needs a 'table'")
        return table

    def build_query(self, session, config: dict, join: Optional[dict]) -> QueryBuilder:
        builder = QueryBuilder(self._table_name(config), session, metadata=self.metadata)
        for where in config.get("where") or []:
            builder.where(where["column"], where.get("operator", "="), where.get("value"))
        for item in config.get("select") or []:
            builder.add_select(_qualified(item))
        self.apply_joins(builder, join or {})
        return builder

    @staticmethod
    def apply_joins(builder: QueryBuilder, join: dict) -> None:
        types = join.get("joinType", join.get("join_type")) or []
        fields = join.get("fields") or []
        for index, tables in enumerate(join.get("tables") or []):
            if index >= len(fields):
                raise ConfigurationError(f"Join {tables!r} has no matching 'fields' entry")
            first, second = tables[0], tables[1]
            local, foreign = fields[index][0], fields[index][1]
            join_type = (types[index] if index < len(types) else "inner") or "inner"
            method = {"left": builder.left_join, "right": builder.right_join}.get(join_type.lower(), builder.join)
            method(first, f"{first}.{local}", "=", f"{second}.{foreign}")

    @staticmethod
    def apply_search(builder: QueryBuilder, config: dict, request: DataTableRequest) -> None:
        value = request.search_value
        if not value:
            return
        columns = [builder.column(f"{item[0]}.{item[1]}") for item in config.get("select") or []]
        if columns:
            builder.where_expression(or_(*[contains(column, value) for column in columns]))

    @staticmethod
    def apply_ordering(builder: QueryBuilder, config: dict, request: DataTableRequest) -> None:
        item = requested_order_item(config.get("order"), request)
        if item is not None:
            builder.order_by(f"{item[0]}.{item[1]}", request.primary_order.dir)
            return
        for order in config.get("orderBy") or []:
            builder.order_by(order["column"], order.get("direction") or "asc")
