import datetime
import logging
from typing import Optional

from serverside_datatable.domain import DataTableRequest, DataTableResponse
from serverside_datatable.helpers.base import apply_pagination, join_reference, split_reference
from serverside_datatable.query import QueryBuilder, search_condition
from serverside_datatable.query.relations import is_relation_path
from serverside_datatable.services.serializer import serialize_rows

logger = logging.getLogger(__name__)

DEFAULT_LENGTH = 10


class FlexibleDataTable:
    """Fluent server-side table over a mapped model.

    Every dispatchable `QueryBuilder` method is available on the table itself
    (``table.where("status", "completed").with_("customer")``); calls that
    return the builder return the table so chains keep going. `make` applies
    the widget's search, ordering and paging to a copy of the configured query.

    Usage::

        FlexibleDataTable.of(Order, session_factory, request)
            .searchable(["reference", "status"])
            .searchable_relation("customer", ["name", "email"])
            .where("status", "!=", "cancelled")
            .orderable(["reference", "amount", "placed_at"])
            .make()
    """

    def __init__(
        self,
        model,
        session_factory,
        request: Optional[DataTableRequest] = None,
        *,
        default_length: int = DEFAULT_LENGTH,
        max_length: Optional[int] = None,
        financial_year: Optional[int] = None,
    ):
        self.model = model
        self.session_factory = session_factory
        self.request = request if request is not None else DataTableRequest()
        self.default_length = default_length
        self.max_length = max_length
        self.financial_year = financial_year
        self.query = QueryBuilder(model)
        self.searchable_columns: list[str] = []
        self.searchable_relations: dict[str, list[str]] = {}
        self.orderable_columns: list[str] = []
        self.text_column_names: list[str] = []
        self.numeric_column_names: list[str] = []

    @classmethod
    def of(cls, model, session_factory, request: Optional[DataTableRequest] = None, **options) -> "FlexibleDataTable":
        return cls(model, session_factory, request, **options)

    def __getattr__(self, name: str):
        if name.startswith("_") or name not in QueryBuilder.DISPATCHABLE:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")
        method = getattr(self.query, name)

        def forward(*args, **kwargs):
            result = method(*args, **kwargs)
            return self if result is self.query else result

        return forward

    # configuration -----------------------------------------------------

    def searchable(self, columns: list[str]) -> "FlexibleDataTable":
        self.searchable_columns.extend(columns)
        return self

    def searchable_relation(self, relation: str, columns: list[str]) -> "FlexibleDataTable":
        self.searchable_relations[relation] = list(columns)
        return self

    def orderable(self, columns: list[str]) -> "FlexibleDataTable":
        self.orderable_columns = list(columns)
        return self

    def text_columns(self, columns: list[str]) -> "FlexibleDataTable":
        self.text_column_names = list(columns)
        return self

    def numeric_columns(self, columns: list[str]) -> "FlexibleDataTable":
        self.numeric_column_names = list(columns)
        return self

    def apply(self, method: str, *args, **kwargs) -> "FlexibleDataTable":
        result = self.query.apply(method, *args, **kwargs)
        return self if result is self.query else result

    # shortcuts ---------------------------------------------------------

    def profit_loss(self, profit_column: str, loss_column: str, value) -> "FlexibleDataTable":
        """Keep profitable rows for ``"profit"`` and losing rows for ``"loss"``."""
        self.query.when(value == "profit", lambda q, _v: q.where_column(profit_column, ">", loss_column))
        self.query.when(value == "loss", lambda q, _v: q.where_column(profit_column, "<", loss_column))
        return self

    def filter_by_year(self, column: str, year: Optional[int] = None) -> "FlexibleDataTable":
        if year is None:
            year = self.financial_year if self.financial_year is not None else datetime.date.today().year
        self.query.where_year(column, int(year))
        return self

    # output ------------------------------------------------------------

    def make(self) -> DataTableResponse:
        with self.session_factory() as session:
            builder = self._prepared(session)
            total = QueryBuilder(self.model, session).count()
            filtered = builder.count()
            self._paginate(builder)
            data = serialize_rows(builder.get())
        logger.debug("%s: total=%s filtered=%s rows=%s", self.model.__name__, total, filtered, len(data))
        return DataTableResponse(draw=self.request.draw, records_total=total, records_filtered=filtered, data=data)

    def get(self) -> list:
        with self.session_factory() as session:
            builder = self._paginate(self._prepared(session))
            return serialize_rows(builder.get())

    def get_query(self) -> QueryBuilder:
        """The configured builder with search and ordering applied, without paging."""
        return self._prepared(None)

    def debug(self) -> dict:
        with self.session_factory() as session:
            builder = self._prepared(session)
            return {
                "request_data": dict(self.request.params),
                "searchable_columns": list(self.searchable_columns),
                "orderable_columns": list(self.orderable_columns),
                "searchable_relations": dict(self.searchable_relations),
                "text_columns": list(self.text_column_names),
                "numeric_columns": list(self.numeric_column_names),
                "database_driver": self._dialect_name(session),
                "query": builder.to_sql(),
                "bindings": builder.get_bindings(),
            }

    # internals ---------------------------------------------------------

    @staticmethod
    def _dialect_name(session) -> Optional[str]:
        if session is None:
            return None
        return session.get_bind().dialect.name

    def _prepared(self, session) -> QueryBuilder:
        builder = self.query.clone()
        builder.session = session
        dialect_name = self._dialect_name(session)
        self._apply_search(builder, dialect_name)
        self._apply_column_search(builder, dialect_name)
        self._apply_ordering(builder)
        return builder

    def _search_kind(self, column: str) -> Optional[str]:
        if column in self.text_column_names:
            return "text"
        if column in self.numeric_column_names:
            return "numeric"
        return None

    def _condition(self, builder: QueryBuilder, column: str, value: str, dialect_name: Optional[str]):
        return search_condition(builder.column(column), value, dialect_name=dialect_name, kind=self._search_kind(column))

    def _search_column(self, builder: QueryBuilder, column: str, value: str, dialect_name: Optional[str],
                       boolean: str = "and") -> None:
        """Search one column; `relation.column` names search inside the relation with EXISTS."""
        relation, name = split_reference(column)
        if relation and relation != builder.resolver.base_table.name and is_relation_path(builder.source, relation):
            builder.where_has(
                relation,
                lambda sub: sub.where_expression(
                    search_condition(sub.column(name), value, dialect_name=dialect_name, kind=self._search_kind(column))
                ),
                boolean=boolean,
            )
            return
        builder.where_expression(self._condition(builder, column, value, dialect_name), boolean)

    def _apply_search(self, builder: QueryBuilder, dialect_name: Optional[str]) -> None:
        value = self.request.search_value
        if not value:
            return

        def group(q: QueryBuilder) -> None:
            self._or_search(q, self.searchable_columns, value, dialect_name)
            for relation, columns in self.searchable_relations.items():
                q.or_where_has(relation, lambda sub, cols=columns: self._or_search(sub, cols, value, dialect_name))

        builder.where(group)

    def _or_search(self, builder: QueryBuilder, columns: list, value: str, dialect_name: Optional[str]) -> None:
        for column in columns:
            self._search_column(builder, column, value, dialect_name, "or")

    def _apply_column_search(self, builder: QueryBuilder, dialect_name: Optional[str]) -> None:
        for index, column in enumerate(self.request.columns):
            if not column.search_value:
                continue
            if index >= len(self.orderable_columns):
                logger.debug("Column search on index %s ignored: no orderable column", index)
                continue
            name = self.orderable_columns[index]
            self._search_column(builder, name, column.search_value, dialect_name)

    def _apply_ordering(self, builder: QueryBuilder) -> None:
        order = self.request.primary_order
        index = order.column if order is not None else 0
        direction = order.dir if order is not None else "asc"
        if not 0 <= index < len(self.orderable_columns):
            return
        column = self.orderable_columns[index]
        if "." in column:
            join_reference(builder, column)
        elif builder.selected_label(column) is None:
            column = f"{builder.resolver.base_table.name}.{column}"
        builder.order_by(column, direction)

    def _paginate(self, builder: QueryBuilder) -> QueryBuilder:
        return apply_pagination(
            builder,
            self.request,
            default_start=0,
            default_length=self.default_length,
            max_length=self.max_length,
        )
