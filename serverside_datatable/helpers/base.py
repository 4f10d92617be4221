import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.orm import Session

from serverside_datatable.domain import DataTableRequest, DataTableResponse
from serverside_datatable.query import QueryBuilder
from serverside_datatable.query.columns import split_alias
from serverside_datatable.query.relations import is_relation_path
from serverside_datatable.services.serializer import serialize_rows

logger = logging.getLogger(__name__)


def apply_pagination(
    builder: QueryBuilder,
    request: DataTableRequest,
    *,
    default_start: Optional[int] = None,
    default_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> QueryBuilder:
    """Apply ``offset(start).limit(length)`` when both are known.

    A non-positive length asks for every row; `max_length` still caps it.
    """
    start = request.start if request.start is not None else default_start
    length = request.length if request.length is not None else default_length
    if start is None or length is None:
        return builder
    if length <= 0:
        length = max_length
    elif max_length is not None:
        length = min(length, max_length)
    builder.offset(max(start, 0))
    if length is not None:
        builder.limit(length)
    return builder


class BaseDataTableHelper:
    """Shared plumbing for the configuration-driven helpers.

    Requires an explicit `session_factory` (callable returning a `Session`).
    Every operation opens its own session and returns plain dicts, so results
    stay usable after the session closes.
    """

    def __init__(self, session_factory, *, max_length: Optional[int] = None):
        self.session_factory = session_factory
        self.max_length = max_length

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        with self.session_factory() as session:
            yield session

    @staticmethod
    def request_or_default(request: Optional[DataTableRequest]) -> DataTableRequest:
        return request if request is not None else DataTableRequest()

    def paginate(self, builder: QueryBuilder, request: DataTableRequest) -> QueryBuilder:
        return apply_pagination(builder, request, max_length=self.max_length)

    @staticmethod
    def fetch(builder: QueryBuilder, session: Session) -> list:
        return serialize_rows(builder.get(session))

    @staticmethod
    def respond(request: DataTableRequest, total: int, filtered: int, data: list) -> DataTableResponse:
        logger.debug("draw=%s total=%s filtered=%s rows=%s", request.draw, total, filtered, len(data))
        return DataTableResponse(draw=request.draw, records_total=total, records_filtered=filtered, data=data)


def requested_order_item(items: Optional[list], request: DataTableRequest):
    """The configured entry the widget's first ``order`` index points at, if any."""
    order = request.primary_order
    if order is None or not items:
        return None
    if 0 <= order.column < len(items):
        return items[order.column]
    logger.warning("Order index %s outside configured columns (%s)", order.column, len(items))
    return None


def split_reference(ref: str) -> tuple[Optional[str], str]:
    """``"customer.region.name"`` -> ``("customer.region", "name")``; plain names have no relation."""
    relation, _, column = ref.strip().rpartition(".")
    return (relation or None), column


def join_reference(builder: QueryBuilder, ref):
    """Join the relation path a ``relation.column`` reference goes through and return `ref`."""
    if isinstance(ref, str):
        relation, _ = split_reference(split_alias(ref)[0])
        if relation and relation != builder.resolver.base_table.name and is_relation_path(builder.source, relation):
            builder.join_relation(relation)
    return ref
