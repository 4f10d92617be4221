"""Answer DataTables server-side requests from declarative configuration over SQLAlchemy."""
from .domain import DataTableRequest, DataTableResponse
from .exceptions import ConfigurationError, DataTableError
from .helpers import (
    DataTableHelper,
    DynamicModelDataTableHelper,
    EloquentModelDataTableHelper,
    FlexibleDataTable,
    ModelDataTableHelper,
)
from .query import QueryBuilder
from .services.request_parser import DataTableRequestParser

__all__ = [
    "DataTableHelper",
    "ModelDataTableHelper",
    "EloquentModelDataTableHelper",
    "DynamicModelDataTableHelper",
    "FlexibleDataTable",
    "QueryBuilder",
    "DataTableRequest",
    "DataTableResponse",
    "DataTableRequestParser",
    "DataTableError",
    "ConfigurationError",
]
