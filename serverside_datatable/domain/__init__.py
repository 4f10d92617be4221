"""Domain objects for serverside_datatable - explicit re-exports to satisfy linters."""
from .request import DataTableRequest as DataTableRequest
from .request import OrderRequest as OrderRequest
from .request import ColumnRequest as ColumnRequest
from .response import DataTableResponse as DataTableResponse
from .table_definition import TableDefinition as TableDefinition

__all__ = ["DataTableRequest", "OrderRequest", "ColumnRequest", "DataTableResponse", "TableDefinition"]
