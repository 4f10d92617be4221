"""Configuration-driven DataTables helpers."""
from .dynamic import DynamicModelDataTableHelper as DynamicModelDataTableHelper
from .eloquent import EloquentModelDataTableHelper as EloquentModelDataTableHelper
from .flexible import FlexibleDataTable as FlexibleDataTable
from .model import ModelDataTableHelper as ModelDataTableHelper
from .table import DataTableHelper as DataTableHelper

__all__ = [
    "DataTableHelper",
    "ModelDataTableHelper",
    "EloquentModelDataTableHelper",
    "DynamicModelDataTableHelper",
    "FlexibleDataTable",
]
