"""API router factory functions."""
from .systems import create_systems_router
from .tables import create_tables_router

__all__ = [
    "create_systems_router",
    "create_tables_router",
]
