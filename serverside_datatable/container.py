"""Dependency injection container for the application."""
from dependency_injector import containers, providers
from sqlalchemy.orm import sessionmaker

from serverside_datatable import config as env
from serverside_datatable.db.engine import make_engine
from serverside_datatable.services.table_definition_parser import TableDefinitionParser
from serverside_datatable.services.table_definition_store import TableDefinitionStore
from serverside_datatable.services.table_service import TableService


# Environment variables used by the container (read via `serverside_datatable.config` helpers).
#
# Notes:
# - Types are enforced by the helper used (`get_int_env`, `get_optional_int_env`, etc.).
# - Defaults shown here are the effective defaults used when the env var is unset.
# - These are injected into services via `config = providers.Configuration(default=ENV)`.
#
# DATABASE_URL (str | optional)
#   SQLAlchemy database URL. `make_engine()` raises when it is missing.
#
# DATATABLE_TABLES_DIR (str, default: "tables")
#   Directory holding the YAML table definitions served under /tables.
#
# DATATABLE_DEFAULT_LENGTH (int, default: 10)
#   Page size used when the widget sends no `length`.
#
# DATATABLE_MAX_LENGTH (int | optional)
#   Upper bound for any page, including `length=-1` ("all rows").
#
# DATATABLE_FINANCIAL_YEAR (int | optional)
#   Year used by `filter_by_year` when none is given; the current year otherwise.
#
# API_HOST (str, default: "0.0.0.0") / API_PORT (int, default: 8000)
#   Address uvicorn binds to.
ENV = {
    "DATABASE_URL": env.get_optional_str_env("DATABASE_URL"),
    "DATATABLE_TABLES_DIR": env.get_str_env("DATATABLE_TABLES_DIR", "tables"),
    "DATATABLE_DEFAULT_LENGTH": env.get_int_env("DATATABLE_DEFAULT_LENGTH", 10),
    "DATATABLE_MAX_LENGTH": env.get_optional_int_env("DATATABLE_MAX_LENGTH"),
    "DATATABLE_FINANCIAL_YEAR": env.get_optional_int_env("DATATABLE_FINANCIAL_YEAR"),
    "API_HOST": env.get_str_env("API_HOST", "0.0.0.0"),
    "API_PORT": env.get_int_env("API_PORT", 8000),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for the DataTables service."""

    # Configuration
    config = providers.Configuration(default=ENV)

    # Database engine - Singleton to reuse connection pool
    db_engine = providers.Singleton(
        make_engine,
        database_url=config.DATABASE_URL
    )
    # Session factory bound to the engine
    session_factory = providers.Factory(
        sessionmaker,
        bind=db_engine,
    )

    table_definition_store = providers.Singleton(
        TableDefinitionStore,
        tables_dir=config.DATATABLE_TABLES_DIR.as_(str),
    )

    table_definition_parser = providers.Singleton(
        TableDefinitionParser
    )

    table_service = providers.Singleton(
        TableService,
        store=table_definition_store,
        parser=table_definition_parser,
        session_factory=session_factory,
        default_length=config.DATATABLE_DEFAULT_LENGTH.as_(int),
        max_length=config.DATATABLE_MAX_LENGTH,
        financial_year=config.DATATABLE_FINANCIAL_YEAR,
    )
