from fastapi import FastAPI

from serverside_datatable.api.routers import create_systems_router, create_tables_router


def create_app(container) -> FastAPI:
    """Build the FastAPI application from a `Container`."""
    app = FastAPI(title="serverside-datatable")
    app.include_router(create_tables_router(container.table_service()))
    app.include_router(create_systems_router(container.config()))
    return app
