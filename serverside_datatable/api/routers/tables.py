import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError

from serverside_datatable.api.dependencies import body_params, query_params
from serverside_datatable.domain import DataTableRequest, DataTableResponse
from serverside_datatable.exceptions import DataTableError, TableDefinitionNotFoundError
from serverside_datatable.services.request_parser import DataTableRequestParser
from serverside_datatable.services.table_service import TableService

logger = logging.getLogger(__name__)


def create_tables_router(table_service: TableService, request_parser: Optional[DataTableRequestParser] = None):
    router = APIRouter(prefix="/tables", tags=["Tables"])
    parser = request_parser or DataTableRequestParser()

    def render(name: str, dt_request: DataTableRequest) -> dict:
        try:
            return table_service.render(name, dt_request).to_dict()
        except TableDefinitionNotFoundError:
            raise HTTPException(status_code=404, detail="table not found")
        except (DataTableError, SQLAlchemyError):
            # Report to the widget without leaking internals
            logger.exception("Failed to render table %s", name)
            return DataTableResponse.failure(dt_request.draw, "unable to load table data").to_dict()

    @router.get("/")
    def list_tables():
        return [
            {
                "name": d.name,
                "model": d.model,
                "searchable": d.searchable,
                "searchable_relations": d.searchable_relations,
                "orderable": d.orderable,
                "default_length": d.default_length,
            }
            for d in table_service.list_tables()
        ]

    @router.get("/{name}")
    def get_table(name: str, request: Request):
        return render(name, parser.parse(query_params(request)))

    @router.post("/{name}")
    async def post_table(name: str, request: Request):
        params = await body_params(request)
        return await run_in_threadpool(render, name, parser.parse(params))

    return router
