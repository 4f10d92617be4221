"""Extract DataTables parameters from incoming HTTP requests."""
from typing import Any, Union

from fastapi import HTTPException, Request
from pydantic import RootModel, ValidationError


class DataTableBody(RootModel[dict[str, Any]]):
    """A JSON object of widget parameters; unknown keys are kept."""


def query_params(request: Request) -> list[tuple[str, str]]:
    return request.query_params.multi_items()


async def body_params(request: Request) -> Union[dict, list[tuple[str, Any]]]:
    """JSON objects are returned as a dict; form bodies as ``(key, value)`` pairs."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = DataTableBody.model_validate_json(await request.body())
        except ValidationError:
            raise HTTPException(status_code=400, detail="invalid JSON body") from None
        return body.root
    form = await request.form()
    return form.multi_items()
