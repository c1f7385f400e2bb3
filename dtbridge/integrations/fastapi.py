"""FastAPI glue for DataTables.js endpoints.

Reads the grid's request from the form body (POST) or the query string
(everything else) and returns the protocol JSON.

Example:
    from fastapi import FastAPI, Request

    from dtbridge import DataTablesPaginator
    from dtbridge.integrations.fastapi import datatables_response, read_request_data

    app = FastAPI()
    paginator = DataTablesPaginator()

    @app.post("/articles.json")
    async def articles(request: Request):
        data = await read_request_data(request)
        rows, paging = paginator.paginate(ARTICLES, data)
        return datatables_response(paginator.prepare_response(rows, paging, draw=data.get("draw")))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ..exceptions import InvalidPagingError
from ..params import parse_nested_params


if TYPE_CHECKING:
    from fastapi import Request

    from ..models import DataTablesResponse


async def read_request_data(request: Request) -> dict[str, Any]:
    """Return the nested DataTables parameters of ``request``.

    POST requests are read from the form body, other methods from the
    query string.
    """
    if request.method == "POST":
        form = await request.form()
        return parse_nested_params(form)
    return parse_nested_params(request.query_params)


def datatables_response(response: DataTablesResponse, status_code: int = 200) -> JSONResponse:
    """Serialize only the protocol keys of ``response``."""
    return JSONResponse(jsonable_encoder(response.to_payload()), status_code=status_code)


def invalid_paging_response(exc: InvalidPagingError, draw: Any = None) -> JSONResponse:
    """Protocol error payload the grid shows instead of a page."""
    return JSONResponse(
        {
            "draw": draw,
            "data": [],
            "recordsTotal": 0,
            "recordsFiltered": 0,
            "error": exc.message,
        },
        status_code=400,
    )
