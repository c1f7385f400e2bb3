"""Tests for the FastAPI integration."""

from __future__ import annotations

from typing import Any

import pytest

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from dtbridge import DataTablesPaginator, InvalidPagingError
from dtbridge.integrations.fastapi import (
    datatables_response,
    invalid_paging_response,
    read_request_data,
)


def _flat_request(**overrides: Any) -> dict[str, str]:
    """Bracketed form/query parameters as the grid sends them."""
    params = {
        "draw": "2",
        "start": "0",
        "length": "2",
        "columns[0][data]": "id",
        "columns[0][searchable]": "true",
        "columns[0][orderable]": "true",
        "columns[0][search][value]": "",
        "columns[1][data]": "title",
        "columns[1][searchable]": "true",
        "columns[1][orderable]": "true",
        "columns[1][search][value]": "",
        "order[0][column]": "1",
        "order[0][dir]": "desc",
        "search[value]": "",
        "search[regex]": "false",
    }
    params.update(overrides)
    return params


@pytest.fixture
def client(articles):
    app = FastAPI()
    paginator = DataTablesPaginator()

    @app.api_route("/articles.json", methods=["GET", "POST"])
    async def index(request: Request):
        data = await read_request_data(request)
        try:
            rows, paging = paginator.paginate(articles, data)
        except InvalidPagingError as exc:
            return invalid_paging_response(exc, draw=data.get("draw"))
        return datatables_response(paginator.prepare_response(rows, paging, draw=data.get("draw")))

    return TestClient(app)


class TestFastAPIIntegration:
    """End-to-end requests through a FastAPI endpoint."""

    def test_post_form(self, client):
        response = client.post("/articles.json", data=_flat_request())
        assert response.status_code == 200
        body = response.json()
        assert body["draw"] == "2"
        assert [row["id"] for row in body["data"]] == [3, 5]
        assert body["recordsTotal"] == 5
        assert body["recordsFiltered"] == 5
        assert set(body) == {"data", "draw", "recordsTotal", "recordsFiltered"}

    def test_get_query_with_column_search(self, client):
        params = _flat_request(**{"columns[1][search][value]": "(((alp)))"})
        response = client.get("/articles.json", params=params)
        body = response.json()
        assert [row["title"] for row in body["data"]] == ["Alpha"]
        assert body["recordsFiltered"] == 1

    def test_invalid_paging(self, client):
        response = client.post("/articles.json", data=_flat_request(start="10", length="0"))
        assert response.status_code == 400
        body = response.json()
        assert body["data"] == []
        assert body["draw"] == "2"
        assert "error" in body
