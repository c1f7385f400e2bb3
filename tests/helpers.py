"""Request builders shared by the test modules."""

from __future__ import annotations

from typing import Any


def dt_column(
    data: str | None,
    *,
    orderable: str = "true",
    searchable: str = "true",
    search: str = "",
) -> dict[str, Any]:
    """One ``columns[]`` entry as DataTables.js sends it."""
    column: dict[str, Any] = {
        "name": "",
        "searchable": searchable,
        "orderable": orderable,
        "search": {"value": search, "regex": "false"},
    }
    if data is not None:
        column["data"] = data
    return column
