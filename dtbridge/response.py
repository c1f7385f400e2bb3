"""Package a page of results for the DataTables.js grid."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .log import debug
from .models import DataTablesResponse, PagingMetadata


def unwrap_paging(paging: Any) -> Any:
    """Unwrap paging metadata keyed by a single model alias.

    ``{"Articles": {"count": 3, ...}}`` becomes ``{"count": 3, ...}``.
    Anything else is returned unchanged.
    """
    if isinstance(paging, Mapping) and len(paging) == 1:
        (inner,) = paging.values()
        if isinstance(inner, (Mapping, PagingMetadata)):
            return inner
    return paging


def paging_count(paging: Any) -> int:
    """Read ``count`` from paging metadata; missing means 0."""
    paging = unwrap_paging(paging)
    if paging is None:
        return 0
    if isinstance(paging, PagingMetadata):
        return paging.count
    if isinstance(paging, Mapping):
        return int(paging.get("count") or 0)
    return int(getattr(paging, "count", 0) or 0)


def shape_response(
    result_set: Any,
    paging: Any,
    draw: Any = None,
    records_total: int | None = None,
) -> DataTablesResponse:
    """Build the grid response.

    ``recordsTotal`` and ``recordsFiltered`` both echo the paging count; the
    count after filtering is the only one the pagination engine reports.
    Pass ``records_total`` to report a separately computed pre-filter total.

    Parameters
    ----------
    result_set : Iterable
        Rows of the current page.
    paging : PagingMetadata | Mapping | None
        Paging metadata holding at least ``count``.
    draw : Any
        The request's draw counter, echoed unchanged.
    records_total : int | None
        Explicit pre-filter row count.

    Returns
    -------
    DataTablesResponse
        Response model; ``to_payload()`` gives the wire dict.
    """
    count = paging_count(paging)
    total = count if records_total is None else records_total
    rows = list(result_set) if result_set is not None else []
    debug(f"Shaping {len(rows)} rows for draw {draw!r}: total={total}, filtered={count}")

    return DataTablesResponse(
        data=rows,
        draw=draw,
        records_total=total,
        records_filtered=count,
    )
