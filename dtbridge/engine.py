"""In-memory pagination engine.

Default collaborator for ``DataTablesPaginator.paginate``: filters, orders
and slices a sequence of rows (mappings or objects) and reports paging
metadata. Applications backed by a database pass their own engine
with the same call signature.
"""

from __future__ import annotations

import math

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from .log import debug
from .models import PagingMetadata


class PaginationEngine(Protocol):
    """Callable that pages a data source with a translated settings map."""

    def __call__(
        self,
        source: Any,
        settings: Mapping[str, Any],
        filters: Mapping[str, str] | None = None,
    ) -> tuple[list[Any], PagingMetadata]: ...


_MISSING = object()


def get_field(row: Any, field: str) -> Any:
    """Read ``field`` from a mapping or object row.

    Dotted names (``Authors.name``) are tried whole first, then as a path,
    then by their last segment.
    """
    value = _lookup(row, field)
    if value is not _MISSING:
        return value

    if "." in field:
        node = row
        for part in field.split("."):
            node = _lookup(node, part)
            if node is _MISSING:
                break
        else:
            return node
        value = _lookup(row, field.rsplit(".", 1)[1])
        if value is not _MISSING:
            return value

    return None


def _lookup(row: Any, key: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(key, _MISSING)
    return getattr(row, key, _MISSING)


def _matches(row: Any, filters: Mapping[str, str]) -> bool:
    for field, term in filters.items():
        value = get_field(row, field)
        if value is None or term.lower() not in str(value).lower():
            return False
    return True


def _sort_key(value: Any) -> tuple[int, Any]:
    # None first, then numbers, then everything else as text
    if value is None:
        return (0, 0)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value)
    return (2, str(value).lower())


def paginate_rows(
    rows: Sequence[Any],
    settings: Mapping[str, Any],
    filters: Mapping[str, str] | None = None,
) -> tuple[list[Any], PagingMetadata]:
    """Filter, order and slice rows.

    Parameters
    ----------
    rows : Sequence
        Mappings or objects.
    settings : Mapping
        ``{"order": {field: "asc"|"desc"}, "limit": int, "page": int}``.
        A limit of 0 returns every matching row.
    filters : Mapping[str, str] | None
        Case-insensitive substring match per field.

    Returns
    -------
    tuple[list, PagingMetadata]
        The rows of the requested page and the paging metadata. A page past
        the end is clamped to the last page.
    """
    total = len(rows)
    matched = [row for row in rows if _matches(row, filters)] if filters else list(rows)

    # stable sorts applied from the least significant key
    order = settings.get("order") or {}
    for field, direction in reversed(list(order.items())):
        matched.sort(key=lambda row, f=field: _sort_key(get_field(row, f)), reverse=direction == "desc")

    count = len(matched)
    limit = int(settings.get("limit") or 0)
    page = max(int(settings.get("page") or 1), 1)

    if limit > 0:
        page_count = max(math.ceil(count / limit), 1)
        page = min(page, page_count)
        offset = (page - 1) * limit
        page_rows = matched[offset : offset + limit]
    else:
        page_count = 1
        page = 1
        page_rows = matched

    debug(f"Paged {count} of {total} rows: page {page}/{page_count}, limit {limit}")

    return page_rows, PagingMetadata(
        count=count,
        current=len(page_rows),
        per_page=limit,
        page=page,
        page_count=page_count,
        prev_page=page > 1,
        next_page=page < page_count,
        limit=limit or None,
        total=total,
    )
