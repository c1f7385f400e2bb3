"""Translate DataTables.js server-side requests into pagination settings.

``DataTablesPaginator`` turns the ``columns[]``/``order[]``/``start``/
``length`` parameters into a ``PageQuery`` and derives implicit search
filters from per-column search terms.

Usage:
    from dtbridge import DataTablesPaginator

    paginator = DataTablesPaginator(filter_order={"author": ["last_name", "first_name"]})
    rows, paging = paginator.paginate(articles, request_data)
    payload = paginator.prepare_response(rows, paging, draw=request_data["draw"]).to_payload()
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .config import PaginatorSettings, get_settings
from .engine import PaginationEngine, paginate_rows
from .exceptions import InvalidPagingError
from .log import debug, redact_sensitive_data, warn
from .models import DataTablesRequest, OrderSpec, PageQuery, PagingMetadata
from .response import shape_response


# DataTables sends length=-1 for its "All" page-size entry
_ALL_ROWS = -1


def _to_int(value: Any, name: str, start: Any, length: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidPagingError(
            f"DataTables {name} must be an integer", start=start, length=length
        ) from exc


def clean_search_value(value: str | None) -> str:
    """Strip the ``(((term)))`` wrapping the grid's column search inputs add."""
    if not value:
        return ""
    return value.lstrip("(").rstrip(")").strip()


class DataTablesPaginator:
    """Request-scoped translator between DataTables.js and pagination settings.

    Parameters
    ----------
    filter_order : dict[str, list[str]] | None
        Logical column name -> physical sort fields. A display column built
        from several fields sorts by all of them in the same direction.
    max_limit : int | None
        Cap for the page length; 0 disables the cap. Defaults to settings.
    engine : PaginationEngine | None
        Pagination collaborator; defaults to the in-memory engine.
    """

    def __init__(
        self,
        filter_order: Mapping[str, list[str]] | None = None,
        max_limit: int | None = None,
        engine: PaginationEngine | None = None,
        settings: PaginatorSettings | None = None,
    ) -> None:
        settings = settings or get_settings().paginator
        self.filter_order: dict[str, list[str]] = dict(
            filter_order if filter_order is not None else settings.filter_order
        )
        self.max_limit = settings.max_limit if max_limit is None else max_limit
        self.engine: PaginationEngine = engine or paginate_rows

    # --- ordering ---

    def filter_order_fields(self, column_name: str, direction: str) -> dict[str, str]:
        """Map one logical column to its physical sort keys."""
        if column_name in self.filter_order:
            return dict.fromkeys(self.filter_order[column_name] or [], direction)
        return {column_name: direction}

    def translate_order(
        self, request_data: Any, base_settings: Mapping[str, Any] | None = None
    ) -> list[OrderSpec]:
        """Build the ordering list from ``order[]``.

        Entries whose column is unknown, has no ``data`` field or whose
        ``orderable`` flag is not exactly ``"true"`` are skipped. Ordering
        already present in ``base_settings`` comes first; a later entry for
        the same field replaces its direction in place.
        """
        request = DataTablesRequest.from_params(request_data)
        order = _base_order(base_settings)

        for entry in request.order:
            if entry is None or entry.column is None:
                continue
            column = request.column(entry.column)
            if column is None:
                debug(f"Order references unknown column index {entry.column}")
                continue
            if not column.is_orderable:
                continue
            if not column.data:
                debug(f"Order column {entry.column} has no data field")
                continue

            direction = entry.dir.lower()
            if direction not in ("asc", "desc"):
                warn(f"Ignoring invalid sort direction {entry.dir!r} for '{column.data}'")
                continue

            order.update(self.filter_order_fields(column.data, direction))

        return [OrderSpec(field=field, direction=direction) for field, direction in order.items()]

    # --- limits ---

    def translate_limits(self, request_data: Any) -> tuple[int, int]:
        """Return ``(limit, page)`` from ``start``/``length``.

        Raises
        ------
        InvalidPagingError
            Non-integer values, a negative offset, a negative length other
            than -1, or a zero length with a non-zero offset.
        """
        request = DataTablesRequest.from_params(request_data)
        start = _to_int(request.start, "start", request.start, request.length)
        length = _to_int(request.length, "length", request.start, request.length)

        if start < 0:
            raise InvalidPagingError("DataTables start must not be negative", start=start, length=length)
        if length == _ALL_ROWS:
            return self._cap(0), 1
        if length < 0:
            raise InvalidPagingError("DataTables length must not be negative", start=start, length=length)

        if start == 0:
            return self._cap(length), 1
        if length == 0:
            raise InvalidPagingError(
                "Cannot compute a page from a non-zero start with zero length",
                start=start,
                length=length,
            )
        return self._cap(length), start // length + 1

    def _cap(self, limit: int) -> int:
        if self.max_limit and (limit == 0 or limit > self.max_limit):
            return self.max_limit
        return limit

    def translate(
        self, request_data: Any, base_settings: Mapping[str, Any] | None = None
    ) -> PageQuery:
        """Translate ordering and limits into one ``PageQuery``."""
        request = DataTablesRequest.from_params(request_data)
        limit, page = self.translate_limits(request)
        query = PageQuery(order=self.translate_order(request, base_settings), limit=limit, page=page)
        debug(f"Translated DataTables request {redact_sensitive_data(request.to_dict())} -> {query.to_settings()}")
        return query

    # --- search ---

    def derive_search_filters(
        self, request_data: Any, query_params: Mapping[str, Any] | None = None
    ) -> dict[str, str]:
        """Turn per-column search terms into ``{field: term}`` filters.

        Only columns with ``searchable == "true"`` and a ``data`` field are
        considered. A column is skipped when the request or ``query_params``
        already carry a non-empty parameter of the same name, or when the
        term is empty once the ``(((...)))`` wrapping is removed.
        """
        request = DataTablesRequest.from_params(request_data)
        query_params = query_params or {}
        filters: dict[str, str] = {}

        for column in request.columns:
            if column is None or not column.is_searchable or not column.data:
                continue

            name = column.data
            if request.param(name) or query_params.get(name):
                # explicit filters take precedence
                continue

            term = clean_search_value(column.search.value)
            if not term:
                continue
            filters[name] = term

        return filters

    def prepare_request_query_params(
        self, request_data: Any, query_params: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Return ``query_params`` with derived search filters added.

        Existing parameters are never replaced or removed.
        """
        query_params = dict(query_params or {})
        derived = self.derive_search_filters(request_data, query_params)
        for name, term in derived.items():
            query_params.setdefault(name, term)
        if derived:
            debug(f"Derived column search filters: {derived}")
        return query_params

    def search_filters(
        self, request_data: Any, query_params: Mapping[str, Any] | None = None
    ) -> dict[str, str]:
        """Explicit and derived filters for the searchable columns.

        A non-empty explicit value for a column (from ``query_params`` or the
        request itself) is used as-is; the other columns fall back to their
        derived search term.
        """
        request = DataTablesRequest.from_params(request_data)
        query_params = query_params or {}
        explicit: dict[str, Any] = {}
        for column in request.columns:
            if column is None or not column.is_searchable or not column.data:
                continue
            value = query_params.get(column.data) or request.param(column.data)
            if value:
                explicit[column.data] = str(value)
        return self.prepare_request_query_params(request, explicit)

    # --- collaborators ---

    def paginate(
        self,
        source: Any,
        request_data: Any,
        settings: Mapping[str, Any] | None = None,
        engine: PaginationEngine | None = None,
        query_params: Mapping[str, Any] | None = None,
    ) -> tuple[list[Any], PagingMetadata]:
        """Translate the request and hand it to the pagination engine.

        Parameters
        ----------
        source : Any
            Data source handle understood by the engine.
        request_data : Any
            DataTables request (nested mapping, flat params or model).
        settings : Mapping | None
            Base pagination settings; its ``order`` is kept in front.
        engine : PaginationEngine | None
            Overrides the paginator's engine for this call.
        query_params : Mapping | None
            Explicit filters sent outside the DataTables protocol; request
            parameters with a searchable column's name count as well.

        Returns
        -------
        tuple[list, PagingMetadata]
            The page rows and paging metadata.
        """
        request = DataTablesRequest.from_params(request_data)
        query = self.translate(request, settings)
        page_settings = {**dict(settings or {}), **query.to_settings()}
        filters = self.search_filters(request, query_params)
        return (engine or self.engine)(source, page_settings, filters)

    @staticmethod
    def prepare_response(result_set: Any, paging: Any, draw: Any = None, **kwargs: Any):
        """Package rows and paging metadata; see ``shape_response``."""
        return shape_response(result_set, paging, draw=draw, **kwargs)


def _base_order(base_settings: Mapping[str, Any] | None) -> dict[str, str]:
    """Read ``order`` from base settings as an ordered ``{field: direction}``."""
    raw = (base_settings or {}).get("order") or {}
    if isinstance(raw, Mapping):
        return {str(field): str(direction).lower() for field, direction in raw.items()}

    order: dict[str, str] = {}
    for item in raw:
        if isinstance(item, OrderSpec):
            order[item.field] = item.direction
        elif isinstance(item, Mapping):
            order[str(item["field"])] = str(item.get("direction", "asc")).lower()
        else:
            field, direction = item
            order[str(field)] = str(direction).lower()
    return order
