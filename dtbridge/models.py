"""Pydantic models for the DataTables.js server-side protocol.

This module provides:
- Wire models for the inbound request (DataTablesRequest and its parts)
- Normalized pagination models (OrderSpec, PageQuery, PagingMetadata)
- The outbound DataTablesResponse
- Column descriptors for the script builder (FieldColumn, StructuredColumn,
  ActionLink) and the GridConfig option set

Models that mirror DataTables.js names use camelCase aliases and accept
either snake_case or camelCase input.

DataTables reference: https://datatables.net/manual/server-side
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import DEFAULT_LENGTH_MENU
from .log import warn
from .params import is_flat_params, parse_nested_params


Direction = Literal["asc", "desc"]

# Route descriptor handed to the URL builder: a path or a route mapping
Route = Union[str, dict[str, Any]]


class DataTablesModel(BaseModel):
    """Base model for DataTables objects with camelCase serialization."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict with camelCase keys, excluding None values."""
        return self.model_dump(by_alias=True, exclude_none=True)


def _flag_to_wire(v: Any) -> Any:
    """JSON bodies send real booleans where form posts send "true"/"false"."""
    if isinstance(v, bool):
        return "true" if v else "false"
    return v


def _indexed_to_list(v: Any) -> Any:
    """Accept ``{"0": {...}, "2": {...}}`` and keep positions, leaving gaps as None."""
    if isinstance(v, Mapping):
        indexed: dict[int, Any] = {}
        for key, item in v.items():
            try:
                indexed[int(key)] = item
            except (TypeError, ValueError):
                warn(f"Ignoring non-numeric DataTables index {key!r}")
        if not indexed:
            return []
        return [indexed.get(i) for i in range(max(indexed) + 1)]
    return v


def _entry_or_none(item: Any) -> Any:
    """Keep object entries of ``columns[]``/``order[]``; scalars become gaps."""
    if item is None or isinstance(item, (Mapping, BaseModel)):
        return item
    warn(f"Ignoring malformed DataTables entry {item!r}")
    return None


# --- Inbound wire shape ---


class DataTablesSearch(DataTablesModel):
    """Global or per-column search term."""

    value: str = ""
    regex: str | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else str(v)

    @field_validator("regex", mode="before")
    @classmethod
    def _regex_flag(cls, v: Any) -> Any:
        return _flag_to_wire(v)


class DataTablesColumn(DataTablesModel):
    """One entry of ``columns[]``.

    ``orderable`` and ``searchable`` keep the raw protocol strings; only the
    exact string ``"true"`` enables ordering or searching.
    """

    data: str | None = None
    name: str | None = None
    searchable: str | None = None
    orderable: str | None = None
    search: DataTablesSearch = Field(default_factory=DataTablesSearch)

    @field_validator("searchable", "orderable", mode="before")
    @classmethod
    def _flags(cls, v: Any) -> Any:
        return _flag_to_wire(v)

    @field_validator("data", mode="before")
    @classmethod
    def _data_name(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (int, float)):
            return str(v)
        # object data sources ({"_": ..., "display": ...}) carry no field name
        return None

    @field_validator("search", mode="before")
    @classmethod
    def _search(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, str):
            return {"value": v}
        return v

    @property
    def is_orderable(self) -> bool:
        return self.orderable == "true"

    @property
    def is_searchable(self) -> bool:
        return self.searchable == "true"


class DataTablesOrder(DataTablesModel):
    """One entry of ``order[]``."""

    column: int | None = 0
    dir: str = "asc"

    @field_validator("column", mode="before")
    @classmethod
    def _column_index(cls, v: Any) -> Any:
        if v is None or v == "":
            return 0
        try:
            return int(v)
        except (TypeError, ValueError):
            warn(f"Ignoring non-numeric order column {v!r}")
            return None

    @field_validator("dir", mode="before")
    @classmethod
    def _direction(cls, v: Any) -> Any:
        return "asc" if v in (None, "") else str(v)


class DataTablesRequest(DataTablesModel):
    """Decoded DataTables.js server-side request.

    ``start`` and ``length`` are kept raw; the paginator validates them.
    Any other top-level parameter (explicit filters, CSRF tokens, extra
    fields) is kept as an extra attribute and is reachable with ``param()``.
    """

    draw: Any = None
    start: Any = 0
    length: Any = 0
    columns: list[DataTablesColumn | None] = Field(default_factory=list)
    order: list[DataTablesOrder | None] = Field(default_factory=list)
    search: DataTablesSearch = Field(default_factory=DataTablesSearch)

    @field_validator("columns", "order", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> Any:
        if v is None or v == "":
            return []
        v = _indexed_to_list(v)
        if not isinstance(v, (list, tuple)):
            warn(f"Ignoring malformed DataTables list {v!r}")
            return []
        return [_entry_or_none(item) for item in v]

    @field_validator("search", mode="before")
    @classmethod
    def _global_search(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, str):
            return {"value": v}
        return v

    @classmethod
    def from_params(cls, data: Any) -> DataTablesRequest:
        """Build a request from nested data, flat bracketed params or pairs."""
        if isinstance(data, cls):
            return data
        if data is None:
            return cls()
        if hasattr(data, "multi_items") or not isinstance(data, Mapping):
            return cls.model_validate(parse_nested_params(data))
        if is_flat_params(data):
            return cls.model_validate(parse_nested_params(data))
        return cls.model_validate(dict(data))

    def column(self, index: int | None) -> DataTablesColumn | None:
        """Return the column at ``index`` or None when out of range."""
        if index is None or index < 0 or index >= len(self.columns):
            return None
        return self.columns[index]

    def param(self, name: str, default: Any = None) -> Any:
        """Return a top-level parameter that is not part of the protocol."""
        return (self.model_extra or {}).get(name, default)


# --- Normalized pagination ---


class OrderSpec(BaseModel):
    """One sort key."""

    field: str
    direction: Direction = "asc"


class PageQuery(BaseModel):
    """Normalized pagination request handed to the pagination engine."""

    order: list[OrderSpec] = Field(default_factory=list)
    # 0 = unbounded
    limit: int = Field(default=0, ge=0)
    page: int = Field(default=1, ge=1)

    def to_settings(self) -> dict[str, Any]:
        """Settings map in the ``{order: {field: dir}, limit, page}`` form."""
        return {
            "order": {spec.field: spec.direction for spec in self.order},
            "limit": self.limit,
            "page": self.page,
        }


class PagingMetadata(DataTablesModel):
    """Paging metadata reported by the pagination engine.

    ``count`` is the number of rows matching the filters. ``total`` is the
    number of rows before filtering, when the engine tracks it.
    """

    count: int = 0
    current: int = 0
    per_page: int = Field(default=0, alias="perPage")
    page: int = 1
    page_count: int = Field(default=1, alias="pageCount")
    prev_page: bool = Field(default=False, alias="prevPage")
    next_page: bool = Field(default=False, alias="nextPage")
    limit: int | None = None
    total: int | None = None


class DataTablesResponse(DataTablesModel):
    """Outbound payload for the grid."""

    data: list[Any] = Field(default_factory=list)
    draw: Any = None
    records_total: int = Field(default=0, alias="recordsTotal")
    records_filtered: int = Field(default=0, alias="recordsFiltered")

    def to_payload(self) -> dict[str, Any]:
        """Only the keys the DataTables.js protocol reads."""
        return {
            "data": self.data,
            "draw": self.draw,
            "recordsTotal": self.records_total,
            "recordsFiltered": self.records_filtered,
        }


# --- Column descriptors ---


class ActionLink(DataTablesModel):
    """One hyperlink inside a links column.

    ``url`` is a route descriptor for the URL builder. ``extra`` is a raw
    script fragment appended after the built URL, e.g. ``"/' + obj.id + '"``.
    When ``label`` is empty, ``value`` is used as a raw script expression.
    """

    url: Route = Field(default_factory=dict)
    label: str = ""
    value: str | None = None
    target: str = "_self"
    extra: str = ""

    @field_validator("target", mode="before")
    @classmethod
    def _default_target(cls, v: Any) -> Any:
        return v or "_self"

    def split_url(self) -> tuple[Route, str]:
        """Return the route without ``extra`` and the extra suffix."""
        if isinstance(self.url, dict) and "extra" in self.url:
            route = {k: v for k, v in self.url.items() if k != "extra"}
            return route, str(self.url["extra"]) + self.extra
        return self.url, self.extra


class FieldColumn(BaseModel):
    """Column given as a bare field name."""

    kind: Literal["field"] = "field"
    name: str


class StructuredColumn(DataTablesModel):
    """Column with a custom render expression, sort flag, width or links."""

    kind: Literal["structured"] = "structured"
    name: str
    orderable: str | bool | None = None
    width: str | None = None
    render: str | None = None
    links: list[ActionLink] | None = None

    @field_validator("width", mode="before")
    @classmethod
    def _width(cls, v: Any) -> Any:
        return None if v is None else str(v)


ColumnDescriptor = Union[FieldColumn, StructuredColumn]


def coerce_column(value: Any) -> ColumnDescriptor | None:
    """Resolve a raw column entry to a descriptor variant.

    Strings become ``FieldColumn``; mappings become ``StructuredColumn``.
    A mapping without ``name`` resolves to None and is dropped.
    """
    if isinstance(value, (FieldColumn, StructuredColumn)):
        return value
    if isinstance(value, str):
        return FieldColumn(name=value)
    if isinstance(value, Mapping):
        if not value.get("name"):
            warn(f"Dropping column descriptor without a name: {dict(value)!r}")
            return None
        return StructuredColumn.model_validate({k: v for k, v in value.items() if k != "kind"})
    raise TypeError(f"Unsupported column descriptor type: {type(value).__name__}")


# --- Grid options ---


class GridConfig(DataTablesModel):
    """DataTables.js options interpolated into the bootstrap script."""

    processing: bool = True
    server_side: bool = Field(default=True, alias="serverSide")
    language: dict[str, Any] = Field(default_factory=dict)
    length_menu: list[Any] = Field(
        default_factory=lambda: list(DEFAULT_LENGTH_MENU), alias="lengthMenu"
    )
    column_search: bool = Field(default=True, alias="columnSearch")
    search: bool = True
    external_search_input_id: str | None = Field(default=None, alias="externalSearchInputId")
    # key -> raw script expression, injected into every ajax request
    extra_fields: list[dict[str, Any]] = Field(default_factory=list, alias="extraFields")
    draw_callback: str | None = Field(default=None, alias="drawCallback")
    on_complete_callback: str | None = Field(default=None, alias="onCompleteCallback")

    @field_validator("length_menu", mode="before")
    @classmethod
    def _default_length_menu(cls, v: Any) -> Any:
        if v is None or v == []:
            return list(DEFAULT_LENGTH_MENU)
        return v

    @field_validator("extra_fields", mode="before")
    @classmethod
    def _extra_fields(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, Mapping):
            return [dict(v)] if v else []
        return v

    @field_validator("language", mode="before")
    @classmethod
    def _language(cls, v: Any) -> Any:
        return {} if v is None else v

    @classmethod
    def from_settings(cls, settings: Any) -> GridConfig:
        """Build from a ``GridSettings`` section."""
        return cls.model_validate(settings.model_dump())
