"""dtbridge - server-side DataTables.js support.

This package translates DataTables.js server-side requests into pagination
settings, shapes result pages into the protocol response, and generates the
JavaScript that initializes a grid bound to a JSON endpoint.
"""

from .config import (
    DTBridgeSettings,
    GridSettings,
    LogSettings,
    PaginatorSettings,
    UrlSettings,
    get_settings,
)
from .engine import PaginationEngine, paginate_rows
from .exceptions import (
    ConfigurationError,
    DataTablesException,
    InvalidPagingError,
    MissingColumnRendersError,
    MissingColumnsError,
)
from .models import (
    ActionLink,
    DataTablesColumn,
    DataTablesOrder,
    DataTablesRequest,
    DataTablesResponse,
    FieldColumn,
    GridConfig,
    OrderSpec,
    PageQuery,
    PagingMetadata,
    StructuredColumn,
    coerce_column,
)
from .paginator import DataTablesPaginator
from .params import parse_nested_params
from .response import shape_response
from .script import DatatableScriptBuilder
from .urls import RouteUrlBuilder, UrlBuilder


__version__ = "0.1.0"

__all__ = [
    "ActionLink",
    "ConfigurationError",
    "DTBridgeSettings",
    "DataTablesColumn",
    "DataTablesException",
    "DataTablesOrder",
    "DataTablesPaginator",
    "DataTablesRequest",
    "DataTablesResponse",
    "DatatableScriptBuilder",
    "FieldColumn",
    "GridConfig",
    "GridSettings",
    "InvalidPagingError",
    "LogSettings",
    "MissingColumnRendersError",
    "MissingColumnsError",
    "OrderSpec",
    "PageQuery",
    "PaginationEngine",
    "PaginatorSettings",
    "PagingMetadata",
    "RouteUrlBuilder",
    "StructuredColumn",
    "UrlBuilder",
    "UrlSettings",
    "__version__",
    "coerce_column",
    "get_settings",
    "paginate_rows",
    "parse_nested_params",
    "shape_response",
]
