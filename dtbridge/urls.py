"""URL building for data endpoints and row-action links.

The script builder only needs something with a ``build`` method; hosts with
their own routing pass an adapter. ``RouteUrlBuilder`` covers the common
``/{controller}/{action}/{id}.json`` layout.
"""

from __future__ import annotations

from typing import Any, Protocol
from urllib.parse import quote, urlencode

from .config import UrlSettings, get_settings
from .models import Route


class UrlBuilder(Protocol):
    """Anything that turns a route descriptor into a URL string."""

    def build(
        self, route: Route | None = None, *, full_base: bool = False, extension: str | None = None
    ) -> str: ...


class RouteUrlBuilder:
    """Build URLs from route mappings relative to the current route.

    Route mapping keys:

    - ``controller``, ``action``, ``prefix``: path segments; ``controller``
      and ``action`` default to the current route
    - ``pass``: list of positional path arguments
    - ``?``: query parameters
    - ``_ext``: response format extension
    - ``fullBase``: prefix with ``base_url``

    String routes are used as paths unchanged. Absolute ``http(s)://``
    strings are returned as-is.
    """

    def __init__(
        self,
        base_url: str | None = None,
        controller: str | None = None,
        action: str = "index",
        settings: UrlSettings | None = None,
    ) -> None:
        settings = settings or get_settings().url
        self.base_url = (base_url if base_url is not None else settings.base_url).rstrip("/")
        self.controller = controller
        self.action = action

    def build(
        self, route: Route | None = None, *, full_base: bool = False, extension: str | None = None
    ) -> str:
        """Build a URL for ``route``.

        Parameters
        ----------
        route : str | dict | None
            Path or route mapping. None means the current route.
        full_base : bool
            Prefix the URL with the base URL.
        extension : str | None
            Response format extension, overridden by ``_ext`` in the route.

        Returns
        -------
        str
            The URL.
        """
        if isinstance(route, str):
            if route.startswith(("http://", "https://")):
                return route
            path = route if route.startswith("/") else f"/{route}"
            if extension:
                path = f"{path}.{extension}"
            return f"{self.base_url}{path}" if full_base else path

        route = dict(route or {})
        full_base = bool(route.pop("fullBase", full_base))
        extension = route.pop("_ext", extension)
        query: dict[str, Any] = route.pop("?", None) or {}

        segments = [
            route.pop("prefix", None),
            route.pop("controller", None) or self.controller,
            route.pop("action", None) or self.action,
        ]
        passed = route.pop("pass", None) or []
        segments.extend(str(arg) for arg in passed)
        # leftover keys become query parameters
        query = {**route, **query}

        path = "/" + "/".join(quote(str(s), safe="") for s in segments if s)
        if extension:
            path = f"{path}.{extension}"
        if query:
            path = f"{path}?{urlencode(query, doseq=True)}"

        return f"{self.base_url}{path}" if full_base else path
