"""DataTables.js bootstrap script generation.

``DatatableScriptBuilder`` assembles the JavaScript that initializes a
server-side DataTables.js grid on a table element and wires it to a JSON
endpoint.

Usage:
    from dtbridge import DatatableScriptBuilder, RouteUrlBuilder

    builder = DatatableScriptBuilder(url_builder=RouteUrlBuilder(controller="articles"))
    builder.set_fields(["id", "title", {"name": "created", "render": "renderDate"}])
    builder.set_row_actions()
    builder.set_get_data_url({"action": "index"})
    script = builder.get_datatable_script("articles-table")

Every interpolated value (render expressions, callbacks, extra field values,
link fragments) is emitted verbatim and must already be valid JavaScript.

DataTables options reference: https://datatables.net/reference/option/
"""

from __future__ import annotations

import html
import json

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from .config import DTBridgeSettings, get_settings
from .exceptions import MissingColumnRendersError, MissingColumnsError
from .log import debug, warn
from .models import (
    ActionLink,
    ColumnDescriptor,
    FieldColumn,
    GridConfig,
    Route,
    StructuredColumn,
    coerce_column,
)
from .urls import RouteUrlBuilder, UrlBuilder


# Marker the column filter inputs wrap their values in; the paginator strips it.
COLUMN_SEARCH_JS = """
        var api = this.api();

        api
            .columns()
            .eq(0)
            .each(function (colIdx) {
                var cell = $('.filters th').eq(
                    $(api.column(colIdx).header()).index()
                );
                var title = $(cell).text();
                $(cell).html('<input type="text" style="width: 100%;" placeholder="' + title + '" />');

                $(
                    'input',
                    $('.filters th').eq($(api.column(colIdx).header()).index())
                )
                .off('keyup change')
                .on('keyup change', function (e) {
                    e.stopPropagation();

                    $(this).attr('title', $(this).val());
                    var pattern = '({search})';
                    var cursorPosition = this.selectionStart;

                    api
                        .column(colIdx)
                        .search(
                            this.value != ''
                                ? pattern.replace('{search}', '(((' + this.value + ')))')
                                : '',
                            this.value != '',
                            this.value == ''
                        )
                        .draw();

                    $(this)
                        .focus()[0]
                        .setSelectionRange(cursorPosition, cursorPosition);
                });
            });
"""

LINK_TEMPLATE = '<a href="{href}" target="{target}">{label}</a>'


def default_row_actions() -> StructuredColumn:
    """View/edit/delete links for the current controller, keyed by ``obj.id``."""
    row_id = "/' + obj.id + '"
    return StructuredColumn(
        name="actions",
        orderable="false",
        width="30px",
        links=[
            ActionLink(url={"action": "view"}, extra=row_id, label='<li class="fas fa-search"></li>'),
            ActionLink(url={"action": "edit"}, extra=row_id, label='<li class="fas fa-pencil-alt"></li>'),
            ActionLink(url={"action": "delete"}, extra=row_id, label='<li class="far fa-trash-alt"></li>'),
        ],
    )


def js_literal(value: Any) -> str:
    """Emit a Python value as a script fragment.

    Strings are raw expressions; other values are JSON encoded.
    """
    if isinstance(value, str):
        return value
    return json.dumps(value)


def flatten_pairs(definition: Mapping[str, Any]) -> str:
    """``{"a": "1", "b": True}`` -> ``'a': 1,'b': true``."""
    return ",".join(f"'{key}': {js_literal(value)}" for key, value in definition.items())


# --- Column compilation ---


def build_action_link(link: ActionLink, url_builder: UrlBuilder) -> str:
    """Render one link as a quoted script string literal."""
    route, extra = link.split_url()
    label = link.label or (f"' + {link.value} + '" if link.value else "")
    anchor = LINK_TEMPLATE.format(
        href=url_builder.build(route) + extra,
        target=link.target,
        label=label,
    )
    return f"'{anchor}'"


def compile_column(column: ColumnDescriptor | None, url_builder: UrlBuilder) -> str | None:
    """Compile a column descriptor into a ``columns[]`` entry.

    Structured columns emit the first of links, ``render``, ``orderable``,
    ``width`` that is set.
    """
    if column is None:
        return None

    if isinstance(column, FieldColumn):
        return f"{{data: '{column.name}'}}"

    parts = [f"data: '{column.name}'"]
    if column.links:
        links = "\n + ".join(build_action_link(link, url_builder) for link in column.links)
        parts.append(f"\nrender: function(data, type, obj) {{ return {links}; }}")
    elif column.render:
        parts.append(f"render: {column.render}")
    elif column.orderable not in (None, ""):
        parts.append(f"orderable: {js_literal(column.orderable)}")
    elif column.width:
        parts.append(f"width: '{column.width}'")
    return "{" + ", ".join(parts) + "}"


# --- Script fragments ---


def build_sync_data_source(url: str, extra_fields: list[dict[str, Any]]) -> str:
    """``getData()`` returning an ajax object that merges extra fields into each request."""
    fields = ",".join(flatten_pairs(definition) for definition in extra_fields if definition)
    return f"""
    function getData() {{
        return {{
            url: '{url}',
            data: function (d) {{
                return $.extend({{}}, d, {{
                    {fields}
                }});
            }}
        }};
    }}"""


def build_async_data_source(url: str) -> str:
    """Minimal ``getData`` fetching the endpoint."""
    return f"""
    let getData = async () => {{
        let res = await fetch('{url}')
    }}"""


def build_column_search_header(tag_id: str) -> str:
    """Clone the header row into a ``.filters`` row for the column inputs."""
    return f"""
        $('#{tag_id} thead tr')
            .clone(true)
            .addClass('filters')
            .appendTo('#{tag_id} thead');"""


def build_external_search(input_id: str, tag_id: str) -> str:
    """Bind an external input to the grid's global search."""
    return f"""
    $('#{input_id}').on('keyup click', function () {{
        $('#{tag_id}').DataTable().search(
            $('#{input_id}').val()
        ).draw();
    }});"""


class ScriptParts(BaseModel):
    """Named fragments of the bootstrap script."""

    tag_id: str
    data_source: str
    columns: list[str]
    column_defs: list[str] = []
    processing: bool = True
    server_side: bool = True
    language: dict[str, Any] = {}
    length_menu: list[Any] = []
    draw_callback: str | None = None
    on_complete_callback: str | None = None
    external_search: str = ""
    column_search_header: str = ""
    column_search: str = ""


def render_script(parts: ScriptParts) -> str:
    """Render the full bootstrap script from its parts."""
    columns = ", \n                    ".join(parts.columns)
    column_defs = ",".join(parts.column_defs)
    return f"""
    // API callback
    {parts.data_source}

    // Generic search
    {parts.external_search}

    // Datatables configuration
    $(() => {{
        {parts.column_search_header}

        $('#{parts.tag_id}').DataTable({{
            orderCellsTop: true,
            fixedHeader: true,
            ajax: getData(),
            processing: {js_literal(parts.processing)},
            serverSide: {js_literal(parts.server_side)},
            columns: [
                    {columns}
            ],
            columnDefs: [
                {column_defs}
            ],
            language: {json.dumps(parts.language)},
            lengthMenu: {json.dumps(parts.length_menu)},
            drawCallback: {parts.draw_callback or "null"},
            initComplete: function () {{
                // onComplete
                {parts.on_complete_callback or "null"}

                // column search
                {parts.column_search}
            }},
        }});
    }});
"""


def humanize(name: str) -> str:
    """``author.first_name`` -> ``Author First Name``."""
    words = name.replace(".", "_").split("_")
    return " ".join(word[:1].upper() + word[1:] for word in words if word)


class DatatableScriptBuilder:
    """Collects column, row action and grid configuration for one grid.

    Parameters
    ----------
    config : GridConfig | Mapping | None
        Grid options; mappings are laid over the configured defaults and may
        use camelCase or snake_case keys.
    url_builder : UrlBuilder | None
        Collaborator building the data URL and link URLs.
    settings : DTBridgeSettings | None
        Settings to read defaults from (the cached global settings if None).
    """

    def __init__(
        self,
        config: GridConfig | Mapping[str, Any] | None = None,
        url_builder: UrlBuilder | None = None,
        settings: DTBridgeSettings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.url_builder: UrlBuilder = url_builder or RouteUrlBuilder(settings=self.settings.url)

        if isinstance(config, GridConfig):
            self.config = config
        else:
            self.config = GridConfig.from_settings(self.settings.grid)
            if config:
                self.set_config(config)

        self.fields: list[Any] = []
        self.definitions: list[Mapping[str, Any]] = []
        self.row_actions: ColumnDescriptor | None = None
        self.data_url: str | None = None

    # --- configuration ---

    def set_config(self, key: str | Mapping[str, Any], value: Any = None) -> None:
        """Set one option (``key, value``) or several (a mapping)."""
        update = dict(key) if isinstance(key, Mapping) else {key: value}
        overrides = GridConfig.model_validate(update).model_dump(exclude_unset=True)
        self.config = GridConfig.model_validate({**self.config.model_dump(), **overrides})

    set_config_key = set_config

    def set_fields(self, fields: Iterable[Any]) -> None:
        """Set the grid columns: field names or column descriptor mappings."""
        fields = list(fields or [])
        if not fields:
            raise MissingColumnsError("Columns for the datatable cannot be empty.")
        self.fields = fields

    def set_definitions(self, definitions: Iterable[Mapping[str, Any]]) -> None:
        """Set ``columnDefs`` entries; values are raw script expressions."""
        self.definitions = list(definitions or [])

    def set_row_actions(self, row_actions: StructuredColumn | Mapping[str, Any] | None = None) -> None:
        """Set the trailing actions column; None installs view/edit/delete links."""
        if not row_actions:
            self.row_actions = default_row_actions()
            return
        self.row_actions = coerce_column(row_actions)

    def set_get_data_url(self, route: Route | None = None) -> str:
        """Set the endpoint the grid loads data from.

        The URL is always absolute and carries the configured response
        extension.
        """
        extension = self.settings.url.extension
        if isinstance(route, Mapping):
            route = {**route, "fullBase": True, "_ext": extension}
        self.data_url = self.url_builder.build(route, full_base=True, extension=extension)
        debug(f"Datatable data URL: {self.data_url}")
        return self.data_url

    # --- compilation ---

    def compile_columns(self) -> tuple[list[str], list[str]]:
        """Compile field columns and the row actions column.

        Returns
        -------
        tuple[list[str], list[str]]
            Compiled field columns and the compiled row actions (0 or 1 entry).
        """
        compiled = []
        for raw in self.fields:
            entry = compile_column(coerce_column(raw), self.url_builder)
            if entry is not None:
                compiled.append(entry)

        actions = compile_column(self.row_actions, self.url_builder)
        return compiled, [actions] if actions is not None else []

    def compile_definitions(self) -> list[str]:
        """Compile ``columnDefs`` entries."""
        return ["{" + flatten_pairs(definition) + "}" for definition in self.definitions]

    def build_data_source(self) -> str:
        """Ajax data source: merge extra fields when configured, plain fetch otherwise."""
        if self.data_url is None:
            self.set_get_data_url()
        url = self.data_url or ""
        if any(self.config.extra_fields):
            return build_sync_data_source(url, self.config.extra_fields)
        return build_async_data_source(url)

    def validate_configuration(self, columns: list[str] | None = None) -> None:
        """Raise when the grid cannot be rendered.

        Raises
        ------
        MissingColumnsError
            No fields were configured.
        MissingColumnRendersError
            No field column compiled.
        """
        if not self.fields:
            raise MissingColumnsError("There are no columns specified for your datatable.")
        if columns is not None and not columns:
            raise MissingColumnRendersError(
                "Column renders are not specified for your datatable.",
                fields=len(self.fields),
            )

    def get_datatable_script(self, tag_id: str) -> str:
        """Get the initialization script for the grid on ``#tag_id``.

        Raises
        ------
        MissingColumnsError
            No fields were configured.
        MissingColumnRendersError
            Every field descriptor was dropped during compilation.
        """
        self.validate_configuration()

        columns, actions = self.compile_columns()
        self.validate_configuration(columns)

        config = self.config
        external_search = ""
        if not config.search:
            if config.external_search_input_id:
                external_search = build_external_search(config.external_search_input_id, tag_id)
            else:
                warn(f"Grid '{tag_id}' hides its search box but has no external search input")

        parts = ScriptParts(
            tag_id=tag_id,
            data_source=self.build_data_source(),
            columns=columns + actions,
            column_defs=self.compile_definitions(),
            processing=config.processing,
            server_side=config.server_side,
            language=config.language,
            length_menu=config.length_menu,
            draw_callback=config.draw_callback,
            on_complete_callback=config.on_complete_callback,
            external_search=external_search,
            column_search_header=build_column_search_header(tag_id) if config.column_search else "",
            column_search=COLUMN_SEARCH_JS if config.column_search else "",
        )
        debug(f"Rendering datatable '{tag_id}' with {len(parts.columns)} columns")
        return render_script(parts)

    # --- markup ---

    def get_table_headers(self, headers: Iterable[Any] | None = None, format: bool = False) -> str:  # pylint: disable=redefined-builtin
        """Render a ``<tr>`` of ``<th>`` cells for the grid's columns.

        Parameters
        ----------
        headers : Iterable | None
            Header labels or column descriptors; defaults to the fields.
        format : bool
            Humanize names (``author.first_name`` -> ``Author First Name``).
        """
        labels = []
        for raw in self.fields if headers is None else headers:
            column = coerce_column(raw) if not isinstance(raw, str) else None
            label = raw if column is None else column.name
            if not isinstance(label, str):
                continue
            labels.append(humanize(label) if format else label)

        cells = "".join(f"<th>{html.escape(label)}</th>" for label in labels)
        return f"<tr>{cells}</tr>"
