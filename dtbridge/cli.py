"""Command-line interface for dtbridge.

``dtbridge config`` prints the effective settings after all configuration
layers are merged; ``dtbridge script`` previews the bootstrap script for a
grid without running a web application.
"""

from __future__ import annotations

import argparse
import sys

from pathlib import Path

from .exceptions import ConfigurationError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dtbridge",
        description="DataTables.js server-side bridge tools",
    )
    commands = parser.add_subparsers(dest="command", help="Available commands")

    config_cmd = commands.add_parser("config", help="Print the merged dtbridge settings")
    fmt = config_cmd.add_mutually_exclusive_group()
    fmt.add_argument("--show", action="store_true", help="Readable table (default)")
    fmt.add_argument("--toml", action="store_true", help="dtbridge.toml format")
    fmt.add_argument("--env", action="store_true", help="DTBRIDGE_* export lines")
    config_cmd.add_argument("-o", "--output", help="Write to this file instead of stdout")

    script_cmd = commands.add_parser("script", help="Print the bootstrap script for a grid")
    script_cmd.add_argument("tag_id", help="DOM id of the table element")
    script_cmd.add_argument(
        "-f",
        "--fields",
        required=True,
        help="Comma-separated column field names",
    )
    script_cmd.add_argument("--url", help="Data endpoint path (default: current route)")
    script_cmd.add_argument("--controller", help="Controller segment for generated URLs")
    script_cmd.add_argument(
        "--no-row-actions",
        action="store_true",
        help="Leave out the view/edit/delete column",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the ``dtbridge`` command.

    Parameters
    ----------
    argv : list[str] | None
        Arguments without the program name; ``sys.argv[1:]`` when None.

    Returns
    -------
    int
        Exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    handlers = {"config": handle_config, "script": handle_script}
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 0
    return handler(args)


def handle_config(args: argparse.Namespace) -> int:
    """Print or write the merged settings."""
    from .config import DTBridgeSettings

    settings = DTBridgeSettings()
    if args.toml:
        rendered = settings.to_toml()
    elif args.env:
        rendered = settings.to_env()
    else:
        rendered = settings.show()

    if not args.output:
        print(rendered)
        return 0

    Path(args.output).write_text(rendered, encoding="utf-8")
    print(f"Configuration written to {args.output}")
    return 0


def handle_script(args: argparse.Namespace) -> int:
    """Print the bootstrap script for ``args.tag_id``."""
    from .script import DatatableScriptBuilder
    from .urls import RouteUrlBuilder

    builder = DatatableScriptBuilder(url_builder=RouteUrlBuilder(controller=args.controller))
    fields = [name.strip() for name in args.fields.split(",") if name.strip()]

    try:
        builder.set_fields(fields)
        if not args.no_row_actions:
            builder.set_row_actions()
        builder.set_get_data_url(args.url)
        script = builder.get_datatable_script(args.tag_id)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(script)
    return 0


if __name__ == "__main__":
    sys.exit(main())
