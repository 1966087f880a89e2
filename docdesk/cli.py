"""
Command-line interface for DocDesk.

Notes
-----
The CLI is intentionally thin. It parses arguments and delegates to the grid
engine. The `collections` and `browse` commands run against an in-memory
host seeded from a JSON file (``{"collection": [documents...]}``), which makes
them useful for inspecting exports and for smoke-testing the grid engine
without a desktop session.
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from grid_engine.errors import DocDeskError
from grid_engine.logging_config import setup_logging
from grid_engine.memory_service import InMemoryDocumentService, load_collections_file
from grid_engine.orchestrator import DEFAULT_PAGE_SIZE, GridOrchestrator, GridSnapshot, MessageSlot
from grid_engine.paths import default_data_root, settings_path
from grid_engine.render import render_grid_text


def build_parser() -> argparse.ArgumentParser:
    """
    Build and return the top-level argument parser.

    Returns
    -------
    argparse.ArgumentParser
        Configured parser.
    """
    parser = argparse.ArgumentParser(
        prog="docdesk",
        description="Desktop document database browser",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for diagnostics written to stderr (default: WARNING).",
    )
    parser.add_argument(
        "--log-format",
        choices=["console", "json"],
        default="console",
        help="Log output format (default: console).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gui_p = sub.add_parser("gui", help="Launch the desktop application")
    gui_p.add_argument(
        "--data",
        type=Path,
        default=None,
        help="JSON file of collections to browse (default: built-in demo data)",
    )

    sub.add_parser("paths", help="Print the data root and settings file locations")

    coll_p = sub.add_parser("collections", help="List collections in a JSON data file")
    coll_p.add_argument("--data", required=True, type=Path, help="JSON file of collections")

    browse_p = sub.add_parser("browse", help="Render one page of a collection as a table")
    browse_p.add_argument("--data", required=True, type=Path, help="JSON file of collections")
    browse_p.add_argument("--collection", required=True, help="Collection to show")
    browse_p.add_argument(
        "--filter",
        default="",
        help='Literal filter object, e.g. \'{"name": "Bob"}\' (default: match all).',
    )
    browse_p.add_argument("--page", type=int, default=1, help="Page to show (clamped, default: 1)")
    browse_p.add_argument(
        "--page-size",
        type=int,
        default=DEFAULT_PAGE_SIZE,
        help=f"Documents per page (default: {DEFAULT_PAGE_SIZE}).",
    )
    browse_p.add_argument(
        "--max-cell-width",
        type=int,
        default=40,
        help="Clip cells longer than this many characters (default: 40).",
    )

    return parser


async def _browse(args: argparse.Namespace) -> GridSnapshot:
    service = InMemoryDocumentService(load_collections_file(args.data))
    grid = GridOrchestrator(service, page_size=args.page_size)
    try:
        await grid.select_collection(args.collection)
        if args.filter.strip():
            await grid.apply_filter(args.filter)
        grid.go_to_page(args.page)
        return grid.snapshot()
    finally:
        grid.close()


def main(argv: list[str] | None = None) -> int:
    """
    CLI entry point.

    Parameters
    ----------
    argv:
        Optional argument vector. If None, argparse uses sys.argv.

    Returns
    -------
    int
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level=args.log_level, fmt=args.log_format)

    if args.command == "gui":
        from gui.app import main as gui_main

        try:
            return gui_main(args.data)
        except (DocDeskError, OSError) as exc:
            print(f"ERROR: {exc}")
            return 2

    if args.command == "paths":
        print(f"data_root: {default_data_root()}")
        print(f"settings: {settings_path()}")
        return 0

    if args.command == "collections":
        try:
            names = sorted(load_collections_file(args.data))
        except (DocDeskError, OSError) as exc:
            print(f"ERROR: {exc}")
            return 2
        for name in names:
            print(name)
        return 0

    if args.command == "browse":
        if args.page_size <= 0:
            print("ERROR: --page-size must be positive.")
            return 2
        if args.max_cell_width < 1:
            print("ERROR: --max-cell-width must be at least 1.")
            return 2
        try:
            snapshot = asyncio.run(_browse(args))
        except (DocDeskError, OSError, ValueError) as exc:
            print(f"ERROR: {exc}")
            return 2
        print(render_grid_text(snapshot, max_cell_width=args.max_cell_width))
        if snapshot.message(MessageSlot.FILTER) or snapshot.message(MessageSlot.FETCH):
            return 2
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
