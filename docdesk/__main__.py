"""
Module entrypoint for the DocDesk CLI.

This file exists so that `python -m docdesk ...` works consistently in all
environments, including when the console-script wrapper is not installed.

Notes
-----
This module contains no business logic. It delegates to the CLI module.
"""

from __future__ import annotations

from docdesk.cli import main


def _run() -> None:
    """
    Execute the DocDesk command line interface.

    Raises
    ------
    SystemExit
        Carries the CLI exit code.
    """
    raise SystemExit(main())


if __name__ == "__main__":
    _run()
