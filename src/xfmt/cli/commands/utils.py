"""Shared utilities for CLI commands"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler

from xfmt.api import get_config
from xfmt.errors import TemplateSyntaxError

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the xfmt CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (-v): INFO level
    - Debug (XFMT_DEBUG=1): DEBUG level - parse/compile/cache events
    """
    debug = get_config().debug
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    xfmt_logger = logging.getLogger("xfmt")
    xfmt_logger.setLevel(level)
    xfmt_logger.handlers = [handler]
    xfmt_logger.propagate = False


def read_template(template: str) -> str:
    """Return template source; `-` reads it from stdin."""
    if template == "-":
        return sys.stdin.read()
    return template


def load_bindings(assignments: Optional[list[str]], bindings_file: Optional[Path]) -> dict[str, Any]:
    """Collect template bindings from a YAML file and `name=value` pairs.

    Values are parsed as YAML, so `n=3` binds an int and `xs=[1, 2]` a list.
    Pairs given on the command line override the file.
    """
    bindings: dict[str, Any] = {}
    if bindings_file is not None:
        with open(bindings_file) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise typer.BadParameter(
                f"{bindings_file} must contain a mapping", param_hint="--bindings"
            )
        bindings.update(data)

    for assignment in assignments or []:
        name, sep, raw = assignment.partition("=")
        name = name.strip()
        if not sep or not name.isidentifier():
            raise typer.BadParameter(
                f"expected NAME=VALUE, got {assignment!r}", param_hint="--set"
            )
        bindings[name] = yaml.safe_load(raw) if raw.strip() else ""
    return bindings


def exit_with_error(error: Exception, exit_code: int = 1) -> NoReturn:
    """Print an error (with a source excerpt for syntax errors) and exit."""
    typer.secho(f"Error: {error}", err=True, fg=typer.colors.RED)
    if isinstance(error, TemplateSyntaxError):
        excerpt = error.excerpt()
        if excerpt:
            typer.echo(excerpt, err=True)
    raise typer.Exit(code=exit_code)
