"""xfmt CLI Main Entry Point

Render, inspect and validate templates from the shell.

Usage:
    xfmt render 'Hello {name}!' --set name=World
    xfmt render - --bindings values.yaml < template.txt
    xfmt explain 'for x in xs { {x} }'
    xfmt parse 'if ok { "yes" } else { "no" }'
    xfmt check '{value:>{width}}'
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from xfmt._version import __version__

from .commands import check_command, explain_command, parse_command, render_command
from .commands.utils import setup_logging

app = typer.Typer(
    help="Extended string interpolation with control flow.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"xfmt {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show info logs."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    setup_logging(verbose)


@app.command("render")
def render(
    template: str = typer.Argument(..., help="Template source, or '-' to read stdin."),
    assignments: Optional[List[str]] = typer.Option(
        None, "--set", "-s", help="Bind NAME=VALUE (VALUE is parsed as YAML)."
    ),
    bindings_file: Optional[Path] = typer.Option(
        None, "--bindings", "-b", exists=True, dir_okay=False, help="YAML mapping of bindings."
    ),
    no_newline: bool = typer.Option(
        False, "--no-newline", "-n", help="Do not print a trailing newline."
    ),
) -> None:
    """Render a template."""
    render_command(template, assignments, bindings_file, no_newline)


@app.command("explain")
def explain(
    template: str = typer.Argument(..., help="Template source, or '-' to read stdin."),
) -> None:
    """Show the write-program a template compiles to."""
    explain_command(template)


@app.command("parse")
def parse(
    template: str = typer.Argument(..., help="Template source, or '-' to read stdin."),
    indent: int = typer.Option(2, "--indent", help="JSON indentation."),
) -> None:
    """Print a template's syntax tree as JSON."""
    parse_command(template, indent)


@app.command("check")
def check(
    template: str = typer.Argument(..., help="Template source, or '-' to read stdin."),
) -> None:
    """Validate a template without rendering it."""
    check_command(template)


if __name__ == "__main__":
    app()
