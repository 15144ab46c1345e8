"""Render command - render a template to stdout"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from xfmt.api import fmt
from xfmt.sink import StringSink

from .utils import exit_with_error, load_bindings, read_template

log = logging.getLogger(__name__)


def render_command(
    template: str,
    assignments: Optional[list[str]] = None,
    bindings_file: Optional[Path] = None,
    no_newline: bool = False,
) -> None:
    """Render TEMPLATE with the given bindings."""
    source = read_template(template)
    bindings = load_bindings(assignments, bindings_file)
    log.info("Rendering with bindings: %s", ", ".join(sorted(bindings)) or "none")

    sink = StringSink()
    try:
        fmt(source, bindings).render(sink)
    except Exception as e:
        # Syntax errors and anything raised by host code while rendering.
        exit_with_error(e)
    typer.echo(sink.getvalue(), nl=not no_newline)
