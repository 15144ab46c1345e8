"""Parse command - dump a template's syntax tree as JSON"""

from __future__ import annotations

import typer

from xfmt.ast.node import dump_json
from xfmt.ast.parser import parse_template
from xfmt.errors import TemplateSyntaxError

from .utils import exit_with_error, read_template


def parse_command(template: str, indent: int = 2) -> None:
    """Print the syntax tree of TEMPLATE."""
    try:
        tree = parse_template(read_template(template))
    except TemplateSyntaxError as e:
        exit_with_error(e)
    typer.echo(dump_json(tree, indent=indent))
