"""Check command - validate a template without rendering it"""

from __future__ import annotations

from xfmt.api import compile_template
from xfmt.errors import TemplateSyntaxError

from .utils import console, exit_with_error, read_template


def check_command(template: str) -> None:
    """Check that TEMPLATE parses and its host code compiles."""
    try:
        program = compile_template(read_template(template))
    except TemplateSyntaxError as e:
        exit_with_error(e)
    names = ", ".join(sorted(program.free_names)) or "none"
    console.print(f"[green]OK[/green] reads: {names}", highlight=False, soft_wrap=True)
