"""Explain command - show the program a template compiles to"""

from __future__ import annotations

from xfmt.api import compile_template
from xfmt.compiler.renderer import Renderer
from xfmt.errors import TemplateSyntaxError

from .utils import console, exit_with_error, read_template


def explain_command(template: str) -> None:
    """Print the write-program listing for TEMPLATE."""
    try:
        program = compile_template(read_template(template))
    except TemplateSyntaxError as e:
        exit_with_error(e)
    listing = Renderer().render(program)
    console.print(listing, end="", markup=False, highlight=False, soft_wrap=True)
