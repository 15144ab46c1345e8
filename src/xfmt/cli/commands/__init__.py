"""CLI commands"""

from .render import render_command
from .explain import explain_command
from .parse import parse_command
from .check import check_command

__all__ = ["render_command", "explain_command", "parse_command", "check_command"]
