"""xfmt - extended string interpolation with control flow.

Templates mix literals and `{expr}` interpolations with `let`, `if`,
`match`, `for`, closures and an escape hatch for raw statements. A template
is compiled once into a write-program and rendered through a sink.
"""

from xfmt._version import __version__
from xfmt.api import compile_template, configure, fmt, get_config, render
from xfmt.config import XfmtConfig
from xfmt.errors import SinkWriteError, TemplateSyntaxError, XfmtError
from xfmt.formatter import Displayable, Formatter, display_fn
from xfmt.join import Join, join, join_values
from xfmt.sink import Sink, StreamSink, StringSink

__all__ = [
    "__version__",
    "compile_template",
    "configure",
    "fmt",
    "get_config",
    "render",
    "XfmtConfig",
    "XfmtError",
    "TemplateSyntaxError",
    "SinkWriteError",
    "Displayable",
    "Formatter",
    "display_fn",
    "Join",
    "join",
    "join_values",
    "Sink",
    "StreamSink",
    "StringSink",
]
