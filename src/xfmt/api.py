"""Public entry points: compile templates and turn them into formatters."""

from __future__ import annotations

import logging
from collections import ChainMap
from functools import lru_cache
from typing import Any, Callable, Mapping

from xfmt.ast.parser import parse_template
from xfmt.compiler.compiler import Compiler
from xfmt.compiler.renderer import Renderer
from xfmt.compiler.spec import Program
from xfmt.config import XfmtConfig
from xfmt.formatter import Formatter, new_globals
from xfmt.sink import Sink

log = logging.getLogger(__name__)

_config = XfmtConfig.load()
_cache: Callable[[str], Program]


def _compile(source: str) -> Program:
    template = parse_template(source)
    program = Compiler(merge_literals=_config.merge_literals).compile(template, source)
    if _config.debug:
        log.debug("Generated program:\n%s", Renderer().render(program))
    return program


def configure(config: XfmtConfig | None = None) -> XfmtConfig:
    """Install `config` (or reload it from the environment) and reset the cache."""
    global _config, _cache
    _config = config if config is not None else XfmtConfig.load()
    _cache = lru_cache(maxsize=_config.cache_size)(_compile)
    log.debug("Configured %r", _config)
    return _config


def get_config() -> XfmtConfig:
    return _config


def compile_template(source: str) -> Program:
    """Parse and compile template source.

    Programs are cached per distinct source text, so a template written
    inline in a loop is only compiled once.

    Raises:
        TemplateSyntaxError: when the template or its host code is malformed.
    """
    return _cache(source)


def fmt(
    source: str, /, namespace: Mapping[str, Any] | None = None, **bindings: Any
) -> Formatter:
    """Create a formatter object for `source`.

    Names in the template resolve against `bindings` first, then `namespace`.
    A by-reference template keeps a live view of both; one starting with
    `move` snapshots the names it reads right away.

    Example:
        >>> str(fmt("value = {value}", value=42))
        'value = 42'
    """
    program = compile_template(source)
    scope: ChainMap = ChainMap(dict(bindings))
    if namespace is not None:
        scope.maps.append(namespace)
    return program.bind(scope, new_globals())


def render(
    source: str,
    sink: Sink,
    /,
    namespace: Mapping[str, Any] | None = None,
    **bindings: Any,
) -> None:
    """Render `source` straight into `sink`."""
    fmt(source, namespace, **bindings).render(sink)


configure(_config)
