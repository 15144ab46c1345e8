"""xfmt Compiler - transforms template trees into write-programs."""

from xfmt.compiler.compiler import Compiler
from xfmt.compiler.renderer import Renderer
from xfmt.compiler.spec import Program

__all__ = ["Compiler", "Renderer", "Program"]
