from xfmt.ast.node import CaptureMode, FormatSpec, Template, dump_json
from xfmt.ast.parser import Parser, parse_template

__all__ = ["CaptureMode", "FormatSpec", "Parser", "Template", "dump_json", "parse_template"]
