"""Renderer - converts a write-program to a readable listing."""

from __future__ import annotations

from xfmt.compiler.spec import (
    Action,
    Bind,
    Block,
    Branch,
    Dispatch,
    Loop,
    MakeClosure,
    Program,
    Splice,
    WriteLiteral,
    WriteValue,
)


class Renderer:
    """Renders Program IR to text, one action per line."""

    INDENT = "  "

    def render(self, program: Program) -> str:
        """Render a Program as an indented listing.

        Args:
            program: The Program IR to render.

        Returns:
            The listing, ending with a newline.
        """
        names = ", ".join(sorted(program.free_names)) or "-"
        lines = [f"program capture={program.capture.value} reads={names}"]
        lines.extend(self._render_block(program.actions, 1))
        return "\n".join(lines) + "\n"

    def _render_block(self, actions: Block, depth: int) -> list[str]:
        lines: list[str] = []
        for action in actions:
            lines.extend(self._render_action(action, depth))
        return lines

    def _render_action(self, action: Action, depth: int) -> list[str]:
        pad = self.INDENT * depth
        if isinstance(action, WriteLiteral):
            return [f"{pad}write {action.text!r}"]
        if isinstance(action, WriteValue):
            line = f"{pad}write_value {action.expr.source}"
            if action.conversion:
                line += f" !{action.conversion}"
            if action.spec is not None:
                spec = action.spec.static
                if spec is None:
                    spec = action.spec.spec.to_string(width="{w}", precision="{p}")
                line += f" :{spec!r}"
            return [line]
        if isinstance(action, Bind):
            target = action.name if action.name else action.target.source
            return [f"{pad}let {target} = {action.expr.source}"]
        if isinstance(action, MakeClosure):
            names = ", ".join(sorted(action.program.free_names)) or "-"
            head = f"{pad}closure {action.program.capture.value} reads={names}"
            if action.name:
                head += f" -> {action.name}"
            return [head] + self._render_block(action.program.actions, depth + 1)
        if isinstance(action, Branch):
            lines: list[str] = []
            for index, (condition, body) in enumerate(action.arms):
                keyword = "if" if index == 0 else "elif"
                test = condition.expr.source
                if condition.pattern is not None:
                    test = f"let {condition.pattern} = {test}"
                lines.append(f"{pad}{keyword} {test}")
                lines.extend(self._render_block(body, depth + 1))
            if action.otherwise:
                lines.append(f"{pad}else")
                lines.extend(self._render_block(action.otherwise, depth + 1))
            return lines
        if isinstance(action, Dispatch):
            lines = [f"{pad}match {action.subject.source}"]
            for index, body in enumerate(action.bodies):
                lines.append(f"{pad}{self.INDENT}arm {index}")
                lines.extend(self._render_block(body, depth + 2))
            return lines
        if isinstance(action, Loop):
            target = action.name if action.name else action.target.source
            lines = [f"{pad}for {target} in {action.iterable.source}"]
            return lines + self._render_block(action.body, depth + 1)
        if isinstance(action, Splice):
            lines = [f"{pad}escape |{action.param}|"]
            for line in action.code.source.splitlines():
                lines.append(f"{pad}{self.INDENT}{line}")
            return lines
        raise TypeError(f"Unknown action: {type(action).__name__}")
