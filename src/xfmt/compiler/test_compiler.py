"""Tests for the compiler module."""

from collections import ChainMap

import pytest

from xfmt.ast.node import CaptureMode
from xfmt.ast.parser import parse_template
from xfmt.compiler import Compiler
from xfmt.compiler.spec import (
    Branch,
    Dispatch,
    Loop,
    MakeClosure,
    Splice,
    WriteLiteral,
    WriteValue,
    assign,
)
from xfmt.errors import TemplateSyntaxError


def compile_source(source, **options):
    return Compiler(**options).compile(parse_template(source), source)


def test_adjacent_literals_are_merged():
    program = compile_source('"a" "b" {x} "c"')
    assert [type(action) for action in program.actions] == [
        WriteLiteral,
        WriteValue,
        WriteLiteral,
    ]
    assert program.actions[0].text == "ab"
    assert program.free_names == {"x"}


def test_literal_merging_can_be_disabled():
    program = compile_source('"a" "b"', merge_literals=False)
    assert [action.text for action in program.actions] == ["a", "b"]


def test_empty_literals_are_dropped():
    assert compile_source('"" ""').actions == ()


def test_let_binds_names():
    program = compile_source("let y = x + 1; {y}")
    assert program.free_names == {"x"}


def test_let_reads_before_it_binds():
    program = compile_source("let x = x + 1; {x}")
    assert program.free_names == {"x"}


def test_destructuring_let():
    program = compile_source("let (a, b) = pair; {a} {b}")
    assert program.free_names == {"pair"}
    assert program.actions[0].name is None
    assert program.actions[0].target is not None


def test_for_binds_pattern_in_body_only():
    program = compile_source("for i in range(n) { {i} } {i}")
    (loop, _) = program.actions
    assert isinstance(loop, Loop)
    assert loop.name == "i"
    assert program.free_names == {"range", "n", "i"}


def test_for_strips_reference_marker():
    (loop,) = compile_source("for &v in xs { {v} }").actions
    assert loop.name == "v"


def test_else_if_chain_is_flattened():
    (branch,) = compile_source('if a { "A" } else if b { "B" } else { "C" }').actions
    assert isinstance(branch, Branch)
    assert [condition.expr.source for condition, _ in branch.arms] == ["a", "b"]
    assert branch.otherwise[0].text == "C"


def test_if_let_binds_pattern_in_its_block_only():
    program = compile_source("if let (a, b) = pair { {a}{b} } else { {a} }")
    (branch,) = program.actions
    (condition, _) = branch.arms[0]
    assert condition.pattern == "(a, b)"
    assert condition.arm.stores == {"a", "b"}
    assert program.free_names == {"pair", "a"}


def test_tuple_pattern_strips_reference_markers():
    (loop,) = compile_source("for (&k, &v) in d { {k} }").actions
    assert loop.name is None
    assert loop.target.source == "(k, v)"


def test_assign_without_name_or_target():
    with pytest.raises(TypeError, match="needs a name or a compiled target"):
        assign(ChainMap(), 1, None, None, {})


def test_match_captures_are_local_to_their_arm():
    program = compile_source('match v { (a, b) if a > lim => {a}, _ => "no" }')
    (dispatch,) = program.actions
    assert isinstance(dispatch, Dispatch)
    assert len(dispatch.bodies) == 2
    assert program.free_names == {"v", "lim"}


def test_unreachable_match_arm_is_a_syntax_error():
    with pytest.raises(TemplateSyntaxError, match="invalid Python match"):
        compile_source('match v { x => "a", _ => "b" }')


def test_escape_binds_param_and_assignments():
    program = compile_source("|f| y = f; {y}")
    assert isinstance(program.actions[0], Splice)
    assert program.free_names == frozenset()


def test_closure_free_names_are_read_by_enclosing_block():
    program = compile_source("let f = || { {x} {y} }; let y = 1; {f}")
    (make, _, _) = program.actions
    assert isinstance(make, MakeClosure)
    assert make.name == "f"
    assert make.program.free_names == {"x", "y"}
    assert make.program.capture is CaptureMode.REFERENCE
    assert program.free_names == {"x", "y"}


def test_closure_must_bind_a_plain_name():
    with pytest.raises(TemplateSyntaxError, match="plain name"):
        compile_source('let a.b = || { "x" };')


def test_static_spec_is_precomputed():
    (write,) = compile_source("{x:>8.2f}").actions
    assert write.spec.static == ">8.2f"


def test_dynamic_spec_reads_its_names():
    program = compile_source("{x:>{width}}")
    (write,) = program.actions
    assert write.spec.static is None
    assert write.spec.width.source == "width"
    assert program.free_names == {"x", "width"}


def test_host_syntax_error_points_at_expression():
    source = '"x" {1 +}'
    with pytest.raises(TemplateSyntaxError, match="invalid Python expression") as excinfo:
        compile_source(source)
    assert excinfo.value.position == 5


def test_nested_code_is_flagged():
    (write,) = compile_source("{sum(v * k for v in xs)}").actions
    assert write.expr.nested
    assert "k" in write.expr.loads
