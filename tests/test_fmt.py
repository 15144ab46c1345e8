"""End-to-end tests: template source in, text out."""

import pytest

from xfmt import (
    TemplateSyntaxError,
    StringSink,
    compile_template,
    display_fn,
    fmt,
    render,
)


def test_hello_world():
    assert str(fmt('"Hello " {name} "!"', name="World")) == "Hello World!"


def test_format_spec():
    assert str(fmt('"hex(" {value} ") = " {value:#x}', value=42)) == "hex(42) = 0x2a"


def test_value():
    assert str(fmt('"value = " {value}', value=42)) == "value = 42"


def test_whitespace_between_items_is_not_output():
    assert str(fmt("{a} {b}", a=1, b=2)) == "12"


def test_numeric_literals():
    assert str(fmt('1 " " 2.5')) == "1 2.5"


def test_for_loop_table():
    template = '"|" for &val in [1, 2, 3] { {val:>3} "|" }'
    assert str(fmt(template)) == "|  1|  2|  3|"


def test_empty_for_loop():
    assert str(fmt('"[" for x in [] { {x} } "]"')) == "[]"


def test_let_inside_loop_is_fresh_each_iteration():
    template = 'for i in [1, 2] { let j = i * 10; {j} " " }'
    assert str(fmt(template)) == "10 20 "


@pytest.mark.parametrize(
    "power, expected",
    [(0.5, "At 50% power"), (0.25, "Low power")],
)
def test_if_else(power, expected):
    template = (
        'if power >= 0.5 { "At " {power * 100.0:.0f} "% power" } else { "Low power" }'
    )
    assert str(fmt(template, power=power)) == expected


@pytest.mark.parametrize("n, expected", [(-1, "negative"), (0, "zero"), (7, "positive")])
def test_else_if_chain(n, expected):
    template = 'if n < 0 { "negative" } else if n == 0 { "zero" } else { "positive" }'
    assert str(fmt(template, n=n)) == expected


def test_if_without_else_writes_nothing():
    assert str(fmt('"<" if flag { "on" } ">"', flag=False)) == "<>"


@pytest.mark.parametrize("n, expected", [(0, "zero"), (2, "small"), (9, "many")])
def test_match(n, expected):
    template = 'match n { 0 => "zero", 1 | 2 => "small", _ => "many" }'
    assert str(fmt(template, n=n)) == expected


@pytest.mark.parametrize("point, expected", [((2, 2), "diag 2"), ((1, 3), "1,3")])
def test_match_guard_and_captures(point, expected):
    template = 'match p { (x, y) if x == y => "diag " {x}, (x, y) => {x} "," {y} }'
    assert str(fmt(template, p=point)) == expected


def test_match_without_matching_arm_writes_nothing():
    assert str(fmt('"[" match n { 1 => "one" } "]"', n=5)) == "[]"


def test_escape_hatch():
    template = '"Now entering [" |f| f.write("escape hatch"); "]"'
    assert str(fmt(template)) == "Now entering [escape hatch]"


def test_escape_assignments_are_visible_later():
    assert str(fmt("|_| y = 3; {y}")) == "3"


def test_move_and_reference_closures():
    template = (
        "let x = 1; let f = || { {x} }; let g = move || { {x} }; let x = 2; "
        '{f} " " {g}'
    )
    assert str(fmt(template)) == "2 1"


def test_inline_closure_renders_in_place():
    assert str(fmt('"<" || { {a} } ">"', a="x")) == "<x>"


def test_move_escape_closure():
    template = 'let g = move |f| f.write(str(n)); {g} {g}'
    assert str(fmt(template, n=4)) == "44"


def test_reference_formatter_sees_namespace_changes():
    namespace = {"count": 1}
    formatter = fmt('"count=" {count}', namespace)
    namespace["count"] = 5
    assert str(formatter) == "count=5"


def test_move_formatter_snapshots_namespace():
    namespace = {"count": 1}
    formatter = fmt('move "count=" {count}', namespace)
    namespace["count"] = 5
    assert str(formatter) == "count=1"


def test_bindings_shadow_namespace():
    assert str(fmt("{x}", {"x": "ns"}, x="kw")) == "kw"


def test_formatter_is_reusable():
    formatter = fmt("for i in range(3) { {i} }")
    assert str(formatter) == "012"
    assert str(formatter) == "012"


def test_formatter_in_format_spec():
    inner = fmt('"ab"')
    assert str(fmt("{inner:>4}", inner=inner)) == "  ab"
    assert format(inner, "-<4") == "ab--"


def test_captures():
    assert fmt("{a}{b}", a=1).captures == {"a": 1}


def test_nested_braces_in_expression():
    assert str(fmt('{ {"a": 1}["a"] }')) == "1"


def test_dynamic_width():
    assert str(fmt("{value:>{width}}", value="x", width=4)) == "   x"


def test_conversion():
    assert str(fmt("{name!r}", name="a")) == "'a'"


def test_destructuring_let():
    assert str(fmt('let (a, b) = pair; {a} "-" {b}', pair=(1, 2))) == "1-2"


def test_generator_expression_sees_template_names():
    assert str(fmt("let k = 3; {sum(x * k for x in xs)}", xs=[1, 2])) == "9"


def test_display_fn():
    display = display_fn(lambda f: f.write("display"))
    assert str(fmt("{d}", d=display)) == "display"
    assert str(fmt("{d:>9}", d=display)) == "  display"


def test_render_into_sink():
    sink = StringSink()
    render('"a" {b}', sink, b=1)
    assert sink.getvalue() == "a1"


def test_host_errors_propagate():
    with pytest.raises(NameError):
        str(fmt("{missing}"))


def test_syntax_errors_raise_at_load_time():
    with pytest.raises(TemplateSyntaxError):
        fmt('if x { "a"')


def test_compile_template_is_cached():
    assert compile_template('"cached" {x}') is compile_template('"cached" {x}')


def test_adjacent_items_need_no_whitespace():
    assert str(fmt('"Hello "{name}"!"', name="World")) == "Hello World!"


def test_let_from_binding():
    assert str(fmt('let value = base - 10; "value = "{value}', base=52)) == "value = 42"


def test_multiplication_table():
    template = (
        "for &val in [1,2,3,4,5] { let result = val*5; "
        '"* "{val}" x 5 = "{result}"\\n" }'
    )
    expected = "".join(f"* {i} x 5 = {i * 5}\n" for i in range(1, 6))
    assert str(fmt(template)) == expected


@pytest.mark.parametrize(
    "template, expected",
    [
        ("{x:=10}", "         5"),
        ("{x:=^7}", "===5==="),
        ("{x:0=5}", "00005"),
    ],
)
def test_equals_align_in_format_spec(template, expected):
    assert str(fmt(template, x=5)) == expected


def test_failed_guard_does_not_leak_captures():
    template = 'match v { n if n > 5 => "big", _ => "small" {n} }'
    assert str(fmt(template, v=9)) == "big"
    with pytest.raises(NameError):
        str(fmt(template, v=3))


def test_match_arm_sees_outer_name_shadowed_by_failed_guard():
    template = 'match v { n if n > 5 => "big", _ => "small " {n} }'
    assert str(fmt(template, v=3, n="outer")) == "small outer"


def test_if_let():
    template = 'if let (a, b) = pair { {a} "+" {b} } else { "none" }'
    assert str(fmt(template, pair=(1, 2))) == "1+2"
    assert str(fmt(template, pair=None)) == "none"


def test_else_if_let_chain():
    template = (
        'if let [x] = xs { "one " {x} } '
        'else if let [x, *rest] = xs { "first " {x} " of " {len(rest) + 1} } '
        'else { "empty" }'
    )
    assert str(fmt(template, xs=[7])) == "one 7"
    assert str(fmt(template, xs=[1, 2, 3])) == "first 1 of 3"
    assert str(fmt(template, xs=[])) == "empty"


def test_if_let_binding_stays_in_its_block():
    template = 'if let [name] = names { {name} } " " {name}'
    assert str(fmt(template, names=["ann"], name="outer")) == "ann outer"


def test_groups_inline_into_the_block():
    assert str(fmt('"<" ("a" {x}) ">"', x=1)) == "<a1>"
    assert str(fmt('(let y = x * 2;) {y}', x=4)) == "8"


def test_group_as_match_arm_body():
    template = 'match v { 1 => ("one" " " {v}), _ => "other" }'
    assert str(fmt(template, v=1)) == "one 1"


def test_reference_markers_inside_tuple_patterns():
    assert str(fmt('for (&k, &v) in d.items() { {k}{v} }', d={"a": 1, "b": 2})) == "a1b2"
