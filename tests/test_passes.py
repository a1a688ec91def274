import pytest

from stringtable_deobfuscator.passes import (
    REWRITE_PASSES,
    fold_constants,
    inline_constants,
    normalize_properties,
    resolve_decoder_calls,
    table_entry,
)
from stringtable_deobfuscator.pipeline import PipelineState
from stringtable_deobfuscator.syntax import generate, parse

STATE = PipelineState(table=("x", "y"), loader_name="A", decoder_name="B", offset=5, decoder_found=True)


def canonical(source):
    return generate(parse(source))


def rewrite(pass_, source, state=STATE):
    tree = parse(source)
    changed = pass_(tree, state)
    return changed, canonical(generate(tree))


def test_passes_run_in_dependency_order():
    assert REWRITE_PASSES == (resolve_decoder_calls, fold_constants, inline_constants, normalize_properties)


@pytest.mark.parametrize(
    "value, expected",
    [(5, "x"), (6, "y"), (6.0, "y"), (7, None), (4, None), (5.5, None), ("5", None), (True, None)],
)
def test_table_entry(value, expected):
    assert table_entry(STATE, value) == expected


def test_decoder_calls_in_range_are_resolved():
    changed, code = rewrite(resolve_decoder_calls, "f(B(5), B(6), B(99), B(4), B(x), B(5.5));")
    assert changed
    assert code == canonical('f("x", "y", B(99), B(4), B(x), B(5.5));')


def test_decoder_arguments_are_evaluated():
    changed, code = rewrite(resolve_decoder_calls, "var i = 1; f(B(0x2 + 3), B(i + 5));")
    assert changed
    assert code == canonical('var i = 1; f("x", "y");')


def test_decoder_calls_through_aliases_are_resolved():
    changed, code = rewrite(resolve_decoder_calls, "var k = B; var j = k; f(k(5), j(6));")
    assert changed
    assert code == canonical('var k = B; var j = k; f("x", "y");')


def test_reassigned_alias_is_not_resolved():
    source = "var k = B; k = g; f(k(5));"
    changed, code = rewrite(resolve_decoder_calls, source)
    assert not changed
    assert code == canonical(source)


def test_nothing_is_resolved_before_discovery():
    source = "f(B(5));"
    changed, code = rewrite(resolve_decoder_calls, source, PipelineState())
    assert not changed
    assert code == canonical(source)


def test_constant_expressions_are_folded():
    changed, code = rewrite(fold_constants, 'f(1 + 2, "a" + "b", "abc".length, 1 - 3, [1, 2].join("-"));')
    assert changed
    assert code == canonical('f(3, "ab", 3, -2, "1-2");')


def test_negative_zero_is_folded_as_negative_zero():
    changed, code = rewrite(fold_constants, "f(0 * -1, Math.round(-0.4), 1 / (0 * -1));")
    assert changed
    assert code == canonical("f(-0, -0, 1 / -0);")


def test_declarator_initializers_are_folded():
    changed, code = rewrite(fold_constants, "var a = 2 * 3, b = a + 1;")
    assert changed
    assert code == canonical("var a = 6, b = 7;")


@pytest.mark.parametrize(
    "source",
    [
        "f(g() + 1);",
        "f(1 / 0);",
        "f(B(99));",
        '"ab".length = 1;',
        "var a = 1;",
        "var a = -1;",
        "x = y + 1;",
    ],
)
def test_folding_leaves_unknown_values_alone(source):
    changed, code = rewrite(fold_constants, source)
    assert not changed
    assert code == canonical(source)


def test_folding_inside_a_write_target():
    changed, code = rewrite(fold_constants, "o[1 + 1] = 3;")
    assert changed
    assert code == canonical("o[2] = 3;")


def test_constants_are_inlined():
    changed, code = rewrite(inline_constants, 'var z = 7; var s = "s"; var n = -1; use(z, s, s, n);')
    assert changed
    assert code == canonical('var z = 7; var s = "s"; var n = -1; use(7, "s", "s", -1);')


def test_inlining_into_shorthand_property():
    changed, code = rewrite(inline_constants, "var z = 7; f({z});")
    assert changed
    assert code == canonical("var z = 7; f({z: 7});")


@pytest.mark.parametrize(
    "source",
    [
        "var z = 7; z = 8; use(z);",
        "var o = g(); use(o);",
        "var r = /re/; use(r);",
        "use(z); var z = 7;",
        "function f(p) { return p; }",
    ],
)
def test_inlining_skips_non_constants(source):
    changed, code = rewrite(inline_constants, source)
    assert not changed
    assert code == canonical(source)


def test_property_access_is_normalized():
    changed, code = rewrite(normalize_properties, 'obj["go"]; obj["1go"]; obj["a-b"]; obj[k]; obj["_ok9"]();')
    assert changed
    assert code == canonical('obj.go; obj["1go"]; obj["a-b"]; obj[k]; obj._ok9();')


def test_normalized_code_is_left_alone():
    changed, code = rewrite(normalize_properties, "obj.go;")
    assert not changed
    assert code == canonical("obj.go;")
