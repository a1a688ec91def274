import pytest

from stringtable_deobfuscator.deadcode import eliminate_dead_code, is_guard_stub, is_pure
from stringtable_deobfuscator.syntax import generate, parse


def canonical(source):
    return generate(parse(source))


def sweep(source):
    tree = parse(source)
    changed = eliminate_dead_code(tree)
    return changed, canonical(generate(tree))


@pytest.mark.parametrize(
    "source, expected",
    [
        ("var z = 7; use(7);", "use(7);"),
        ("var a = 1, b = 2; f(b);", "var b = 2; f(b);"),
        ("let s = 'x'; const t = s + 'y'; f();", "f();"),
        ("function unused() { return unused(); } f();", "f();"),
        ("if (x) { function g() {} }", "if (x) {}"),
        ("for (var i = 0;;) { break; }", "for (;;) { break; }"),
        ("var k = B; function B() {} f();", "f();"),
        ("(function () { while (true) {} })(); f();", "f();"),
        ("!function () { while (x) { g(); } }(); f();", "f();"),
        ("(() => { while (1) {} })(); f();", "f();"),
    ],
)
def test_dead_declarations_are_removed(source, expected):
    changed, code = sweep(source)
    assert changed
    assert code == canonical(expected)


@pytest.mark.parametrize(
    "source",
    [
        "var z = 7; use(z);",
        "var a = g(); f();",
        "var a; a = 5;",
        "function g() {} g();",
        "(function () { f(); while (x) {} })();",
        "(function (a) { return a; })(1);",
        "try {} catch (e) {}",
    ],
)
def test_live_code_is_kept(source):
    changed, code = sweep(source)
    assert not changed
    assert code == canonical(source)


def test_helpers_used_only_by_removed_code_go_too():
    source = """
    function A() { var t = ["x"]; A = function () { return t; }; return A(); }
    function B(a) { var b = A(); var c = b[a - 5]; return c; }
    var k = B;
    use("x");
    """
    changed, code = sweep(source)
    assert changed
    assert code == canonical('use("x");')


def test_declaration_used_by_live_code_is_kept():
    source = "function A() { return 1; } function B() { return A(); } B();"
    changed, code = sweep(source)
    assert not changed
    assert code == canonical(source)


def test_is_pure():
    assert is_pure(parse("1 + x.y[2]").body[0].expression)
    assert is_pure(parse("(function () { f(); })").body[0].expression)
    assert not is_pure(parse("1 + f()").body[0].expression)
    assert not is_pure(parse("a = 1").body[0].expression)
    assert not is_pure(parse("delete a.b").body[0].expression)


def test_is_guard_stub():
    assert is_guard_stub(parse("(function () { while (true) {} })();").body[0])
    assert not is_guard_stub(parse("(function () { return 1; })();").body[0])
    assert not is_guard_stub(parse("while (true) {}").body[0])
