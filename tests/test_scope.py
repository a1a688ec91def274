from stringtable_deobfuscator.scope import analyze
from stringtable_deobfuscator.syntax import parse


def bindings_by_name(source):
    tree = parse(source)
    scopes = analyze(tree)
    found = {}
    for binding in scopes.bindings:
        found.setdefault(binding.name, []).append(binding)
    return tree, scopes, found


def test_var_binding_collects_references():
    _, _, found = bindings_by_name("var a = 1; f(a, a);")
    (binding,) = found["a"]
    assert binding.kind == "var"
    assert binding.constant
    assert len(binding.references) == 2
    assert binding.init.value == 1


def test_assignment_is_a_violation():
    _, _, found = bindings_by_name("var a = 1; a = 2; a += 3; f(a);")
    (binding,) = found["a"]
    assert not binding.constant
    assert len(binding.violations) == 2
    assert len(binding.references) == 1


def test_update_is_both_a_read_and_a_write():
    _, _, found = bindings_by_name("var i = 0; i++;")
    (binding,) = found["i"]
    assert len(binding.violations) == 1
    assert len(binding.references) == 1


def test_destructuring_assignment_is_a_violation():
    _, _, found = bindings_by_name("var a = 1, b = 2; [a, b] = [b, a];")
    assert not found["a"][0].constant
    assert not found["b"][0].constant


def test_redeclaration_is_a_violation():
    _, _, found = bindings_by_name("var a = 1; var a = 2;")
    (binding,) = found["a"]
    assert not binding.constant


def test_var_hoists_to_the_function_scope():
    _, _, found = bindings_by_name("function f() { if (x) { var a = 1; } return a; }")
    (binding,) = found["a"]
    assert len(binding.references) == 1


def test_let_is_block_scoped():
    _, _, found = bindings_by_name("let a = 1; { let a = 2; g(a); } h(a);")
    outer, inner = found["a"]
    assert outer.init.value == 1
    assert inner.init.value == 2
    assert len(outer.references) == 1
    assert len(inner.references) == 1
    assert outer.references[0].parent.callee.name == "h"
    assert inner.references[0].parent.callee.name == "g"


def test_parameters_shadow_outer_bindings():
    _, _, found = bindings_by_name("var a = 1; function f(a) { return a; }")
    assert not found["a"][0].referenced
    param = [binding for binding in found["a"] if binding.kind == "param"][0]
    assert len(param.references) == 1


def test_function_declarations_are_hoisted():
    _, _, found = bindings_by_name("f(); function f() { return f; }")
    (binding,) = found["f"]
    assert binding.kind == "hoisted"
    assert len(binding.references) == 2
    inside = [ref for ref in binding.references if ref.is_inside(binding.path.node)]
    assert len(inside) == 1


def test_property_names_and_labels_are_not_references():
    _, _, found = bindings_by_name("var a = 1; o.a; ({a: 2}); a: for (;;) { break a; }")
    (binding,) = found["a"]
    assert not binding.referenced


def test_computed_members_and_shorthand_are_references():
    _, _, found = bindings_by_name("var a = 1; o[a]; ({a});")
    (binding,) = found["a"]
    assert len(binding.references) == 2


def test_undeclared_identifiers_are_global():
    tree = parse("console.log(x);")
    scopes = analyze(tree)
    call = tree.body[0].expression
    assert scopes.is_global(call.callee.object)
    assert scopes.is_global(call.arguments[0])
    assert scopes.binding_for(call.arguments[0]) is None


def test_catch_parameter_is_scoped_to_the_clause():
    _, _, found = bindings_by_name("try { f(); } catch (e) { g(e); }")
    (binding,) = found["e"]
    assert binding.kind == "let"
    assert len(binding.references) == 1


def test_reference_order_follows_source_order():
    tree, scopes, found = bindings_by_name("f(a); var a = 1; g(a);")
    (binding,) = found["a"]
    before, after = binding.references
    assert before.order < binding.order < after.order
