import logging

from .scope import analyze
from .syntax import NodePath, child_paths, is_type, walk

LOG = logging.getLogger(__name__)

FUNCTION_TYPES = ("FunctionExpression", "ArrowFunctionExpression")
IMPURE_TYPES = (
    "CallExpression",
    "NewExpression",
    "AssignmentExpression",
    "UpdateExpression",
    "AwaitExpression",
    "YieldExpression",
    "TaggedTemplateExpression",
    "ClassExpression",
)


def is_pure(node):
    """No calls or writes outside of nested function bodies."""
    stack = [node]
    while stack:
        current = stack.pop()
        if is_type(current, *FUNCTION_TYPES):
            continue
        if is_type(current, *IMPURE_TYPES):
            return False
        if is_type(current, "UnaryExpression") and current.operator == "delete":
            return False
        stack.extend(child.node for child in child_paths(NodePath(current)))
    return True


def is_guard_stub(statement):
    """An IIFE whose body opens with a while loop: ``(function () { while (...) ... })()``."""
    if not is_type(statement, "ExpressionStatement"):
        return False
    expression = statement.expression
    if is_type(expression, "UnaryExpression"):
        expression = expression.argument
    if not is_type(expression, "CallExpression"):
        return False
    callee = expression.callee
    if not is_type(callee, *FUNCTION_TYPES) or not is_type(callee.body, "BlockStatement"):
        return False
    statements = callee.body.body
    return bool(statements) and is_type(statements[0], "WhileStatement")


def _is_live(binding, discarded):
    """Whether anything outside the declaration and the discarded nodes uses it."""
    declaration = binding.path.node
    for path in binding.references + binding.violations:
        if path.is_inside(declaration):
            continue
        if any(path.is_inside(node) for node in discarded):
            continue
        return True
    return False


def _is_removable(binding):
    path = binding.path
    node = path.node
    if binding.kind == "hoisted" and is_type(node, "FunctionDeclaration"):
        return path.index is not None
    if binding.kind not in ("var", "let", "const") or not is_type(node, "VariableDeclarator"):
        return False
    if not is_type(node.id, "Identifier"):
        return False
    if node.init is not None and not is_pure(node.init):
        return False
    declaration = path.parent_path
    if len(declaration.node.declarations) > 1 or declaration.index is not None:
        return True
    return is_type(declaration.parent, "ForStatement") and declaration.key == "init"


def _remove(binding):
    path = binding.path
    if is_type(path.node, "FunctionDeclaration"):
        path.remove()
        return
    declaration = path.parent_path
    if len(declaration.node.declarations) > 1:
        path.remove()
    else:
        declaration.remove()


def eliminate_dead_code(tree):
    """Drop unreferenced declarations and guard stubs in one sweep.

    Bindings are computed once. A use only keeps a declaration alive when it
    sits outside that declaration and outside everything else this sweep
    removes, so a helper used only by removed code goes as well.
    """
    scopes = analyze(tree)
    stubs = [path for path in walk(tree) if path.index is not None and is_guard_stub(path.node)]
    discarded = [stub.node for stub in stubs]

    candidates = [
        binding for binding in scopes.bindings
        if _is_removable(binding) and not any(binding.path.is_inside(node) for node in discarded)
    ]
    dead = []
    progress = True
    while progress:
        progress = False
        for binding in candidates:
            if binding in dead or _is_live(binding, discarded):
                continue
            dead.append(binding)
            discarded.append(binding.path.node)
            progress = True

    for binding in dead:
        _remove(binding)
        LOG.debug("Removed unreferenced declaration %s", binding.name)
    for stub in stubs:
        stub.remove()
        LOG.debug("Removed anti-tampering guard stub")

    return bool(dead or stubs)
