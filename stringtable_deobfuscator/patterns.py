"""Shape predicates for the string-table loader and its decoder.

Each predicate takes a node and returns either ``NO_MATCH`` or a match
record with the captured fields. The predicates have no side effects, so a
failed recognition can simply be retried on the next iteration.
"""
from dataclasses import dataclass

from .syntax import is_identifier, is_integer_literal, is_string_literal, is_type, walk


class NoMatch:
    def __bool__(self):
        return False

    def __repr__(self):
        return "NoMatch"


NO_MATCH = NoMatch()


@dataclass(frozen=True)
class LoaderMatch:
    name: str
    table: tuple


@dataclass(frozen=True)
class DecoderMatch:
    name: str
    offset: int


@dataclass(frozen=True)
class OffsetMatch:
    offset: int


def _function_body(function):
    body = getattr(function, "body", None)
    if not is_type(body, "BlockStatement"):
        return None
    return body.body


def _first_declarator(statement):
    if not is_type(statement, "VariableDeclaration") or not statement.declarations:
        return None
    return statement.declarations[0]


def _self_redefinition(expression, name):
    """``name = function () {...}``; returns the function expression."""
    if not is_type(expression, "AssignmentExpression") or expression.operator != "=":
        return None
    if not is_identifier(expression.left, name) or not is_type(expression.right, "FunctionExpression"):
        return None
    return expression.right


def match_loader(function):
    """function NAME() { var t = ["..", ..]; NAME = function () {...}; return ...; }"""
    if not is_type(function, "FunctionDeclaration") or function.id is None:
        return NO_MATCH
    body = _function_body(function)
    if body is None or len(body) != 3:
        return NO_MATCH
    declaration, redefinition, ret = body

    declarator = _first_declarator(declaration)
    if declarator is None or not is_type(declarator.init, "ArrayExpression"):
        return NO_MATCH
    elements = declarator.init.elements
    if not all(is_string_literal(element) for element in elements):
        return NO_MATCH

    if not is_type(redefinition, "ExpressionStatement"):
        return NO_MATCH
    if _self_redefinition(redefinition.expression, function.id.name) is None:
        return NO_MATCH
    if not is_type(ret, "ReturnStatement"):
        return NO_MATCH

    return LoaderMatch(function.id.name, tuple(element.value for element in elements))


def match_offset(node, table_name=None, params=()):
    """First ``x = x - N`` below ``node`` in pre-order.

    With ``table_name`` and ``params`` a direct lookup ``table[param - N]``
    also counts.
    """
    for path in walk(node):
        current = path.node
        if is_type(current, "AssignmentExpression") and current.operator == "=":
            right = current.right
            if (
                is_type(current.left, "Identifier")
                and is_type(right, "BinaryExpression")
                and right.operator == "-"
                and is_identifier(right.left, current.left.name)
                and is_integer_literal(right.right)
            ):
                return OffsetMatch(int(right.right.value))
        if table_name is not None and is_type(current, "MemberExpression") and current.computed:
            index = current.property
            if (
                is_identifier(current.object, table_name)
                and is_type(index, "BinaryExpression")
                and index.operator == "-"
                and is_type(index.left, "Identifier")
                and index.left.name in params
                and is_integer_literal(index.right)
            ):
                return OffsetMatch(int(index.right.value))
    return NO_MATCH


def match_decoder(function, loader_name):
    """The function that reads the loader's table and applies the offset.

    Two shapes are recognized. The self-redefining one:

        function NAME(a, b) { var t = LOADER(); return NAME = function (x, y) { x = x - N; ... }, NAME(a, b); }

    and the direct one:

        function NAME(a) { var t = LOADER(); ... t[a - N] ...; return ...; }
    """
    if not is_type(function, "FunctionDeclaration") or function.id is None:
        return NO_MATCH
    name = function.id.name
    if name == loader_name:
        return NO_MATCH
    body = _function_body(function)
    if not body:
        return NO_MATCH

    declarator = _first_declarator(body[0])
    if declarator is None or not is_type(declarator.init, "CallExpression"):
        return NO_MATCH
    if not is_identifier(declarator.init.callee, loader_name):
        return NO_MATCH
    if not is_type(body[-1], "ReturnStatement"):
        return NO_MATCH

    if len(body) == 2:
        argument = body[1].argument
        if is_type(argument, "SequenceExpression") and argument.expressions:
            inner = _self_redefinition(argument.expressions[0], name)
            if inner is not None:
                offset = match_offset(inner)
                return DecoderMatch(name, offset.offset) if offset else NO_MATCH

    if not is_type(declarator.id, "Identifier"):
        return NO_MATCH
    params = tuple(param.name for param in function.params if is_type(param, "Identifier"))
    offset = match_offset(function.body, declarator.id.name, params)
    return DecoderMatch(name, offset.offset) if offset else NO_MATCH


def function_declarations(tree):
    for path in walk(tree):
        if is_type(path.node, "FunctionDeclaration"):
            yield path.node


def find_loader(tree):
    for function in function_declarations(tree):
        found = match_loader(function)
        if found:
            return found
    return NO_MATCH


def find_decoder(tree, loader_name):
    for function in function_declarations(tree):
        found = match_decoder(function, loader_name)
        if found:
            return found
    return NO_MATCH
