"""Adapters around the JavaScript toolchain plus small tree helpers.

Parsing is done by esprima, rendering by escodegen and cosmetic formatting
by jsbeautifier. Everything else in the package works on the esprima node
objects through ``walk`` and ``NodePath``.
"""
import json
import math

import escodegen
import esprima
import jsbeautifier
from esprima import nodes
from esprima.error_handler import Error as EsprimaError

from .errors import ParseFailure


def parse(source):
    try:
        return esprima.parseScript(source)
    except EsprimaError as error:
        line = getattr(error, "lineNumber", None)
        column = getattr(error, "column", None)
        raise ParseFailure(str(error), line, column) from error


def generate(tree):
    return escodegen.generate(tree)


def beautify(code):
    options = jsbeautifier.default_options()
    options.indent_size = 2
    options.preserve_newlines = True
    options.max_preserve_newlines = 2
    return jsbeautifier.beautify(code, options)


def is_node(value):
    return isinstance(value, nodes.Node)


def is_type(node, *types):
    return getattr(node, "type", None) in types


def is_identifier(node, name=None):
    if not is_type(node, "Identifier"):
        return False
    return name is None or node.name == name


def is_string_literal(node):
    return is_type(node, "Literal") and isinstance(node.value, str)


def is_number_literal(node):
    if not is_type(node, "Literal"):
        return False
    return isinstance(node.value, (int, float)) and not isinstance(node.value, bool)


def is_integer_literal(node):
    return is_number_literal(node) and float(node.value).is_integer()


def is_literal_like(node):
    """A node that can be copied freely: a primitive literal or ``-<number>``."""
    if is_type(node, "Literal"):
        return getattr(node, "regex", None) is None
    return is_type(node, "UnaryExpression") and node.operator == "-" and is_number_literal(node.argument)


def make_literal(value):
    if isinstance(value, bool):
        return nodes.Literal(value, "true" if value else "false")
    if value is None:
        return nodes.Literal(None, "null")
    if isinstance(value, str):
        return nodes.Literal(value, json.dumps(value, ensure_ascii=False))
    if not math.isfinite(value):
        raise ValueError(f"no literal form for {value!r}")
    if value < 0 or (value == 0 and math.copysign(1.0, value) < 0):
        return nodes.UnaryExpression("-", make_literal(-value))
    if float(value).is_integer():
        value = int(value)
        return nodes.Literal(value, str(value))
    return nodes.Literal(value, repr(float(value)))


def clone_literal(node):
    if is_type(node, "UnaryExpression"):
        return nodes.UnaryExpression(node.operator, clone_literal(node.argument))
    return nodes.Literal(node.value, node.raw)


def make_identifier(name):
    return nodes.Identifier(name)


class NodePath:
    """A node together with the slot it occupies in its parent."""

    __slots__ = ("node", "parent_path", "key", "index", "order")

    def __init__(self, node, parent_path=None, key=None, index=None):
        self.node = node
        self.parent_path = parent_path
        self.key = key
        self.index = index
        self.order = None

    @property
    def parent(self):
        return self.parent_path.node if self.parent_path else None

    def ancestors(self):
        path = self.parent_path
        while path is not None:
            yield path
            path = path.parent_path

    def is_inside(self, node):
        return any(ancestor.node is node for ancestor in self.ancestors())

    def replace(self, replacement):
        parent = self.parent
        if parent is None:
            raise ValueError("cannot replace the root node")
        if self.index is None:
            setattr(parent, self.key, replacement)
        else:
            getattr(parent, self.key)[self.index] = replacement
        self.node = replacement

    def remove(self):
        """Detach the node from a list slot, or clear a single slot."""
        parent = self.parent
        if self.index is None:
            setattr(parent, self.key, None)
            return
        container = getattr(parent, self.key)
        container[:] = [item for item in container if item is not self.node]

    def __repr__(self):
        return f"<NodePath {getattr(self.node, 'type', '?')} at {self.key}[{self.index}]>"


def child_paths(path):
    children = []
    for key, value in list(vars(path.node).items()):
        if isinstance(value, list):
            for index, item in enumerate(value):
                if is_node(item):
                    children.append(NodePath(item, path, key, index))
        elif is_node(value):
            children.append(NodePath(value, path, key))
    return children


def walk(root):
    """Pre-order walk yielding NodePaths.

    Children are read after the parent has been yielded, so a consumer may
    replace the current node and the walk continues below the replacement.
    The walk keeps its own stack; deeply nested trees are fine.
    """
    stack = [NodePath(root)]
    order = 0
    while stack:
        path = stack.pop()
        path.order = order
        order += 1
        yield path
        stack.extend(reversed(child_paths(path)))
