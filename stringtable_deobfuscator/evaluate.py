"""Conservative static evaluation of expressions.

Every JavaScript operator is applied through a ``simpleeval.SimpleEval``
whose operator and function tables carry JavaScript semantics (see
``jsvalues``). Nothing with a visible effect is ever run: calls are limited
to a whitelist of pure builtins and never reach a decoder alias.
"""
import math
from dataclasses import dataclass

from simpleeval import InvalidExpression, SimpleEval

from . import jsvalues
from .jsvalues import INFINITY, NAN, NULL, UNDEFINED, NotStatic
from .syntax import is_type

BINARY_TEMPLATES = {
    "+": "a + b",
    "-": "a - b",
    "*": "a * b",
    "/": "a / b",
    "%": "a % b",
    "**": "a ** b",
    "&": "a & b",
    "|": "a | b",
    "^": "a ^ b",
    "<<": "a << b",
    ">>": "a >> b",
    ">>>": "ushr(a, b)",
    "===": "a == b",
    "!==": "a != b",
    "==": "loose_eq(a, b)",
    "!=": "loose_ne(a, b)",
    "<": "a < b",
    ">": "a > b",
    "<=": "a <= b",
    ">=": "a >= b",
}

UNARY_TEMPLATES = {
    "-": "-a",
    "+": "+a",
    "!": "not a",
    "~": "~a",
    "typeof": "typeof(a)",
    "void": "void(a)",
}

FUNCTIONS = {
    "ushr": jsvalues.js_ushr,
    "loose_eq": jsvalues.loose_equals,
    "loose_ne": jsvalues.js_loose_ne,
    "typeof": jsvalues.type_of,
    "void": lambda value: UNDEFINED,
    "member": jsvalues.get_member,
    "method": jsvalues.call_method,
    "String_fromCharCode": jsvalues.from_char_code,
}
FUNCTIONS.update(jsvalues.GLOBAL_FUNCTIONS)
FUNCTIONS.update({f"Math_{name}": function for name, function in jsvalues.MATH_FUNCTIONS.items()})

GLOBAL_VALUES = {"undefined": UNDEFINED, "NaN": NAN, "Infinity": INFINITY}

SIDE_EFFECT_TYPES = (
    "AssignmentExpression",
    "UpdateExpression",
    "NewExpression",
    "AwaitExpression",
    "YieldExpression",
    "TaggedTemplateExpression",
)

EVALUATION_ERRORS = (
    NotStatic,
    InvalidExpression,
    ArithmeticError,
    TypeError,
    ValueError,
    IndexError,
    RecursionError,
)


@dataclass(frozen=True)
class Known:
    value: object
    known = True


class Unknown:
    known = False

    def __repr__(self):
        return "Unknown"


class SideEffecting(Unknown):
    def __repr__(self):
        return "SideEffecting"


UNKNOWN = Unknown()
SIDE_EFFECTING = SideEffecting()


class _Unknown(Exception):
    pass


class _SideEffect(Exception):
    pass


def is_literal_value(value):
    if isinstance(value, (str, bool)):
        return True
    return jsvalues.is_number(value) and math.isfinite(value)


class StaticEvaluator:
    def __init__(self, scopes, is_decoder_call=None):
        self.scopes = scopes
        self.is_decoder_call = is_decoder_call or (lambda node: False)
        self._engine = SimpleEval(operators=dict(jsvalues.OPERATORS), functions=dict(FUNCTIONS))
        self._resolving = set()

    def evaluate(self, node):
        try:
            value = self._value(node)
        except _SideEffect:
            return SIDE_EFFECTING
        except (_Unknown,) + EVALUATION_ERRORS:
            return UNKNOWN
        if is_literal_value(value):
            return Known(value)
        return UNKNOWN

    def _apply(self, template, **operands):
        self._engine.names = operands
        return self._engine.eval(template)

    def _value(self, node):
        kind = getattr(node, "type", None)
        if kind == "Literal":
            return self._literal(node)
        if kind == "Identifier":
            return self._identifier(node)
        if kind == "TemplateLiteral":
            return self._template(node)
        if kind == "UnaryExpression":
            if node.operator == "delete":
                raise _SideEffect
            template = UNARY_TEMPLATES.get(node.operator)
            if template is None:
                raise _Unknown
            return self._apply(template, a=self._value(node.argument))
        if kind == "BinaryExpression":
            template = BINARY_TEMPLATES.get(node.operator)
            if template is None:
                raise _Unknown
            left = self._value(node.left)
            return self._apply(template, a=left, b=self._value(node.right))
        if kind == "LogicalExpression":
            return self._logical(node)
        if kind == "ConditionalExpression":
            if jsvalues.truthy(self._value(node.test)):
                return self._value(node.consequent)
            return self._value(node.alternate)
        if kind == "SequenceExpression":
            values = [self._value(expression) for expression in node.expressions]
            return values[-1]
        if kind == "ArrayExpression":
            return self._array(node)
        if kind == "MemberExpression":
            receiver = self._value(node.object)
            key = self._value(node.property) if node.computed else node.property.name
            return self._apply("member(a, b)", a=receiver, b=key)
        if kind == "CallExpression":
            return self._call(node)
        if kind in SIDE_EFFECT_TYPES:
            raise _SideEffect
        raise _Unknown

    def _literal(self, node):
        if getattr(node, "regex", None) is not None:
            raise _Unknown
        value = node.value
        if value is None:
            return NULL
        if isinstance(value, str):
            return _bmp_only(value)
        return value

    def _identifier(self, node):
        binding = self.scopes.binding_for(node)
        if binding is None:
            if node.name in GLOBAL_VALUES:
                return GLOBAL_VALUES[node.name]
            raise _Unknown

        init = binding.init
        if not binding.constant or init is None or binding.kind not in ("var", "let", "const"):
            raise _Unknown
        reference = self.scopes.path_of(node)
        if reference is None or reference.order < binding.order or reference.is_inside(binding.path.node):
            raise _Unknown
        if id(binding) in self._resolving:
            raise _Unknown

        self._resolving.add(id(binding))
        try:
            value = self._value(init)
        except _SideEffect:
            raise _Unknown from None
        finally:
            self._resolving.discard(id(binding))
        # A named array can be mutated through the binding
        if isinstance(value, list):
            raise _Unknown
        return value

    def _template(self, node):
        text = _cooked(node.quasis[0])
        for expression, quasi in zip(node.expressions, node.quasis[1:]):
            text += jsvalues.to_string(self._value(expression)) + _cooked(quasi)
        return _bmp_only(text)

    def _logical(self, node):
        left = self._value(node.left)
        if node.operator == "&&":
            return self._value(node.right) if jsvalues.truthy(left) else left
        if node.operator == "||":
            return left if jsvalues.truthy(left) else self._value(node.right)
        if node.operator == "??":
            return self._value(node.right) if left is UNDEFINED or left is NULL else left
        raise _Unknown

    def _array(self, node):
        values = []
        for element in node.elements:
            if element is None:
                values.append(UNDEFINED)
            elif is_type(element, "SpreadElement"):
                raise _Unknown
            else:
                values.append(self._value(element))
        return values

    def _call(self, node):
        if self.is_decoder_call(node):
            raise _Unknown
        callee = node.callee
        function = None
        receiver = None
        if is_type(callee, "Identifier") and callee.name in jsvalues.GLOBAL_FUNCTIONS:
            if self.scopes.is_global(callee):
                function = callee.name
        elif is_type(callee, "MemberExpression"):
            name = self._property_name(callee)
            owner = callee.object
            if is_type(owner, "Identifier") and self.scopes.is_global(owner):
                if owner.name == "Math" and name in jsvalues.MATH_FUNCTIONS:
                    function = f"Math_{name}"
                elif owner.name == "String" and name == "fromCharCode":
                    function = "String_fromCharCode"
            if function is None and name is not None:
                receiver = self._value(owner)
                if not isinstance(receiver, (str, list)):
                    raise _Unknown
        if function is None and receiver is None:
            raise _SideEffect

        args = []
        for argument in node.arguments:
            if is_type(argument, "SpreadElement"):
                raise _Unknown
            args.append(self._value(argument))
        operands = {f"a{index}": value for index, value in enumerate(args)}
        arg_names = list(operands)
        if function is not None:
            return self._apply(f"{function}({', '.join(arg_names)})", **operands)
        operands.update(r=receiver, n=name)
        return self._apply(f"method({', '.join(['r', 'n'] + arg_names)})", **operands)

    def _property_name(self, member):
        if not member.computed:
            return member.property.name
        if is_type(member.property, "Literal") and isinstance(member.property.value, str):
            return member.property.value
        return None


def _bmp_only(text):
    # Lengths and indexes are counted in UTF-16 units by JavaScript
    if any(ord(char) > 0xFFFF for char in text):
        raise _Unknown
    return text


def _cooked(quasi):
    value = quasi.value
    cooked = value.get("cooked") if isinstance(value, dict) else getattr(value, "cooked", None)
    if cooked is None:
        raise _Unknown
    return cooked
