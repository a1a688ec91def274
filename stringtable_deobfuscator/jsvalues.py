"""JavaScript value semantics for static evaluation.

Values are plain Python objects: ``str``, ``bool``, ``int``/``float`` for
numbers, ``list`` for arrays, and the ``UNDEFINED``/``NULL`` singletons.
Anything outside that model raises ``NotStatic``.
"""
import ast
import math
import re
from decimal import Decimal

from simpleeval import MAX_POWER, MAX_STRING_LENGTH, IterableTooLong, NumberTooHigh


class NotStatic(Exception):
    pass


class _Singleton:
    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return self.name


UNDEFINED = _Singleton("undefined")
NULL = _Singleton("null")

NAN = float("nan")
INFINITY = float("inf")

# ToNumber grammar for decimal strings
DECIMAL_REGEX = re.compile(r"^[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)$")
WHITESPACE = " \t\n\r\v\f\u00a0\ufeff\u2028\u2029"


def is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_js_number(num_str):
    num_str = num_str.strip(WHITESPACE)
    if not num_str:
        return 0
    try:
        lowered = num_str.lower()
        if lowered.startswith("0x"): return int(num_str[2:], 16)
        elif lowered.startswith("0o"): return int(num_str[2:], 8)
        elif lowered.startswith("0b"): return int(num_str[2:], 2)
    except ValueError:
        return NAN
    if num_str in ("Infinity", "+Infinity"): return INFINITY
    if num_str == "-Infinity": return -INFINITY
    if not DECIMAL_REGEX.match(num_str):
        return NAN
    return _normalize(float(num_str))


def to_number(value):
    if isinstance(value, bool):
        return 1 if value else 0
    if is_number(value):
        return value
    if isinstance(value, str):
        return parse_js_number(value)
    if value is UNDEFINED:
        return NAN
    if value is NULL:
        return 0
    if isinstance(value, list):
        return to_number(to_string(value))
    raise NotStatic(value)


def number_to_string(value):
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    if abs(value) < 2 ** 53 and float(value).is_integer():
        return str(int(value))
    text = repr(float(value))
    if "e" not in text:
        return text
    mantissa, exponent = text.split("e")
    exponent = int(exponent)
    if -7 < exponent < 21:
        return format(Decimal(text), "f")
    sign = "+" if exponent > 0 else "-"
    return f"{mantissa}e{sign}{abs(exponent)}"


def to_string(value):
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return number_to_string(value)
    if value is UNDEFINED:
        return "undefined"
    if value is NULL:
        return "null"
    if isinstance(value, list):
        return ",".join("" if item is UNDEFINED or item is NULL else to_string(item) for item in value)
    raise NotStatic(value)


def truthy(value):
    if isinstance(value, bool):
        return value
    if is_number(value):
        return not (value == 0 or math.isnan(value))
    if isinstance(value, str):
        return value != ""
    if value is UNDEFINED or value is NULL:
        return False
    if isinstance(value, list):
        return True
    raise NotStatic(value)


def to_int32(value):
    number = to_number(value)
    if math.isnan(number) or math.isinf(number):
        return 0
    number = int(number) & 0xFFFFFFFF
    return number - 0x100000000 if number >= 0x80000000 else number


def to_uint32(value):
    return to_int32(value) & 0xFFFFFFFF


def type_of(value):
    if isinstance(value, str):
        return "string"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if value is UNDEFINED:
        return "undefined"
    if value is NULL or isinstance(value, list):
        return "object"
    raise NotStatic(value)


def _checked_string(text):
    if len(text) > MAX_STRING_LENGTH:
        raise IterableTooLong(f"String Length ({len(text)}) exceeds MAX_STRING_LENGTH ({MAX_STRING_LENGTH})")
    return text


def _normalize(number):
    if isinstance(number, float) and number.is_integer() and abs(number) < 2 ** 53:
        # -0 has no int form
        if number == 0 and math.copysign(1.0, number) < 0:
            return number
        return int(number)
    return number


# A. ARITHMETIC

def js_add(left, right):
    if isinstance(left, list):
        left = to_string(left)
    if isinstance(right, list):
        right = to_string(right)
    if isinstance(left, str) or isinstance(right, str):
        return _checked_string(to_string(left) + to_string(right))
    return _normalize(float(to_number(left)) + float(to_number(right)))


def js_sub(left, right):
    return _normalize(float(to_number(left)) - float(to_number(right)))


def js_mul(left, right):
    return _normalize(float(to_number(left)) * float(to_number(right)))


def js_div(left, right):
    left, right = float(to_number(left)), float(to_number(right))
    if right == 0:
        if left == 0 or math.isnan(left):
            return NAN
        negative = (left < 0) != (math.copysign(1.0, right) < 0)
        return -INFINITY if negative else INFINITY
    return _normalize(left / right)


def js_mod(left, right):
    left, right = float(to_number(left)), float(to_number(right))
    if right == 0 or math.isinf(left) or math.isnan(left) or math.isnan(right):
        return NAN
    if math.isinf(right):
        return _normalize(left)
    return _normalize(math.fmod(left, right))


def js_pow(left, right):
    left, right = float(to_number(left)), float(to_number(right))
    if abs(right) > MAX_POWER:
        raise NumberTooHigh(f"Sorry! I don't want to evaluate {left} ** {right}")
    try:
        return _normalize(math.pow(left, right))
    except (OverflowError, ValueError):
        return NAN


def js_neg(value):
    return _normalize(-float(to_number(value)))


def js_pos(value):
    return _normalize(to_number(value))


# B. BITWISE (emulate JS 32-bit integers)

def js_bit_and(left, right):
    return to_int32(to_int32(left) & to_int32(right))


def js_bit_or(left, right):
    return to_int32(to_int32(left) | to_int32(right))


def js_bit_xor(left, right):
    return to_int32(to_int32(left) ^ to_int32(right))


def js_bit_not(value):
    return to_int32(~to_int32(value))


def js_shl(left, right):
    return to_int32(to_int32(left) << (to_uint32(right) & 31))


def js_shr(left, right):
    return to_int32(left) >> (to_uint32(right) & 31)


def js_ushr(left, right):
    return to_uint32(left) >> (to_uint32(right) & 31)


# C. COMPARISON

def strict_equals(left, right):
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_number(left) and is_number(right):
        return float(left) == float(right)
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return left is right


def loose_equals(left, right):
    left_nullish = left is UNDEFINED or left is NULL
    right_nullish = right is UNDEFINED or right is NULL
    if left_nullish or right_nullish:
        return left_nullish and right_nullish
    if isinstance(left, list) or isinstance(right, list):
        if isinstance(left, list) and isinstance(right, list):
            return left is right
        raise NotStatic("object comparison")
    if type_of(left) == type_of(right):
        return strict_equals(left, right)
    return float(to_number(left)) == float(to_number(right))


def js_strict_ne(left, right):
    return not strict_equals(left, right)


def js_loose_ne(left, right):
    return not loose_equals(left, right)


def _relational(compare):
    def relation(left, right):
        if isinstance(left, list) or isinstance(right, list):
            raise NotStatic("object comparison")
        if isinstance(left, str) and isinstance(right, str):
            return compare(left, right)
        left, right = float(to_number(left)), float(to_number(right))
        if math.isnan(left) or math.isnan(right):
            return False
        return compare(left, right)
    return relation


js_lt = _relational(lambda a, b: a < b)
js_gt = _relational(lambda a, b: a > b)
js_le = _relational(lambda a, b: a <= b)
js_ge = _relational(lambda a, b: a >= b)


def js_not(value):
    return not truthy(value)


# Python operator classes standing for the JavaScript ones
OPERATORS = {
    ast.Add: js_add,
    ast.Sub: js_sub,
    ast.Mult: js_mul,
    ast.Div: js_div,
    ast.Mod: js_mod,
    ast.Pow: js_pow,
    ast.BitAnd: js_bit_and,
    ast.BitOr: js_bit_or,
    ast.BitXor: js_bit_xor,
    ast.LShift: js_shl,
    ast.RShift: js_shr,
    ast.Eq: strict_equals,
    ast.NotEq: js_strict_ne,
    ast.Lt: js_lt,
    ast.Gt: js_gt,
    ast.LtE: js_le,
    ast.GtE: js_ge,
    ast.USub: js_neg,
    ast.UAdd: js_pos,
    ast.Not: js_not,
    ast.Invert: js_bit_not,
}


# D. PURE BUILTINS

def _args(args, count):
    args = list(args) + [UNDEFINED] * count
    return args[:count]


def parse_int(*args):
    text, radix = _args(args, 2)
    text = to_string(text).lstrip(WHITESPACE)
    radix = 0 if radix is UNDEFINED else to_int32(radix)
    sign = 1
    if text and text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if radix == 0:
        radix = 10
        if text[:2].lower() == "0x":
            radix, text = 16, text[2:]
    elif radix == 16 and text[:2].lower() == "0x":
        text = text[2:]
    if radix < 2 or radix > 36:
        return NAN
    digits = ""
    for char in text:
        if char.isascii() and char.isalnum() and int(char, 36) < radix:
            digits += char
        else:
            break
    if not digits:
        return NAN
    try:
        return _normalize(sign * float(int(digits, radix)))
    except OverflowError:
        return sign * INFINITY


PARSE_FLOAT_REGEX = re.compile(r"^[+-]?(?:Infinity|\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)")


def parse_float(*args):
    text = to_string(_args(args, 1)[0]).lstrip(WHITESPACE)
    match = PARSE_FLOAT_REGEX.match(text)
    if not match:
        return NAN
    return parse_js_number(match.group(0))


def number_(*args):
    return to_number(args[0]) if args else 0


def string_(*args):
    return to_string(args[0]) if args else ""


def boolean_(*args):
    return truthy(args[0]) if args else False


def is_nan(*args):
    return math.isnan(to_number(_args(args, 1)[0]))


def is_finite(*args):
    return math.isfinite(to_number(_args(args, 1)[0]))


def from_char_code(*codes):
    text = "".join(chr(to_uint32(code) & 0xFFFF) for code in codes)
    if any(0xD800 <= ord(char) <= 0xDFFF for char in text):
        raise NotStatic("surrogate code unit")
    return text


def _math(function):
    def apply(*args):
        numbers = [float(to_number(arg)) for arg in args]
        try:
            return _normalize(function(*numbers))
        except (ValueError, OverflowError):
            return NAN
    return apply


def _signed_zero(rounding):
    def apply(value):
        if math.isnan(value) or math.isinf(value):
            return value
        result = rounding(value)
        if result == 0 and math.copysign(1.0, value) < 0:
            return -0.0
        return result
    return apply


def _sign(value):
    if math.isnan(value) or value == 0:
        return value
    return 1 if value > 0 else -1


def _extreme(pick, empty):
    def extreme(*values):
        if any(math.isnan(value) for value in values):
            return NAN
        return pick(values) if values else empty
    return extreme


MATH_FUNCTIONS = {
    "abs": _math(abs),
    "floor": _math(_signed_zero(math.floor)),
    "ceil": _math(_signed_zero(math.ceil)),
    "round": _math(_signed_zero(lambda value: math.floor(value + 0.5))),
    "trunc": _math(_signed_zero(math.trunc)),
    "sign": _math(_sign),
    "sqrt": _math(math.sqrt),
    "max": _math(_extreme(max, -INFINITY)),
    "min": _math(_extreme(min, INFINITY)),
    "pow": lambda *args: js_pow(*_args(args, 2)),
}

GLOBAL_FUNCTIONS = {
    "parseInt": parse_int,
    "parseFloat": parse_float,
    "Number": number_,
    "String": string_,
    "Boolean": boolean_,
    "isNaN": is_nan,
    "isFinite": is_finite,
}


def _relative_index(value, length, default):
    if value is UNDEFINED:
        return default
    number = to_number(value)
    if math.isnan(number):
        return 0
    if math.isinf(number):
        return length if number > 0 else 0
    number = int(number)
    return max(length + number, 0) if number < 0 else min(number, length)


def _clamped_index(value, length, default):
    if value is UNDEFINED:
        return default
    number = to_number(value)
    if math.isnan(number):
        return 0
    if math.isinf(number):
        return length if number > 0 else 0
    return min(max(int(number), 0), length)


def _char_at(text, index=UNDEFINED):
    position = 0 if index is UNDEFINED else to_number(index)
    if math.isnan(position):
        position = 0
    position = int(position) if not math.isinf(position) else -1
    return text[position] if 0 <= position < len(text) else ""


def _char_code_at(text, index=UNDEFINED):
    char = _char_at(text, index)
    return ord(char) if char else NAN


def _slice(sequence, start=UNDEFINED, end=UNDEFINED):
    length = len(sequence)
    return sequence[_relative_index(start, length, 0):_relative_index(end, length, length)]


def _substring(text, start=UNDEFINED, end=UNDEFINED):
    length = len(text)
    begin, finish = _clamped_index(start, length, 0), _clamped_index(end, length, length)
    return text[min(begin, finish):max(begin, finish)]


def _index_of(sequence, needle=UNDEFINED, start=UNDEFINED):
    begin = _clamped_index(start, len(sequence), 0)
    if isinstance(sequence, str):
        return sequence.find(to_string(needle), begin)
    for index in range(begin, len(sequence)):
        if strict_equals(sequence[index], needle):
            return index
    return -1


def _split(text, separator=UNDEFINED, limit=UNDEFINED):
    if separator is UNDEFINED:
        parts = [text]
    else:
        separator = to_string(separator)
        parts = list(text) if separator == "" else text.split(separator)
    if limit is not UNDEFINED:
        parts = parts[:to_uint32(limit)]
    return parts


def _join(items, separator=UNDEFINED):
    separator = "," if separator is UNDEFINED else to_string(separator)
    return _checked_string(separator.join(
        "" if item is UNDEFINED or item is NULL else to_string(item) for item in items
    ))


STRING_METHODS = {
    "charAt": _char_at,
    "charCodeAt": _char_code_at,
    "toUpperCase": lambda text: text.upper(),
    "toLowerCase": lambda text: text.lower(),
    "slice": _slice,
    "substring": _substring,
    "indexOf": _index_of,
    "trim": lambda text: text.strip(WHITESPACE),
    "concat": lambda text, *rest: _checked_string(text + "".join(to_string(item) for item in rest)),
    "split": _split,
}

ARRAY_METHODS = {
    "join": _join,
    "indexOf": _index_of,
    "slice": _slice,
}


def call_method(receiver, name, *args):
    if isinstance(receiver, str):
        method = STRING_METHODS.get(name)
    elif isinstance(receiver, list):
        method = ARRAY_METHODS.get(name)
    else:
        method = None
    if method is None:
        raise NotStatic(f"method {name}")
    return method(receiver, *args)


def get_member(receiver, key):
    if isinstance(receiver, (str, list)):
        key = to_string(key)
        if key == "length":
            return len(receiver)
        if key.isdigit() and (key == "0" or not key.startswith("0")):
            index = int(key)
            return receiver[index] if index < len(receiver) else UNDEFINED
    raise NotStatic(f"member {key!r}")
