"""The rewrite passes run inside the fixed-point loop.

Every pass has the signature ``pass_(tree, state) -> bool``: it mutates the
tree in place and reports whether it replaced anything. Bindings are
computed afresh at the start of each pass. The order in ``REWRITE_PASSES``
matters: folding works on the literals decoder resolution produced, and
inlining works on the literals folding produced.
"""
import logging
import re

from .aliases import decoder_call_predicate, is_decoder_alias
from .evaluate import StaticEvaluator
from .jsvalues import is_number
from .scope import analyze
from .syntax import (
    clone_literal,
    is_literal_like,
    is_string_literal,
    is_type,
    make_identifier,
    make_literal,
    walk,
)

LOG = logging.getLogger(__name__)

IDENTIFIER_REGEX = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

FOLDABLE_TYPES = ("CallExpression", "BinaryExpression", "MemberExpression")


def table_entry(state, value):
    """The string a decoder call with argument ``value`` stands for, or None."""
    if not is_number(value):
        return None
    index = value - state.offset
    if not float(index).is_integer():
        return None
    index = int(index)
    if 0 <= index < len(state.table):
        return state.table[index]
    return None


def resolve_decoder_calls(tree, state):
    if not state.decoder_found:
        return False
    scopes = analyze(tree)
    is_decoder_call = decoder_call_predicate(state.decoder_name, scopes)
    evaluator = StaticEvaluator(scopes, is_decoder_call)
    resolved = 0

    for path in walk(tree):
        node = path.node
        if not is_type(node, "CallExpression") or not node.arguments:
            continue
        if not is_decoder_alias(node.callee, state.decoder_name, scopes):
            continue
        outcome = evaluator.evaluate(node.arguments[0])
        if not outcome.known:
            continue
        entry = table_entry(state, outcome.value)
        if entry is None:
            continue
        path.replace(make_literal(entry))
        resolved += 1

    LOG.debug("Resolved %d decoder calls", resolved)
    return resolved > 0


def _is_write_target(path):
    parent = path.parent
    if is_type(parent, "AssignmentExpression", "ForInStatement", "ForOfStatement"):
        return path.key == "left"
    if is_type(parent, "UpdateExpression"):
        return True
    return is_type(parent, "UnaryExpression") and parent.operator == "delete"


def fold_constants(tree, state):
    scopes = analyze(tree)
    is_decoder_call = decoder_call_predicate(state.decoder_name, scopes)
    evaluator = StaticEvaluator(scopes, is_decoder_call)
    folded = 0

    for path in walk(tree):
        node = path.node
        if is_type(node, "VariableDeclarator"):
            if node.init is None or is_literal_like(node.init):
                continue
            outcome = evaluator.evaluate(node.init)
            if outcome.known:
                node.init = make_literal(outcome.value)
                folded += 1
            continue

        if not is_type(node, *FOLDABLE_TYPES):
            continue
        if is_type(node, "CallExpression") and is_decoder_call(node):
            continue
        if is_type(node, "MemberExpression") and _is_write_target(path):
            continue
        outcome = evaluator.evaluate(node)
        if outcome.known:
            path.replace(make_literal(outcome.value))
            folded += 1

    LOG.debug("Folded %d expressions", folded)
    return folded > 0


def inline_constants(tree, state):
    scopes = analyze(tree)
    inlined = 0

    for binding in scopes.bindings:
        init = binding.init
        if binding.kind not in ("var", "let", "const") or not binding.constant:
            continue
        if init is None or not is_literal_like(init):
            continue
        for reference in binding.references:
            # Before its declarator runs a hoisted var still reads undefined
            if reference.order < binding.order:
                continue
            parent = reference.parent
            if is_type(parent, "Property") and parent.shorthand:
                parent.shorthand = False
            reference.replace(clone_literal(init))
            inlined += 1

    LOG.debug("Inlined %d constant references", inlined)
    return inlined > 0


def normalize_properties(tree, state):
    normalized = 0

    for path in walk(tree):
        node = path.node
        if not is_type(node, "MemberExpression") or not node.computed:
            continue
        key = node.property
        if is_string_literal(key) and IDENTIFIER_REGEX.match(key.value):
            node.computed = False
            node.property = make_identifier(key.value)
            normalized += 1

    LOG.debug("Normalized %d property accesses", normalized)
    return normalized > 0


REWRITE_PASSES = (
    resolve_decoder_calls,
    fold_constants,
    inline_constants,
    normalize_properties,
)
