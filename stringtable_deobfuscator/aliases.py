from .syntax import is_type


def is_decoder_alias(node, decoder_name, scopes):
    """True when calling ``node`` calls the decoder.

    Follows chains of constant bindings such as ``var k = decoder; var j = k;``
    one link at a time. A chain that comes back to a binding it already
    visited is not an alias.
    """
    if not decoder_name:
        return False
    seen = set()
    current = node
    while is_type(current, "Identifier"):
        if current.name == decoder_name:
            return True
        binding = scopes.binding_for(current)
        if binding is None or id(binding) in seen:
            return False
        seen.add(id(binding))
        if not binding.constant or not is_type(binding.path.node, "VariableDeclarator"):
            return False
        current = binding.init
    return False


def decoder_call_predicate(decoder_name, scopes):
    def is_decoder_call(call):
        return is_decoder_alias(call.callee, decoder_name, scopes)
    return is_decoder_call
