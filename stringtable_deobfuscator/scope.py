"""Binding resolution for esprima trees.

``analyze`` builds a fresh table of scopes and bindings for the tree as it
is right now. The result describes one snapshot: any mutation of the tree
makes it stale, so every pass that needs bindings calls ``analyze`` again.
"""
from dataclasses import dataclass, field

from .syntax import is_type, walk

FUNCTION_TYPES = ("FunctionDeclaration", "FunctionExpression", "ArrowFunctionExpression")
BLOCK_SCOPE_TYPES = ("BlockStatement", "ForStatement", "ForInStatement", "ForOfStatement", "SwitchStatement")
LABEL_PARENTS = ("LabeledStatement", "BreakStatement", "ContinueStatement")


@dataclass(eq=False)
class Binding:
    name: str
    kind: str
    path: object
    scope: object
    references: list = field(default_factory=list)
    violations: list = field(default_factory=list)

    @property
    def constant(self):
        return not self.violations

    @property
    def referenced(self):
        return bool(self.references)

    @property
    def order(self):
        return self.path.order

    @property
    def init(self):
        node = self.path.node
        if is_type(node, "VariableDeclarator") and is_type(node.id, "Identifier"):
            return node.init
        return None


class Scope:
    def __init__(self, block, parent=None, is_function=False):
        self.block = block
        self.parent = parent
        self.is_function = is_function
        self.bindings = {}

    def function_scope(self):
        scope = self
        while not scope.is_function:
            scope = scope.parent
        return scope

    def lookup(self, name):
        scope = self
        while scope is not None:
            binding = scope.bindings.get(name)
            if binding is not None:
                return binding
            scope = scope.parent
        return None

    def declare(self, name, kind, path):
        existing = self.bindings.get(name)
        if existing is not None:
            # A second declaration of the same name reassigns it
            existing.violations.append(path)
            return existing
        binding = Binding(name, kind, path, self)
        self.bindings[name] = binding
        return binding


def pattern_identifiers(pattern):
    if pattern is None:
        return []
    if is_type(pattern, "Identifier"):
        return [pattern]
    if is_type(pattern, "ArrayPattern"):
        found = []
        for element in pattern.elements:
            found.extend(pattern_identifiers(element))
        return found
    if is_type(pattern, "ObjectPattern"):
        found = []
        for prop in pattern.properties:
            if is_type(prop, "RestElement"):
                found.extend(pattern_identifiers(prop.argument))
            else:
                found.extend(pattern_identifiers(prop.value))
        return found
    if is_type(pattern, "AssignmentPattern"):
        return pattern_identifiers(pattern.left)
    if is_type(pattern, "RestElement"):
        return pattern_identifiers(pattern.argument)
    return []


class ScopeInfo:
    def __init__(self, root):
        self.root = root
        self.program_scope = None
        self.bindings = []
        self._scopes = {}
        self._resolved = {}
        self._paths = {}

    def binding_for(self, identifier):
        return self._resolved.get(id(identifier))

    def path_of(self, node):
        return self._paths.get(id(node))

    def is_global(self, identifier):
        """True for an identifier that no declaration in the script binds."""
        return id(identifier) in self._paths and self.binding_for(identifier) is None

    def _declare(self, scope, identifiers, kind, path, declaring):
        for identifier in identifiers:
            declaring.add(id(identifier))
            created = identifier.name not in scope.bindings
            binding = scope.declare(identifier.name, kind, path)
            if created:
                self.bindings.append(binding)


def analyze(root):
    info = ScopeInfo(root)
    declaring = set()
    assigning = set()
    occurrences = []

    for path in walk(root):
        node = path.node
        outer = info._scopes.get(id(path.parent)) if path.parent is not None else None
        scope = outer

        if outer is None:
            scope = Scope(node, None, is_function=True)
            info.program_scope = scope
        elif is_type(node, *FUNCTION_TYPES):
            scope = Scope(node, outer, is_function=True)
            if is_type(node, "FunctionDeclaration") and node.id is not None:
                info._declare(outer, [node.id], "hoisted", path, declaring)
            elif node.id is not None:
                info._declare(scope, [node.id], "local", path, declaring)
            for param in node.params:
                info._declare(scope, pattern_identifiers(param), "param", path, declaring)
        elif is_type(node, "BlockStatement") and is_type(path.parent, *FUNCTION_TYPES):
            pass
        elif is_type(node, *BLOCK_SCOPE_TYPES):
            scope = Scope(node, outer)
        elif is_type(node, "CatchClause"):
            scope = Scope(node, outer)
            info._declare(scope, pattern_identifiers(node.param), "let", path, declaring)
        elif is_type(node, "ClassDeclaration") and node.id is not None:
            info._declare(outer, [node.id], "let", path, declaring)
        elif is_type(node, "ClassExpression") and node.id is not None:
            declaring.add(id(node.id))
        elif is_type(node, "VariableDeclarator"):
            kind = path.parent.kind
            target = outer.function_scope() if kind == "var" else outer
            info._declare(target, pattern_identifiers(node.id), kind, path, declaring)
        elif is_type(node, "AssignmentExpression") and not is_type(node.left, "Identifier"):
            assigning.update(id(ident) for ident in pattern_identifiers(node.left))
        elif is_type(node, "ForInStatement", "ForOfStatement"):
            scope = Scope(node, outer)
            if not is_type(node.left, "VariableDeclaration"):
                assigning.update(id(ident) for ident in pattern_identifiers(node.left))

        info._scopes[id(node)] = scope
        if is_type(node, "Identifier"):
            occurrences.append((path, scope))

    for path, scope in occurrences:
        node = path.node
        if id(node) in declaring or not _is_binding_occurrence(path):
            continue
        info._paths[id(node)] = path
        binding = scope.lookup(node.name)
        if binding is None:
            continue
        info._resolved[id(node)] = binding
        parent = path.parent
        if is_type(parent, "AssignmentExpression") and path.key == "left":
            binding.violations.append(path)
        elif is_type(parent, "ForInStatement", "ForOfStatement") and path.key == "left":
            binding.violations.append(path)
        elif id(node) in assigning:
            binding.violations.append(path)
        elif is_type(parent, "UpdateExpression"):
            binding.violations.append(path)
            binding.references.append(path)
        else:
            binding.references.append(path)

    return info


def _is_binding_occurrence(path):
    """False for identifiers that only name a property, key or label."""
    parent = path.parent
    if is_type(parent, "MemberExpression") and path.key == "property":
        return parent.computed
    if is_type(parent, "Property", "MethodDefinition") and path.key == "key":
        return parent.computed
    if is_type(parent, *LABEL_PARENTS) and path.key == "label":
        return False
    if is_type(parent, "MetaProperty"):
        return False
    return True
