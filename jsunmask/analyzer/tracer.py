"""Variable tracer for one forward pass over a file.

Keeps track of three things as declarations and assignments are visited:

- literal bindings: ``const pkg = "ht" + "tp"`` -> ``pkg = "http"``
- aliases of traced globals: ``const r = require``, ``const { from } = Buffer``
- module aliases: ``const p = require("path")``, ``const { join } = require("node:path")``

Only what was observed *before* the current node is known; there is no scope
analysis and no whole-program view.
"""
from dataclasses import dataclass
from typing import Dict, Optional

from .ast_utils import (
    concat_binary_expression,
    get_call_expression_identifier,
    get_member_expression_identifier,
    literal_value,
)
from .nodes import (
    AssignmentExpression,
    BinaryExpression,
    CallExpression,
    Identifier,
    MemberExpression,
    Node,
    ObjectPattern,
    VariableDeclarator,
)

# Global objects whose members are the globals themselves (globalThis.require)
GLOBAL_OBJECTS = frozenset({'globalThis', 'global', 'window', 'self'})

# identifier or member expression -> name it is reported under
DEFAULT_TRACED = {
    'require': 'require',
    'module.require': 'require',
    'process.mainModule.require': 'require',
    'require.resolve': 'require.resolve',
    'eval': 'eval',
    'Function': 'Function',
    'atob': 'atob',
    'Buffer.from': 'Buffer.from',
}


@dataclass(frozen=True)
class TracedIdentifier:
    """What a traced name or one of its aliases stands for."""
    name: str
    resolved_dotted_name: str


def normalize_module_name(specifier: str) -> str:
    """Strip the ``node:`` scheme so ``node:path`` and ``path`` compare equal."""
    if specifier.startswith('node:'):
        return specifier[len('node:'):]
    return specifier


class VariableTracer:
    """Records literal bindings and aliases observed during a traversal pass."""

    def __init__(self):
        self.literal_identifiers: Dict[str, str] = {}
        self._traced: Dict[str, TracedIdentifier] = {}
        self._aliases: Dict[str, TracedIdentifier] = {}
        self._module_aliases: Dict[str, str] = {}

    @classmethod
    def with_default_tracing(cls) -> 'VariableTracer':
        """Create a tracer following the module loader, eval and decoders."""
        tracer = cls()
        for identifier_or_member_expr, name in DEFAULT_TRACED.items():
            tracer.trace(identifier_or_member_expr, name=name)
        return tracer

    def trace(self, identifier_or_member_expr: str, name: Optional[str] = None) -> 'VariableTracer':
        """Start tracing a global identifier or member expression.

        Args:
            identifier_or_member_expr: Dotted name, e.g. ``Buffer.from``
            name: Name lookups report; defaults to the dotted name
        """
        self._traced[identifier_or_member_expr] = TracedIdentifier(
            name or identifier_or_member_expr,
            identifier_or_member_expr
        )
        return self

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def lookup(self, identifier_or_member_expr: Optional[str]) -> Optional[TracedIdentifier]:
        """Resolve a (dotted) name through aliases, module aliases and globals.

        Returns:
            TracedIdentifier, or None if the name is not traced
        """
        if not identifier_or_member_expr:
            return None

        dotted = identifier_or_member_expr
        seen = set()
        while dotted not in seen:
            seen.add(dotted)

            if dotted in self._aliases:
                return self._aliases[dotted]
            if dotted in self._traced:
                return self._traced[dotted]

            head, _, rest = dotted.partition('.')
            if not rest:
                return None

            if head in self._module_aliases:
                return self._from_module(self._module_aliases[head], rest)
            if head in self._aliases:
                # const B = Buffer; B.from(...)
                dotted = f"{self._aliases[head].resolved_dotted_name}.{rest}"
            elif head in GLOBAL_OBJECTS:
                dotted = rest
            else:
                return None

        return None

    def module_alias(self, name: str) -> Optional[str]:
        """Return the module a local name was bound to with ``require``."""
        return self._module_aliases.get(name)

    def _from_module(self, module: str, member: str) -> TracedIdentifier:
        dotted = f"{module}.{member}"
        return self._traced.get(dotted) or TracedIdentifier(dotted, dotted)

    def _is_traced_prefix(self, dotted: str) -> bool:
        prefix = dotted + '.'
        return any(traced.startswith(prefix) for traced in self._traced)

    # =========================================================================
    # OBSERVATION
    # =========================================================================

    def observe(self, node: Node) -> None:
        """Update bindings from a declaration or assignment node.

        Other node kinds are ignored.
        """
        if isinstance(node, VariableDeclarator):
            if node.init is not None:
                self._bind(node.target, node.init)
            elif isinstance(node.target, Identifier):
                # let x;
                self._forget(node.target.name)

        elif isinstance(node, AssignmentExpression):
            if node.operator == '=':
                self._bind(node.target, node.value)
            elif isinstance(node.target, Identifier):
                if node.operator == '+=':
                    self._append(node.target.name, node.value)
                else:
                    self._forget(node.target.name)

    def _forget(self, name: str) -> None:
        self.literal_identifiers.pop(name, None)
        self._aliases.pop(name, None)
        self._module_aliases.pop(name, None)

    def _fold(self, value: Node) -> Optional[str]:
        if isinstance(value, BinaryExpression) and value.operator == '+':
            folded = concat_binary_expression(value, self)
            return folded.value if folded.resolved else None
        return literal_value(value, self)

    def _required_module(self, value: Node) -> Optional[str]:
        if not isinstance(value, CallExpression) or not value.arguments:
            return None

        callee = get_call_expression_identifier(value, self, resolve_call_expression=False)
        traced = self.lookup(callee)
        if traced is None or traced.name != 'require':
            return None

        specifier = literal_value(value.arguments[0], self)
        return normalize_module_name(specifier) if specifier else None

    def _dotted_name(self, value: Node) -> Optional[str]:
        if isinstance(value, Identifier):
            return value.name
        if isinstance(value, MemberExpression):
            return '.'.join(get_member_expression_identifier(value, self)) or None
        return None

    def _bind(self, target: Node, value: Node) -> None:
        if isinstance(target, ObjectPattern):
            self._bind_pattern(target, value)
            return
        if not isinstance(target, Identifier):
            return

        name = target.name

        # The value may read the old binding (x = x + "tp"), resolve it first
        literal = self._fold(value)
        module = self._required_module(value) if literal is None else None
        alias = None
        if literal is None and module is None:
            dotted = self._dotted_name(value)
            if dotted is not None and dotted != name:
                alias = self.lookup(dotted)
                if alias is None and dotted in self._module_aliases:
                    module = self._module_aliases[dotted]
                elif alias is None:
                    canonical = self._strip_global_objects(dotted)
                    if self._is_traced_prefix(canonical):
                        alias = TracedIdentifier(canonical, canonical)

        self._forget(name)
        if literal is not None:
            self.literal_identifiers[name] = literal
        elif module is not None:
            self._module_aliases[name] = module
        elif alias is not None:
            self._aliases[name] = alias

    def _bind_pattern(self, pattern: ObjectPattern, value: Node) -> None:
        resolved: Dict[str, Optional[TracedIdentifier]] = {}

        module = self._required_module(value)
        dotted = self._dotted_name(value) if module is None else None
        for key, local in pattern.properties:
            if module is not None:
                resolved[local] = self._from_module(module, key)
            elif dotted is not None:
                resolved[local] = self.lookup(f"{dotted}.{key}")

        for _, local in pattern.properties:
            self._forget(local)
            if resolved.get(local) is not None:
                self._aliases[local] = resolved[local]

    def _append(self, name: str, value: Node) -> None:
        current = self.literal_identifiers.get(name)
        addition = self._fold(value)
        if current is None or addition is None:
            self._forget(name)
        else:
            self.literal_identifiers[name] = current + addition

    @staticmethod
    def _strip_global_objects(dotted: str) -> str:
        head, _, rest = dotted.partition('.')
        while rest and head in GLOBAL_OBJECTS:
            dotted = rest
            head, _, rest = dotted.partition('.')
        return dotted
