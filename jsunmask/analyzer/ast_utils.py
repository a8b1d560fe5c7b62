"""Helpers to read identifiers and literal values out of expression nodes.

All helpers take an optional tracer; when given, identifiers bound to a literal
earlier in the pass are replaced by that literal.
"""
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from jsunmask.utils.literals import char_code_to_string, format_number

from .nodes import (
    ArrayLiteral,
    BinaryExpression,
    CallExpression,
    Identifier,
    MemberExpression,
    Node,
    NumberLiteral,
    StringLiteral,
)


@dataclass(frozen=True)
class ConcatResult:
    """Outcome of folding a ``+`` chain into a string.

    ``blocked_at`` is the first node that could not be reduced to a literal;
    when set, ``fragments`` only holds what was folded before it and must not
    be used as a value.
    """
    fragments: Tuple[str, ...] = ()
    blocked_at: Optional[Node] = None

    @property
    def resolved(self) -> bool:
        return self.blocked_at is None

    @property
    def value(self) -> str:
        return ''.join(self.fragments)


def literal_value(node: Node, tracer=None) -> Optional[str]:
    """Return the string a node stands for, if it is (or is bound to) a literal."""
    if isinstance(node, StringLiteral):
        return node.value
    if isinstance(node, Identifier) and tracer is not None:
        return tracer.literal_identifiers.get(node.name)
    return None


def _member_property_name(node: MemberExpression, tracer) -> Optional[str]:
    prop = node.property
    if not node.computed:
        return prop.name if isinstance(prop, Identifier) else None

    if isinstance(prop, NumberLiteral):
        return format_number(prop.value)
    if isinstance(prop, (StringLiteral, Identifier)):
        return literal_value(prop, tracer)
    if isinstance(prop, BinaryExpression) and prop.operator == '+':
        # Buffer["fr" + "om"]
        folded = concat_binary_expression(prop, tracer)
        return folded.value if folded.resolved else None

    return None


def get_member_expression_identifier(node: MemberExpression, tracer=None) -> List[str]:
    """Flatten a member chain into its name segments.

    ``process.mainModule["require"]`` gives ``["process", "mainModule", "require"]``.
    Segments that cannot be named statically (computed non-literals, call
    results) are left out.
    """
    parts = []
    current = node
    while isinstance(current, MemberExpression):
        name = _member_property_name(current, tracer)
        if name is not None:
            parts.append(name)
        current = current.object

    if isinstance(current, Identifier):
        parts.append(current.name)
    elif isinstance(current, StringLiteral):
        parts.append(current.value)

    parts.reverse()
    return parts


def get_call_expression_identifier(node: Node, tracer=None,
                                   resolve_call_expression: bool = True) -> Optional[str]:
    """Return the dotted name of what a call expression invokes.

    Args:
        node: Call expression to inspect
        tracer: Optional tracer for computed member segments
        resolve_call_expression: When the callee is itself a call
            (``eval("...")(...)``), follow it to the innermost callee.
            When False such calls yield None.

    Returns:
        Dotted callee name, or None if it cannot be named
    """
    current = node
    while isinstance(current, CallExpression):
        callee = current.callee
        if isinstance(callee, Identifier):
            return callee.name
        if isinstance(callee, MemberExpression):
            return '.'.join(get_member_expression_identifier(callee, tracer)) or None
        if not (resolve_call_expression and isinstance(callee, CallExpression)):
            return None
        current = callee

    return None


def get_call_expression_arguments(node: CallExpression, tracer=None) -> List[str]:
    """Return the arguments of a call that reduce to string literals, in order."""
    literals = []
    for argument in node.arguments:
        value = literal_value(argument, tracer)
        if value is not None:
            literals.append(value)
    return literals


def array_expression_to_string(node: Node, tracer=None) -> Iterator[str]:
    """Yield the string fragments of an array literal.

    String elements are yielded as-is (empty ones skipped), numbers are treated
    as char codes (``[104, 116]`` -> ``"h"``, ``"t"``), identifiers go through
    the tracer. Anything else is dropped.
    """
    if not isinstance(node, ArrayLiteral):
        return

    for element in node.elements:
        if isinstance(element, StringLiteral):
            if element.value:
                yield element.value
        elif isinstance(element, NumberLiteral):
            char = char_code_to_string(element.value)
            if char is not None:
                yield char
        elif isinstance(element, Identifier):
            value = literal_value(element, tracer)
            if value is not None:
                yield value


def concat_binary_expression(node: Node, tracer=None) -> ConcatResult:
    """Fold a ``+`` expression tree left-to-right into string fragments.

    Folding stops at the first leaf that is not a literal (or a tracer-bound
    identifier) and at any nested operator other than ``+``.
    """
    fragments: List[str] = []
    stack = [node]

    while stack:
        current = stack.pop()

        if isinstance(current, BinaryExpression):
            if current.operator != '+':
                return ConcatResult(tuple(fragments), blocked_at=current)
            stack.append(current.right)
            stack.append(current.left)
        elif isinstance(current, NumberLiteral):
            fragments.append(format_number(current.value))
        elif isinstance(current, ArrayLiteral):
            fragments.extend(array_expression_to_string(current, tracer))
        else:
            value = literal_value(current, tracer)
            if value is None:
                return ConcatResult(tuple(fragments), blocked_at=current)
            fragments.append(value)

    return ConcatResult(tuple(fragments))
