"""Expression node model built on top of tree-sitter syntax trees.

Probes never look at raw tree-sitter nodes. The parser output is converted once
per file into a small tagged variant (Identifier, StringLiteral, ArrayLiteral,
BinaryExpression, CallExpression, ...) where string escapes are already decoded
and every node carries its source span. Anything the probes do not care about is
kept as an OpaqueNode so the traversal still reaches nested call sites.

Conversion is iterative: hostile packages ship expressions nested thousands of
levels deep and must not hit the interpreter recursion limit.
"""
import re
from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional, Tuple, Union

import tree_sitter


@dataclass(frozen=True)
class Span:
    """Source location of a node (1-based lines, 0-based columns)."""
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @classmethod
    def from_ts(cls, ts_node: tree_sitter.Node) -> 'Span':
        start_row, start_column = ts_node.start_point
        end_row, end_column = ts_node.end_point
        return cls(start_row + 1, start_column, end_row + 1, end_column)

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {
            'start': {'line': self.start_line, 'column': self.start_column},
            'end': {'line': self.end_line, 'column': self.end_column},
        }

    def __str__(self) -> str:
        return f"{self.start_line}:{self.start_column}"


UNKNOWN_SPAN = Span(0, 0, 0, 0)


@dataclass(eq=False)
class Node:
    """Base class of the expression variant."""
    type: ClassVar[str] = 'Node'
    span: Span = field(default=UNKNOWN_SPAN, kw_only=True)

    def children(self) -> List['Node']:
        return []


@dataclass(eq=False)
class Identifier(Node):
    type: ClassVar[str] = 'Identifier'
    name: str


@dataclass(eq=False)
class StringLiteral(Node):
    type: ClassVar[str] = 'StringLiteral'
    value: str


@dataclass(eq=False)
class NumberLiteral(Node):
    type: ClassVar[str] = 'NumberLiteral'
    value: Union[int, float]


@dataclass(eq=False)
class ArrayLiteral(Node):
    type: ClassVar[str] = 'ArrayLiteral'
    elements: List[Node] = field(default_factory=list)

    def children(self) -> List[Node]:
        return list(self.elements)


@dataclass(eq=False)
class BinaryExpression(Node):
    type: ClassVar[str] = 'BinaryExpression'
    operator: str
    left: Node
    right: Node

    def children(self) -> List[Node]:
        return [self.left, self.right]


@dataclass(eq=False)
class CallExpression(Node):
    type: ClassVar[str] = 'CallExpression'
    callee: Node
    arguments: List[Node] = field(default_factory=list)

    def children(self) -> List[Node]:
        return [self.callee, *self.arguments]


@dataclass(eq=False)
class MemberExpression(Node):
    """``object.property`` or, when computed, ``object[property]``."""
    type: ClassVar[str] = 'MemberExpression'
    object: Node
    property: Node
    computed: bool = False

    def children(self) -> List[Node]:
        return [self.object, self.property]


@dataclass(eq=False)
class ObjectPattern(Node):
    """Destructuring target; properties are (key, local name) pairs."""
    type: ClassVar[str] = 'ObjectPattern'
    properties: List[Tuple[str, str]] = field(default_factory=list)


@dataclass(eq=False)
class VariableDeclarator(Node):
    type: ClassVar[str] = 'VariableDeclarator'
    target: Node
    init: Optional[Node] = None

    def children(self) -> List[Node]:
        if self.init is None:
            return [self.target]
        return [self.target, self.init]


@dataclass(eq=False)
class AssignmentExpression(Node):
    type: ClassVar[str] = 'AssignmentExpression'
    operator: str
    target: Node
    value: Node

    def children(self) -> List[Node]:
        return [self.target, self.value]


@dataclass(eq=False)
class ImportDeclaration(Node):
    """``import ... from "source"`` and ``export ... from "source"``."""
    type: ClassVar[str] = 'ImportDeclaration'
    source: Node

    def children(self) -> List[Node]:
        return [self.source]


@dataclass(eq=False)
class OpaqueNode(Node):
    """Any other syntax kind; ``kind`` is the tree-sitter node type."""
    type: ClassVar[str] = 'OpaqueNode'
    kind: str
    nested: List[Node] = field(default_factory=list)

    def children(self) -> List[Node]:
        return list(self.nested)


# =========================================================================
# JS STRING LITERALS
# =========================================================================

_ESCAPE_PATTERN = re.compile(
    r'\\(u\{[0-9A-Fa-f]+\}|u[0-9A-Fa-f]{4}|x[0-9A-Fa-f]{2}|[0-3][0-7]{0,2}|[4-7][0-7]?|\r\n|[\s\S])'
)
_SINGLE_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    'b': '\b',
    'f': '\f',
    'v': '\v',
}
_LINE_CONTINUATIONS = {'\n', '\r', '\r\n', '\u2028', '\u2029'}
_SURROGATES = re.compile('[\ud800-\udfff]')


def _replace_escape(match: re.Match) -> str:
    sequence = match.group(1)
    if sequence in _LINE_CONTINUATIONS:
        return ''

    head = sequence[0]
    if head == 'u' and len(sequence) > 1:
        digits = sequence[2:-1] if sequence.startswith('u{') else sequence[1:]
        code_point = int(digits, 16)
        return chr(code_point) if code_point <= 0x10FFFF else ''
    if head == 'x' and len(sequence) == 3:
        return chr(int(sequence[1:], 16))
    if '0' <= head <= '7':
        return chr(int(sequence, 8))

    return _SINGLE_ESCAPES.get(sequence, sequence)


def decode_js_string(body: str) -> str:
    """Decode the escape sequences of a JS string literal body (quotes removed).

    Surrogate pairs written as two ``\\uXXXX`` escapes are merged; lone
    surrogates become U+FFFD.
    """
    decoded = _ESCAPE_PATTERN.sub(_replace_escape, body)
    if _SURROGATES.search(decoded):
        decoded = decoded.encode('utf-16', 'surrogatepass').decode('utf-16', errors='replace')
    return decoded


def parse_js_number(raw: str) -> Optional[Union[int, float]]:
    """Parse a JS numeric literal (hex/octal/binary, separators, BigInt suffix)."""
    text = raw.replace('_', '').lower()
    if text.endswith('n'):
        text = text[:-1]

    try:
        if text.startswith(('0x', '0o', '0b')):
            return int(text, 0)
        if len(text) > 1 and text.startswith('0') and text.isdigit():
            # Legacy octal unless a digit rules it out
            return int(text, 8) if all(c < '8' for c in text) else int(text)
        if '.' in text or 'e' in text:
            return float(text)
        return int(text)
    except ValueError:
        return None


# =========================================================================
# TREE-SITTER CONVERSION
# =========================================================================

_SKIPPED_TYPES = frozenset({'comment', 'html_comment'})

_IDENTIFIER_TYPES = frozenset({
    'identifier',
    'property_identifier',
    'private_property_identifier',
    'shorthand_property_identifier',
    'shorthand_property_identifier_pattern',
    'statement_identifier',
})

_LEAF_TYPES = _IDENTIFIER_TYPES | {
    'string', 'number', 'regex', 'string_fragment', 'escape_sequence',
    'this', 'super', 'import', 'true', 'false', 'null', 'undefined',
    'hash_bang_line',
}


def _text(ts_node: tree_sitter.Node) -> str:
    return ts_node.text.decode('utf-8', errors='replace')


def _named_children(ts_node: tree_sitter.Node) -> List[tree_sitter.Node]:
    return [child for child in ts_node.named_children if child.type not in _SKIPPED_TYPES]


def _pending_children(ts_node: tree_sitter.Node) -> List[tree_sitter.Node]:
    if ts_node.type in _LEAF_TYPES:
        return []
    return _named_children(ts_node)


def _string_body(ts_node: tree_sitter.Node) -> str:
    return decode_js_string(_text(ts_node)[1:-1])


def _build_object_pattern(ts_node: tree_sitter.Node, span: Span) -> ObjectPattern:
    properties = []
    for child in _named_children(ts_node):
        if child.type == 'shorthand_property_identifier_pattern':
            name = _text(child)
            properties.append((name, name))
        elif child.type == 'pair_pattern':
            key = child.child_by_field_name('key')
            value = child.child_by_field_name('value')
            if key is None or value is None or value.type != 'identifier':
                continue
            key_name = _string_body(key) if key.type == 'string' else _text(key)
            properties.append((key_name, _text(value)))
        elif child.type == 'object_assignment_pattern':
            # const { join = fallback } = path
            left = child.child_by_field_name('left')
            if left is not None and left.type == 'shorthand_property_identifier_pattern':
                name = _text(left)
                properties.append((name, name))

    return ObjectPattern(properties, span=span)


def _build(ts_node: tree_sitter.Node, built: Dict[int, Node]) -> Node:
    """Build one node; every child it needs is already in ``built``."""
    kind = ts_node.type
    span = Span.from_ts(ts_node)

    def field_node(name: str) -> Optional[Node]:
        target = ts_node.child_by_field_name(name)
        return None if target is None else built.get(target.id)

    if kind in _IDENTIFIER_TYPES:
        return Identifier(_text(ts_node), span=span)

    if kind == 'string':
        return StringLiteral(_string_body(ts_node), span=span)

    if kind == 'template_string':
        substitutions = [c for c in _named_children(ts_node) if c.type == 'template_substitution']
        if not substitutions:
            return StringLiteral(_string_body(ts_node), span=span)
        return OpaqueNode(kind, [built[c.id] for c in substitutions], span=span)

    if kind == 'number':
        value = parse_js_number(_text(ts_node))
        if value is None:
            return OpaqueNode(kind, span=span)
        return NumberLiteral(value, span=span)

    if kind == 'array':
        return ArrayLiteral([built[c.id] for c in _named_children(ts_node)], span=span)

    if kind == 'binary_expression':
        operator = ts_node.child_by_field_name('operator')
        return BinaryExpression(
            _text(operator) if operator is not None else '',
            field_node('left'),
            field_node('right'),
            span=span
        )

    if kind == 'call_expression':
        arguments_node = ts_node.child_by_field_name('arguments')
        if arguments_node is None:
            arguments = []
        elif arguments_node.type == 'arguments':
            arguments = [built[c.id] for c in _named_children(arguments_node)]
        else:
            # Tagged template: tag`...`
            arguments = [built[arguments_node.id]]
        return CallExpression(field_node('function'), arguments, span=span)

    if kind == 'member_expression':
        return MemberExpression(field_node('object'), field_node('property'), span=span)

    if kind == 'subscript_expression':
        return MemberExpression(field_node('object'), field_node('index'), computed=True, span=span)

    if kind == 'parenthesized_expression':
        inner = _named_children(ts_node)
        if inner and inner[0].type != 'sequence_expression':
            return built[inner[0].id]

    if kind == 'object_pattern':
        return _build_object_pattern(ts_node, span)

    if kind == 'variable_declarator':
        return VariableDeclarator(field_node('name'), field_node('value'), span=span)

    if kind in ('assignment_expression', 'augmented_assignment_expression'):
        operator = ts_node.child_by_field_name('operator')
        return AssignmentExpression(
            _text(operator) if operator is not None else '=',
            field_node('left'),
            field_node('right'),
            span=span
        )

    if kind in ('import_statement', 'export_statement'):
        source = field_node('source')
        if source is not None:
            return ImportDeclaration(source, span=span)

    return OpaqueNode(kind, [built[c.id] for c in _pending_children(ts_node)], span=span)


def from_tree_sitter(root: tree_sitter.Node) -> Node:
    """Convert a tree-sitter subtree into the expression node variant.

    Args:
        root: Any tree-sitter node, usually ``tree.root_node``

    Returns:
        The converted node
    """
    # Pre-order listing; walking it backwards builds children before parents
    order = []
    stack = [root]
    while stack:
        ts_node = stack.pop()
        order.append(ts_node)
        stack.extend(_pending_children(ts_node))

    built: Dict[int, Node] = {}
    for ts_node in reversed(order):
        built[ts_node.id] = _build(ts_node, built)

    return built[root.id]
