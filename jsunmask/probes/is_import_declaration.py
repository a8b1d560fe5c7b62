"""Probe for ES module loads: static ``import``/``export ... from`` and ``import()``."""
from typing import Optional, Tuple

from jsunmask.analyzer.analysis import UNSAFE_IMPORT, SourceAnalysis
from jsunmask.analyzer.nodes import CallExpression, ImportDeclaration, Node, OpaqueNode, StringLiteral
from jsunmask.analyzer.tracer import VariableTracer

from .runner import Probe, ProbeSignals


def validate_node_import_declaration(node: Node, tracer: VariableTracer) -> Tuple[bool, Optional[str]]:
    return isinstance(node, ImportDeclaration), None


def validate_node_dynamic_import(node: Node, tracer: VariableTracer) -> Tuple[bool, Optional[str]]:
    """Match ``import("x")``; tree-sitter parses it as a call on an ``import`` token."""
    matched = (
        isinstance(node, CallExpression)
        and isinstance(node.callee, OpaqueNode)
        and node.callee.kind == 'import'
    )
    return matched, 'import' if matched else None


def resolve_import(node: Node, analysis: SourceAnalysis, data: Optional[str]) -> Optional[ProbeSignals]:
    # import fs from "fs"; export * from "./lib";
    if isinstance(node, ImportDeclaration):
        if isinstance(node.source, StringLiteral):
            analysis.add_dependency(node.source.value, node.span)
        return None

    # import("fs")
    if not node.arguments:
        return None
    source = node.arguments[0]
    if isinstance(source, StringLiteral):
        analysis.add_dependency(source.value, node.span)
    else:
        analysis.add_warning(UNSAFE_IMPORT, node.span)

    return None


is_import_declaration = Probe(
    name='isImportDeclaration',
    validators=[validate_node_import_declaration, validate_node_dynamic_import],
    resolve=resolve_import,
    break_on_match=True,
    break_group='import',
)
