"""Probe detecting CommonJS module loads, including disguised ones.

Catches ``require("x")`` and its aliases as well as ``eval("require")("x")``,
then tries to recover the specifier from the first argument: identifiers bound
to literals, string splitting, array reassembly, hex/base64 decoding and path
reconstruction. Whatever cannot be reduced statically becomes an
``unsafe-import`` warning.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from jsunmask.analyzer.analysis import UNSAFE_IMPORT, SourceAnalysis
from jsunmask.analyzer.ast_utils import (
    array_expression_to_string,
    concat_binary_expression,
    get_call_expression_arguments,
    get_call_expression_identifier,
    get_member_expression_identifier,
)
from jsunmask.analyzer.nodes import (
    ArrayLiteral,
    BinaryExpression,
    CallExpression,
    Identifier,
    MemberExpression,
    Node,
    StringLiteral,
)
from jsunmask.analyzer.tracer import VariableTracer
from jsunmask.utils.literals import base64_to_string, hex_to_string, is_hex, posix_join

from .runner import Probe, ProbeSignals


def validate_node_require(node: Node, tracer: VariableTracer) -> Tuple[bool, Optional[str]]:
    """Match ``require(...)`` and local aliases of it (``const r = require``)."""
    if not isinstance(node, CallExpression):
        return False, None

    identifier = get_call_expression_identifier(node, tracer, resolve_call_expression=False)
    if identifier is None:
        return False, None

    data = tracer.lookup(identifier)
    return data is not None and data.name == 'require', identifier


def validate_node_eval_require(node: Node, tracer: VariableTracer) -> Tuple[bool, Optional[str]]:
    """Match ``eval("require")(...)``."""
    if not isinstance(node, CallExpression):
        return False, None

    identifier = get_call_expression_identifier(node, tracer)
    data = tracer.lookup(identifier)
    name = data.name if data is not None else identifier
    if name != 'eval':
        return False, None
    if not isinstance(node.callee, CallExpression):
        return False, None

    arguments = get_call_expression_arguments(node.callee, tracer)
    return 'require' in arguments, 'eval'


def teardown(analysis: SourceAnalysis) -> None:
    analysis.dependency_auto_warning = False


def _add_specifier(analysis: SourceAnalysis, specifier: str, node: Node) -> None:
    # require("") loads nothing a reader can check
    if specifier.strip() == '':
        analysis.add_warning(UNSAFE_IMPORT, node.span)
    else:
        analysis.add_dependency(specifier, node.span)


def resolve_require(node: CallExpression, analysis: SourceAnalysis,
                    callee_name: Optional[str]) -> Optional[ProbeSignals]:
    """Turn the first argument of a module load into dependencies or warnings."""
    if not node.arguments:
        return None

    tracer = analysis.tracer
    argument = node.arguments[0]

    if callee_name == 'eval':
        analysis.dependency_auto_warning = True

    # const foo = "http"; require(foo);
    if isinstance(argument, Identifier):
        if argument.name in tracer.literal_identifiers:
            _add_specifier(analysis, tracer.literal_identifiers[argument.name], node)
        else:
            analysis.add_warning(UNSAFE_IMPORT, node.span)

    # require("http")
    elif isinstance(argument, StringLiteral):
        _add_specifier(analysis, argument.value, node)

    # require(["ht", "tp"])
    elif isinstance(argument, ArrayLiteral):
        value = ''.join(array_expression_to_string(argument, tracer)).strip()
        if value == '':
            analysis.add_warning(UNSAFE_IMPORT, node.span)
        else:
            analysis.add_dependency(value, node.span)

    # require("ht" + "tp");
    elif isinstance(argument, BinaryExpression):
        if argument.operator != '+':
            analysis.add_warning(UNSAFE_IMPORT, node.span)
            return None

        folded = concat_binary_expression(argument, tracer)
        if folded.resolved:
            _add_specifier(analysis, folded.value, node)
        else:
            analysis.add_warning(UNSAFE_IMPORT, node.span)

    # require(Buffer.from("...", "hex").toString());
    elif isinstance(argument, CallExpression):
        walked = walk_require_call_expression(argument, tracer)
        for dependency in walked.dependencies:
            analysis.add_dependency(dependency, node.span, dynamic=True)

        if walked.trigger_warning:
            analysis.add_warning(UNSAFE_IMPORT, node.span)

        # The argument has been fully examined, walking it again would only
        # produce more warnings
        return ProbeSignals.SKIP

    else:
        analysis.add_warning(UNSAFE_IMPORT, node.span)

    return None


@dataclass
class RequireCallWalk:
    """Specifiers recovered from a call-chain argument."""
    dependencies: List[str] = field(default_factory=list)
    trigger_warning: bool = True

    def add(self, dependency: Optional[str]) -> None:
        if dependency and dependency not in self.dependencies:
            self.dependencies.append(dependency)


def _traced_callee_name(node: CallExpression, tracer: VariableTracer) -> Optional[str]:
    if isinstance(node.callee, MemberExpression):
        full_name = '.'.join(get_member_expression_identifier(node.callee, tracer))
    elif isinstance(node.callee, Identifier):
        full_name = node.callee.name
    else:
        return None

    data = tracer.lookup(full_name)
    return data.resolved_dotted_name if data is not None else full_name


def walk_require_call_expression(node_to_walk: CallExpression,
                                 tracer: VariableTracer) -> RequireCallWalk:
    """Recover specifiers hidden behind decoding or joining calls.

    Only ``path.join`` over plain string literals clears ``trigger_warning``:
    every other recovery still means the code went out of its way to hide
    the specifier.
    """
    walked = RequireCallWalk()
    stack: List[Node] = [node_to_walk]

    while stack:
        node = stack.pop()
        if isinstance(node, CallExpression) and node.arguments:
            if not _apply_rules(node, tracer, walked):
                continue
        stack.extend(reversed(node.children()))

    return walked


def _apply_rules(node: CallExpression, tracer: VariableTracer, walked: RequireCallWalk) -> bool:
    """Evaluate the recovery rules on one call; return False to skip its children."""
    root_argument = node.arguments[0]

    # foo("7061636b616765")
    if isinstance(root_argument, StringLiteral) and is_hex(root_argument.value):
        walked.add(hex_to_string(root_argument.value))
        return False

    traced_name = _traced_callee_name(node, tracer)

    if traced_name == 'atob':
        arguments = get_call_expression_arguments(node, tracer)
        if arguments:
            walked.add(base64_to_string(arguments[0]))

    elif traced_name == 'Buffer.from':
        if isinstance(root_argument, ArrayLiteral):
            walked.add(''.join(array_expression_to_string(root_argument)).strip())

    elif traced_name == 'require.resolve':
        if isinstance(root_argument, StringLiteral):
            walked.add(root_argument.value)

    elif traced_name == 'path.join':
        if all(isinstance(argument, StringLiteral) for argument in node.arguments):
            walked.add(posix_join(*(argument.value for argument in node.arguments)))
            walked.trigger_warning = False

    return True


is_require = Probe(
    name='isRequire',
    validators=[validate_node_require, validate_node_eval_require],
    resolve=resolve_require,
    teardown=teardown,
    break_on_match=True,
    break_group='import',
)
