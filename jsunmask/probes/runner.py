"""Probe contract and the runner that dispatches probes on visited nodes.

A probe is a list of validators plus a resolver. Validators are pure functions
``(node, tracer) -> (matched, data)``; the first matching validator wins and its
``data`` is handed to the resolver. Probes sharing a ``break_group`` are mutually
exclusive on a node once one with ``break_on_match`` fires.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from jsunmask.analyzer.analysis import SourceAnalysis
from jsunmask.analyzer.nodes import Node
from jsunmask.analyzer.tracer import VariableTracer


class ProbeSignals(Enum):
    """Signals a resolver can hand back to the traversal."""
    # Do not descend into the children of the current node
    SKIP = 'skip'
    # Stop testing the remaining probes on the current node
    BREAK = 'break'


Validator = Callable[[Node, VariableTracer], Tuple[bool, Any]]
Resolver = Callable[[Node, SourceAnalysis, Any], Optional[ProbeSignals]]


@dataclass(frozen=True)
class Probe:
    name: str
    validators: Sequence[Validator]
    resolve: Resolver
    teardown: Optional[Callable[[SourceAnalysis], None]] = None
    break_on_match: bool = False
    break_group: Optional[str] = None

    def match(self, node: Node, tracer: VariableTracer) -> Tuple[bool, Any]:
        """Run validators in order; first match wins."""
        for validator in self.validators:
            matched, data = validator(node, tracer)
            if matched:
                return True, data
        return False, None


class ProbeRunner:
    """Runs a set of probes against nodes of one analysis pass."""

    def __init__(self, analysis: SourceAnalysis, probes: Iterable[Probe]):
        self.analysis = analysis
        self.probes: List[Probe] = list(probes)

    def walk(self, node: Node) -> Optional[ProbeSignals]:
        """Test every probe on a node.

        Returns:
            ProbeSignals.SKIP if the traversal must not enter the node's
            children, None otherwise
        """
        broken_groups = set()
        skip_children = False

        for probe in self.probes:
            if probe.break_group is not None and probe.break_group in broken_groups:
                continue

            matched, data = probe.match(node, self.analysis.tracer)
            if not matched:
                continue

            signal = probe.resolve(node, self.analysis, data)
            if signal is ProbeSignals.SKIP:
                skip_children = True
            elif signal is ProbeSignals.BREAK:
                break

            if probe.break_on_match:
                if probe.break_group is None:
                    break
                broken_groups.add(probe.break_group)

        return ProbeSignals.SKIP if skip_children else None

    def finalize(self) -> None:
        """Run every probe's end-of-pass hook."""
        for probe in self.probes:
            if probe.teardown is not None:
                probe.teardown(self.analysis)
