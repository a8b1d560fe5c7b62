"""Forward analysis pass over JavaScript/TypeScript sources.

One pass per file: the syntax tree is converted to expression nodes, walked
depth-first in source order, the tracer observes every declaration before the
probes see what follows it, and probe teardown hooks run once at the end.
"""
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from jsunmask.config import get_config
from jsunmask.probes.is_import_declaration import is_import_declaration
from jsunmask.probes.is_require import is_require
from jsunmask.probes.runner import Probe, ProbeRunner, ProbeSignals

from .analysis import SourceAnalysis
from .nodes import Node, from_tree_sitter
from .parser import LanguageParser

DEFAULT_PROBES = (is_require, is_import_declaration)


class SourceAnalyzer:
    """Runs module-load probes over source files."""

    def __init__(self, probes: Optional[Sequence[Probe]] = None):
        """
        Args:
            probes: Probes to run, in priority order. Defaults to the
                require and import-declaration probes.
        """
        self.probes: List[Probe] = list(probes) if probes is not None else list(DEFAULT_PROBES)
        self._parsers: Dict[str, LanguageParser] = {}

    def _get_parser(self, language: str) -> LanguageParser:
        if language not in self._parsers:
            self._parsers[language] = LanguageParser(language)
        return self._parsers[language]

    def analyze_source(self, source_code: str | bytes, file_path: str = '<memory>',
                       language: str = 'javascript') -> SourceAnalysis:
        """Analyze in-memory source code.

        Raises:
            ValueError: If language is not supported
        """
        tree = self._get_parser(language).parse_source(source_code)
        analysis = SourceAnalysis(file_path=file_path, has_syntax_errors=tree.root_node.has_error)

        return self.walk(from_tree_sitter(tree.root_node), analysis)

    def walk(self, root: Node, analysis: SourceAnalysis) -> SourceAnalysis:
        """Run one traversal pass over an already converted tree."""
        runner = ProbeRunner(analysis, self.probes)

        stack = [root]
        while stack:
            node = stack.pop()
            analysis.tracer.observe(node)

            if runner.walk(node) is ProbeSignals.SKIP:
                continue
            stack.extend(reversed(node.children()))

        runner.finalize()
        return analysis

    def analyze_file(self, file_path: str | Path) -> Optional[SourceAnalysis]:
        """Analyze one file.

        Returns:
            SourceAnalysis, or None for unsupported extensions, unreadable
            files and files above the configured size limit
        """
        file_path = Path(file_path)
        language = LanguageParser.language_for(file_path)
        if language is None:
            return None

        try:
            if file_path.stat().st_size > get_config().max_file_size:
                return None
            source_code = file_path.read_bytes()
        except OSError:
            return None

        return self.analyze_source(source_code, str(file_path), language)


def iter_source_files(root: str | Path, extensions: Optional[Iterable[str]] = None,
                      exclude_dirs: Optional[Iterable[str]] = None) -> Iterator[Path]:
    """Yield the source files of a package in a stable order.

    Args:
        root: Package directory (or a single file, yielded as-is)
        extensions: Extensions to include; defaults to the configured ones
        exclude_dirs: Directory names to skip; defaults to the configured ones
    """
    root = Path(root)
    if root.is_file():
        yield root
        return

    config = get_config()
    extensions = {ext.lower() for ext in (extensions if extensions is not None else config.extensions)}
    excluded = set(exclude_dirs if exclude_dirs is not None else config.exclude_dirs)

    for file_path in sorted(root.rglob('*')):
        if not file_path.is_file() or file_path.suffix.lower() not in extensions:
            continue
        relative_parts = file_path.relative_to(root).parts
        if any(part in excluded for part in relative_parts):
            continue
        yield file_path
