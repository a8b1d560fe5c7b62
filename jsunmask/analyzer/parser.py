"""Tree-sitter parser for JavaScript and TypeScript package sources."""
from pathlib import Path
from typing import Optional

from tree_sitter import Language, Parser, Tree
import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript


class LanguageParser:
    """JavaScript/TypeScript parser using the tree-sitter v0.22+ API."""

    SUPPORTED_LANGUAGES = {
        '.js': 'javascript',
        '.cjs': 'javascript',
        '.mjs': 'javascript',
        '.jsx': 'javascript',
        '.ts': 'typescript',
        '.cts': 'typescript',
        '.mts': 'typescript',
        '.tsx': 'tsx',
    }

    def __init__(self, language: str = 'javascript'):
        """Initialize parser for given language (javascript, typescript, tsx).

        Args:
            language: One of 'javascript', 'typescript', 'tsx'

        Raises:
            ValueError: If language is not supported
        """
        self.language = language
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        """Factory method using the Parser(Language(capsule)) API.

        Returns:
            Configured Parser instance

        Raises:
            ValueError: If language is not supported
        """
        if self.language == 'javascript':
            lang = Language(tsjavascript.language())
        elif self.language == 'typescript':
            lang = Language(tstypescript.language_typescript())
        elif self.language == 'tsx':
            lang = Language(tstypescript.language_tsx())
        else:
            raise ValueError(f"Unsupported language: {self.language}")

        return Parser(lang)

    def parse_source(self, source_code: str | bytes) -> Tree:
        """Parse in-memory source code.

        Tree-sitter recovers from syntax errors, so this always returns a tree;
        check ``tree.root_node.has_error`` for broken input.
        """
        if isinstance(source_code, str):
            source_code = source_code.encode('utf-8')
        return self.parser.parse(source_code)

    @classmethod
    def language_for(cls, file_path: str | Path) -> Optional[str]:
        """Return the grammar name for a file, based on its extension.

        Args:
            file_path: Path to determine language from

        Returns:
            Language name, or None if extension not supported
        """
        return cls.SUPPORTED_LANGUAGES.get(Path(file_path).suffix.lower())
