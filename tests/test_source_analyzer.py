"""Tests for file-level analysis and package directory iteration."""
from pathlib import Path

import pytest

from jsunmask.analyzer.parser import LanguageParser
from jsunmask.analyzer.source_analyzer import SourceAnalyzer, iter_source_files
from jsunmask.config import reset_config

EVIL_PKG = Path(__file__).parent / 'fixtures' / 'packages' / 'evil-pkg'


@pytest.fixture(autouse=True)
def fresh_config():
    reset_config()
    yield
    reset_config()


class TestLanguageParser:
    @pytest.mark.parametrize('name, expected', [
        ('index.js', 'javascript'),
        ('index.MJS', 'javascript'),
        ('types.d.ts', 'typescript'),
        ('view.tsx', 'tsx'),
        ('package.json', None),
    ])
    def test_language_for(self, name, expected):
        assert LanguageParser.language_for(name) == expected

    def test_unsupported_language(self):
        with pytest.raises(ValueError):
            LanguageParser('python')


class TestAnalyzeFile:
    def test_fixture_file(self):
        analysis = SourceAnalyzer().analyze_file(EVIL_PKG / 'index.js')

        assert analysis.file_path.endswith('index.js')
        assert 'child_process' in analysis.dependency_names
        assert analysis.has_syntax_errors is False

    def test_unsupported_extension(self):
        assert SourceAnalyzer().analyze_file(EVIL_PKG / 'package.json') is None

    def test_missing_file(self, tmp_path):
        assert SourceAnalyzer().analyze_file(tmp_path / 'missing.js') is None

    def test_size_limit(self, tmp_path, monkeypatch):
        source = tmp_path / 'big.js'
        source.write_text('require("fs");\n' * 10, encoding='utf-8')
        monkeypatch.setenv('JSUNMASK_MAX_FILE_SIZE', '16')

        assert SourceAnalyzer().analyze_file(source) is None

    def test_syntax_errors_do_not_abort(self, tmp_path):
        source = tmp_path / 'broken.js'
        source.write_text('require("fs");\nconst = ;\n', encoding='utf-8')

        analysis = SourceAnalyzer().analyze_file(source)

        assert analysis.has_syntax_errors is True
        assert analysis.dependency_names == ['fs']

    def test_typescript_file(self, tmp_path):
        source = tmp_path / 'mod.ts'
        source.write_text('import { a } from "a";\nconst b: number = require("b");\n', encoding='utf-8')

        assert SourceAnalyzer().analyze_file(source).dependency_names == ['a', 'b']


class TestIterSourceFiles:
    def test_excludes_node_modules(self):
        files = [p.relative_to(EVIL_PKG).as_posix() for p in iter_source_files(EVIL_PKG)]

        assert files == ['index.js', 'lib/loader.js']

    def test_custom_filters(self):
        files = list(iter_source_files(EVIL_PKG, extensions=['.js'], exclude_dirs=['lib']))
        names = [p.relative_to(EVIL_PKG).as_posix() for p in files]

        assert names == ['index.js', 'node_modules/dep/index.js']

    def test_single_file(self):
        target = EVIL_PKG / 'lib' / 'loader.js'

        assert list(iter_source_files(target)) == [target]
