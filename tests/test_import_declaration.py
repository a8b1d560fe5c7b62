"""Tests for ES module imports."""
import pytest

from jsunmask.analyzer.analysis import UNSAFE_IMPORT
from jsunmask.analyzer.source_analyzer import SourceAnalyzer


@pytest.fixture
def analyzer():
    return SourceAnalyzer()


def test_static_and_dynamic_imports(analyzer):
    code = '\n'.join([
        'import fs from "fs";',
        'export * from "./lib";',
        'import("x");',
        'import(name);',
    ])
    analysis = analyzer.analyze_source(code)

    assert [d.specifier for d in analysis.dependencies] == ['fs', './lib', 'x']
    assert [w.kind for w in analysis.warnings] == [UNSAFE_IMPORT]
    assert analysis.warnings[0].location.start_line == 4


def test_side_effect_and_named_imports(analyzer):
    analysis = analyzer.analyze_source('import "polyfill";\nimport { readFile } from "node:fs";')

    assert analysis.dependency_names == ['polyfill', 'node:fs']


def test_local_export_is_not_a_dependency(analyzer):
    analysis = analyzer.analyze_source('const a = 1;\nexport { a };\nexport default a;')

    assert analysis.dependencies == []
    assert analysis.warnings == []


def test_typescript_source(analyzer):
    code = 'import type { Foo } from "./types";\nimport { bar } from "bar";\nconst x: Foo = bar();'
    analysis = analyzer.analyze_source(code, language='typescript')

    assert analysis.dependency_names == ['./types', 'bar']


def test_mixed_with_require(analyzer):
    analysis = analyzer.analyze_source('import a from "a";\nconst b = require("b");')

    assert analysis.dependency_names == ['a', 'b']
