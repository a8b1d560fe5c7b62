"""Tests for the variable tracer."""
import pytest

from jsunmask.analyzer.source_analyzer import SourceAnalyzer
from jsunmask.analyzer.tracer import TracedIdentifier, VariableTracer, normalize_module_name


@pytest.fixture
def trace():
    analyzer = SourceAnalyzer(probes=[])

    def run(code: str) -> VariableTracer:
        return analyzer.analyze_source(code).tracer

    return run


class TestLiteralBindings:
    def test_string(self, trace):
        tracer = trace('const a = "x";')

        assert tracer.literal_identifiers == {'a': 'x'}

    def test_folded_concatenation(self, trace):
        tracer = trace('const a = "ht";\nlet b = a + "tp";')

        assert tracer.literal_identifiers['b'] == 'http'

    def test_plus_assign(self, trace):
        tracer = trace('let a = "http";\na += "s";')

        assert tracer.literal_identifiers['a'] == 'https'

    def test_rebinding_from_own_value(self, trace):
        tracer = trace('let x = "ht";\nx = x + "tp";')

        assert tracer.literal_identifiers['x'] == 'http'

    def test_alias_rebound_from_own_member(self, trace):
        tracer = trace('let p = require("path");\np = p.posix;')

        assert tracer.module_alias('p') is None
        assert tracer.lookup('p').name == 'path.posix'

    def test_plus_assign_unknown_value_forgets(self, trace):
        tracer = trace('let a = "http";\na += suffix;')

        assert 'a' not in tracer.literal_identifiers

    def test_reassignment_forgets(self, trace):
        tracer = trace('let a = "http";\na = getName();')

        assert 'a' not in tracer.literal_identifiers

    def test_other_operator_forgets(self, trace):
        tracer = trace('let a = "1";\na -= 1;')

        assert 'a' not in tracer.literal_identifiers

    def test_bare_declaration_forgets(self, trace):
        tracer = trace('var a = "x";\nvar a;')

        assert 'a' not in tracer.literal_identifiers

    def test_only_strings_are_bound(self, trace):
        tracer = trace('const port = 80;')

        assert 'port' not in tracer.literal_identifiers


class TestAliases:
    def test_require_alias(self, trace):
        tracer = trace('const r = require;')

        assert tracer.lookup('r') == TracedIdentifier('require', 'require')

    def test_alias_of_alias(self, trace):
        tracer = trace('const r = require;\nconst load = r;')

        assert tracer.lookup('load').name == 'require'

    def test_global_object(self, trace):
        tracer = trace('const g = globalThis.require;')

        assert tracer.lookup('g').name == 'require'
        assert tracer.lookup('window.require').name == 'require'

    def test_object_alias(self, trace):
        tracer = trace('const B = Buffer;')

        assert tracer.lookup('B.from').name == 'Buffer.from'
        assert tracer.lookup('B') is not None

    def test_destructuring(self, trace):
        tracer = trace('const { require: load } = module;')

        assert tracer.lookup('load').name == 'require'

    def test_untraced_value(self, trace):
        tracer = trace('const c = console;')

        assert tracer.lookup('c') is None

    def test_rebinding_drops_alias(self, trace):
        tracer = trace('let r = require;\nr = "fs";')

        assert tracer.lookup('r') is None
        assert tracer.literal_identifiers['r'] == 'fs'


class TestModuleAliases:
    def test_required_module(self, trace):
        tracer = trace('const p = require("path");')

        assert tracer.module_alias('p') == 'path'
        assert tracer.lookup('p.join') == TracedIdentifier('path.join', 'path.join')

    def test_node_scheme(self, trace):
        tracer = trace('const { join } = require("node:path");')

        assert tracer.lookup('join').name == 'path.join'

    def test_copy_of_module_alias(self, trace):
        tracer = trace('const p = require("path");\nconst q = p;')

        assert tracer.module_alias('q') == 'path'


class TestLookup:
    @pytest.mark.parametrize('name', [None, '', 'unknown', 'unknown.member'])
    def test_untraced(self, name):
        assert VariableTracer.with_default_tracing().lookup(name) is None

    def test_defaults(self):
        tracer = VariableTracer.with_default_tracing()

        assert tracer.lookup('process.mainModule.require').name == 'require'
        assert tracer.lookup('require.resolve').name == 'require.resolve'
        assert tracer.lookup('atob').name == 'atob'

    def test_custom_trace(self):
        tracer = VariableTracer().trace('customLoader', name='require')

        assert tracer.lookup('customLoader') == TracedIdentifier('require', 'customLoader')


def test_normalize_module_name():
    assert normalize_module_name('node:fs') == 'fs'
    assert normalize_module_name('fs') == 'fs'
