"""Tests for package.json comparison."""
import json
from pathlib import Path

import pytest

from jsunmask.analyzer.manifest import PackageManifest, is_builtin, is_local_specifier, package_root

FIXTURES = Path(__file__).parent / 'fixtures' / 'packages'


@pytest.mark.parametrize('specifier, expected', [
    ('lodash', 'lodash'),
    ('lodash/fp', 'lodash'),
    ('@babel/core', '@babel/core'),
    ('@babel/core/lib/index.js', '@babel/core'),
    ('node:fs/promises', 'fs'),
])
def test_package_root(specifier, expected):
    assert package_root(specifier) == expected


def test_specifier_kinds():
    assert is_local_specifier('./lib')
    assert is_local_specifier('../index.js')
    assert is_local_specifier('/abs/path')
    assert not is_local_specifier('lodash')

    assert is_builtin('fs')
    assert is_builtin('child_process')
    assert is_builtin('fs/promises')
    assert is_builtin('node:anything')
    assert not is_builtin('left-pad')


class TestPackageManifest:
    def test_fixture_package(self):
        manifest = PackageManifest.from_directory(FIXTURES / 'evil-pkg')

        assert manifest.name == 'evil-pkg'
        assert manifest.declared == {'lodash'}

    def test_all_dependency_sections(self, tmp_path):
        (tmp_path / 'package.json').write_text(json.dumps({
            'name': 'demo',
            'dependencies': {'a': '1'},
            'devDependencies': {'b': '1'},
            'peerDependencies': {'c': '1'},
            'optionalDependencies': {'d': '1'},
            'bundledDependencies': ['e'],
        }), encoding='utf-8')

        manifest = PackageManifest.from_directory(tmp_path)

        assert manifest.declared == {'a', 'b', 'c', 'd'}

    def test_missing_or_invalid(self, tmp_path):
        assert PackageManifest.from_directory(tmp_path) is None

        (tmp_path / 'package.json').write_text('{ not json', encoding='utf-8')
        assert PackageManifest.from_directory(tmp_path) is None

        (tmp_path / 'package.json').write_text('[]', encoding='utf-8')
        assert PackageManifest.from_directory(tmp_path) is None

    def test_undeclared(self):
        manifest = PackageManifest(name='demo', declared={'lodash', '@scope/pkg'})
        discovered = [
            'fs', 'node:path', './lib', 'lodash/fp', '@scope/pkg/sub',
            'demo/internal', 'left-pad', 'left-pad', 'http',
        ]

        assert manifest.undeclared(discovered) == ['left-pad']
