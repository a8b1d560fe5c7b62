"""package.json reader used to compare declared and discovered dependencies."""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Set

from .tracer import normalize_module_name

DEPENDENCY_FIELDS = (
    'dependencies',
    'devDependencies',
    'peerDependencies',
    'optionalDependencies',
)

NODE_BUILTINS = frozenset({
    'assert', 'async_hooks', 'buffer', 'child_process', 'cluster', 'console',
    'constants', 'crypto', 'dgram', 'diagnostics_channel', 'dns', 'domain',
    'events', 'fs', 'http', 'http2', 'https', 'inspector', 'module', 'net',
    'os', 'path', 'perf_hooks', 'process', 'punycode', 'querystring',
    'readline', 'repl', 'stream', 'string_decoder', 'sys', 'timers', 'tls',
    'trace_events', 'tty', 'url', 'util', 'v8', 'vm', 'wasi', 'worker_threads',
    'zlib', 'test', 'sqlite', 'sea',
})


def package_root(specifier: str) -> str:
    """Return the package a specifier points into.

    ``lodash/fp`` -> ``lodash``, ``@babel/core/lib`` -> ``@babel/core``,
    ``node:fs/promises`` -> ``fs``.
    """
    parts = normalize_module_name(specifier).split('/')
    if parts[0].startswith('@') and len(parts) > 1:
        return '/'.join(parts[:2])
    return parts[0]


def is_local_specifier(specifier: str) -> bool:
    return specifier.startswith(('.', '/')) or specifier.startswith('file:')


def is_builtin(specifier: str) -> bool:
    return specifier.startswith('node:') or package_root(specifier) in NODE_BUILTINS


@dataclass
class PackageManifest:
    """Declared dependencies of one package."""
    name: Optional[str] = None
    declared: Set[str] = field(default_factory=set)

    @classmethod
    def from_directory(cls, project_root: str | Path) -> Optional['PackageManifest']:
        """Load ``package.json`` from a package directory.

        Returns:
            PackageManifest, or None if there is no readable package.json
        """
        package_json = Path(project_root) / 'package.json'
        if not package_json.exists():
            return None

        try:
            with open(package_json, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (IOError, json.JSONDecodeError):
            return None

        if not isinstance(data, dict):
            return None

        declared = set()
        for section in DEPENDENCY_FIELDS:
            entries = data.get(section)
            if isinstance(entries, dict):
                declared.update(entries.keys())

        return cls(name=data.get('name'), declared=declared)

    def undeclared(self, specifiers: Iterable[str]) -> List[str]:
        """Return discovered specifiers whose package is not declared.

        Builtins, relative/absolute paths and self-references are ignored.
        """
        missing = []
        for specifier in specifiers:
            if is_local_specifier(specifier) or is_builtin(specifier):
                continue
            root = package_root(specifier)
            if root in self.declared or root == self.name:
                continue
            if specifier not in missing:
                missing.append(specifier)
        return missing
