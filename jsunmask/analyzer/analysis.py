"""Per-pass analysis context: collected dependencies, warnings and pass flags."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .nodes import Span
from .tracer import VariableTracer

UNSAFE_IMPORT = 'unsafe-import'

WARNING_SEVERITIES = {
    UNSAFE_IMPORT: 'Warning',
}


@dataclass(frozen=True)
class Dependency:
    """A module specifier discovered in the analyzed source."""
    specifier: str
    location: Optional[Span]
    dynamic: bool = False
    # dependency_auto_warning at the time it was found (eval indirection)
    auto_warning: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'specifier': self.specifier,
            'location': self.location.to_dict() if self.location else None,
            'dynamic': self.dynamic,
            'auto_warning': self.auto_warning,
        }


@dataclass(frozen=True)
class AnalysisWarning:
    """A construct that could not be resolved statically."""
    kind: str
    location: Optional[Span]
    value: Optional[str] = None

    @property
    def severity(self) -> str:
        return WARNING_SEVERITIES.get(self.kind, 'Information')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'location': self.location.to_dict() if self.location else None,
            'value': self.value,
            'severity': self.severity,
        }


@dataclass
class SourceAnalysis:
    """Shared state of one traversal pass over one file.

    Probes append records through ``add_dependency`` / ``add_warning``;
    records are never modified once added.
    """
    file_path: str = '<memory>'
    tracer: VariableTracer = field(default_factory=VariableTracer.with_default_tracing)
    dependencies: List[Dependency] = field(default_factory=list)
    warnings: List[AnalysisWarning] = field(default_factory=list)
    # Set when a module load was only found through eval("require")
    dependency_auto_warning: bool = False
    has_syntax_errors: bool = False

    def add_dependency(self, specifier: str, location: Optional[Span] = None,
                       dynamic: bool = False) -> None:
        """Record a dependency; blank specifiers are ignored.

        A single trailing slash is dropped (``require("lodash/")``).
        """
        if not isinstance(specifier, str) or specifier.strip() == '':
            return
        if len(specifier) > 1 and specifier.endswith('/'):
            specifier = specifier[:-1]

        self.dependencies.append(Dependency(
            specifier=specifier,
            location=location,
            dynamic=dynamic,
            auto_warning=self.dependency_auto_warning
        ))

    def add_warning(self, kind: str, location: Optional[Span] = None,
                    value: Optional[str] = None) -> None:
        self.warnings.append(AnalysisWarning(kind=kind, location=location, value=value))

    @property
    def dependency_names(self) -> List[str]:
        """Unique specifiers in discovery order."""
        return list(dict.fromkeys(dependency.specifier for dependency in self.dependencies))

    @property
    def is_suspicious(self) -> bool:
        return bool(self.warnings) or any(d.auto_warning for d in self.dependencies)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'file': self.file_path,
            'dependencies': [dependency.to_dict() for dependency in self.dependencies],
            'warnings': [warning.to_dict() for warning in self.warnings],
            'has_syntax_errors': self.has_syntax_errors,
            'suspicious': self.is_suspicious,
        }
