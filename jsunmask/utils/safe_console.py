"""Windows-safe Console wrapper for Rich library.

Wraps Rich's Console to sanitize Unicode output on terminals that don't
support UTF-8. Recovered specifiers are attacker-controlled text, so they
may contain anything.
"""
from typing import Any

from rich.console import Console

from .logger import is_utf8_capable, sanitize_for_terminal


class SafeConsole(Console):
    """Console that sanitizes string output for non-UTF-8 terminals."""

    def __init__(self, *args, **kwargs):
        """Initialize SafeConsole; arguments are passed to Rich's Console."""
        self._needs_sanitization = not is_utf8_capable()

        if self._needs_sanitization:
            kwargs.setdefault('legacy_windows', True)

        super().__init__(*args, **kwargs)

    def print(self, *objects: Any, **kwargs) -> None:
        """Print with Unicode sanitization when needed."""
        if self._needs_sanitization:
            objects = tuple(
                sanitize_for_terminal(obj) if isinstance(obj, str) else obj
                for obj in objects
            )
        super().print(*objects, **kwargs)

    def status(self, *args, **kwargs):
        """Create a status context with an ASCII spinner on legacy consoles."""
        if self._needs_sanitization:
            kwargs['spinner'] = 'line'
        return super().status(*args, **kwargs)
