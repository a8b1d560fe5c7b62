"""Configuration management for jsunmask.

Loads environment variables (and an optional .env file) and provides
centralized config access.
"""
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

__version__ = "1.0.0"

DEFAULT_EXTENSIONS = ".js,.cjs,.mjs,.jsx,.ts,.cts,.mts,.tsx"
DEFAULT_EXCLUDE_DIRS = "node_modules,.git"
DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_path: Optional[Path] = None):
        """Initialize config by loading a .env file.

        Args:
            env_path: Explicit .env location; defaults to ./.env. Variables
                already set in the environment win over the file.
        """
        load_dotenv(env_path or Path.cwd() / ".env")

        self._validate()

    def _validate(self):
        """Validate numeric settings eagerly.

        Raises:
            ValueError: If JSUNMASK_MAX_FILE_SIZE is not a positive integer
        """
        if self.max_file_size <= 0:
            raise ValueError(
                "JSUNMASK_MAX_FILE_SIZE must be a positive number of bytes."
            )

    @property
    def extensions(self) -> List[str]:
        """File extensions to scan.

        Returns:
            Lower-cased extensions including the leading dot
        """
        raw = os.getenv("JSUNMASK_EXTENSIONS", DEFAULT_EXTENSIONS)
        return [ext.lower() if ext.startswith('.') else f".{ext.lower()}" for ext in _split_list(raw)]

    @property
    def exclude_dirs(self) -> List[str]:
        """Directory names skipped while scanning a package."""
        return _split_list(os.getenv("JSUNMASK_EXCLUDE_DIRS", DEFAULT_EXCLUDE_DIRS))

    @property
    def max_file_size(self) -> int:
        """Largest file (in bytes) that gets parsed.

        Raises:
            ValueError: If the variable is not an integer
        """
        raw = os.getenv("JSUNMASK_MAX_FILE_SIZE", str(DEFAULT_MAX_FILE_SIZE))
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"JSUNMASK_MAX_FILE_SIZE is not an integer: {raw!r}")


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Drop the singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
