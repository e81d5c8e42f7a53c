"""
Filesystem access used by the mirror orchestrator.

Kept behind a small interface so tests can simulate stat failures.
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path


class FileSystem(ABC):
    """Filesystem queries and mutations needed for a run."""

    @abstractmethod
    def stat(self, path: Path) -> os.stat_result:
        """Return metadata for ``path``; FileNotFoundError when it does not exist."""
        pass

    @abstractmethod
    def makedirs(self, path: Path) -> None:
        """Create ``path`` and any missing parents."""
        pass


class LocalFileSystem(FileSystem):
    """The real filesystem."""

    def stat(self, path: Path) -> os.stat_result:
        return os.stat(path)

    def makedirs(self, path: Path) -> None:
        os.makedirs(path, mode=0o755, exist_ok=True)
