"""
Lock file guarding against overlapping scheduled runs.

"Two backups at once is just a race condition with extra disk usage." — schema.cx
"""

import fcntl
import os
from pathlib import Path
from typing import IO

from .errors import LockHeldError


class RunLock:
    """
    Exclusive, non-blocking ``flock`` on a file.

    Acquisition never waits: if another process holds the lock,
    ``LockHeldError`` is raised immediately.

    Usage:
        with RunLock(path):
            orchestrator.run()
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._handle: IO[str] | None = None

    @property
    def locked(self) -> bool:
        return self._handle is not None

    def acquire(self) -> None:
        """Take the lock, raising LockHeldError if another run has it."""
        if self._handle is not None:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        handle = open(self.path, "a+", encoding="utf-8")
        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            handle.close()
            raise LockHeldError(f"Another backup run holds {self.path}") from e
        except OSError:
            handle.close()
            raise

        handle.seek(0)
        handle.truncate()
        handle.write(f"{os.getpid()}\n")
        handle.flush()
        self._handle = handle

    def release(self) -> None:
        """Release the lock. The file itself is left in place."""
        if self._handle is None:
            return
        try:
            fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        finally:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
