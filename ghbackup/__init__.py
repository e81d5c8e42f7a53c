"""
ghbackup - Keep a bare mirror of every GitHub repository you can access.

"In a world of ephemeral clouds, be the one with local backups." — schema.cx
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .models import Config, MirrorResult, MirrorSummary, Repository

__all__ = [
    "Config",
    "MirrorResult",
    "MirrorSummary",
    "Repository",
    "__version__",
]
