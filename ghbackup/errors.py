"""
Exceptions that abort a whole backup run.

Failures scoped to a single repository are not exceptions; they are
reported through ``MirrorResult``.
"""


class BackupError(Exception):
    """Run-wide fatal error."""

    pass


class ConfigError(BackupError):
    """Missing or invalid configuration."""

    pass


class GitHubAPIError(BackupError):
    """GitHub API error."""

    pass


class RateLimitError(GitHubAPIError):
    """Rate limit exceeded error."""

    pass


class LockHeldError(BackupError):
    """Another run already holds the lock file."""

    pass
