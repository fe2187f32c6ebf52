"""
Error types for gitportfolio.

The analysis engine degrades rather than aborts: most of these errors are
caught close to where they are raised and turned into empty sections plus
a warning. Only NotAVersionControlledDirectory is allowed to stop the
analysis of a single project, and never a whole portfolio scan.
"""

from typing import Optional, Sequence


class GitPortfolioError(Exception):
    """Base class for all gitportfolio errors."""


class VcsCommandFailed(GitPortfolioError):
    """
    A git query exited non-zero, timed out, or could not be started.

    Attributes:
        command: The argument list that was executed
        stderr: Captured standard error (may be empty)
        returncode: Process exit status, or -1 when no status is available
    """

    def __init__(
        self,
        command: Sequence[str],
        stderr: str = "",
        returncode: int = -1
    ):
        self.command = list(command)
        self.stderr = (stderr or "").strip()
        self.returncode = returncode
        message = f"git command failed ({returncode}): {' '.join(self.command)}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)


class NotAVersionControlledDirectory(GitPortfolioError):
    """The path has no git metadata directory."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"{path} is not a git repository")


class CacheCorrupt(GitPortfolioError):
    """A cache file exists but does not decode into a Report."""

    def __init__(self, key: str, reason: Optional[str] = None):
        self.key = key
        self.reason = reason
        message = f"Corrupt cache entry {key}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
