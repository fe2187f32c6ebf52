"""
Canned-output git client for tests and offline use.

FakeGitClient shares every capability method with GitClient but answers
`run` from a dictionary keyed by the space-joined argument list, e.g.
"rev-list --count HEAD". This keeps the real query forms under test while
removing the need for a git binary.

Example:
    git = FakeGitClient(
        outputs={"rev-list --count HEAD": "5\\n"},
        failures=["shortlog"],
    )
"""

from typing import Dict, Iterable, List, Optional, Set, Tuple
import logging

from .git_client import GitClient
from ..errors import VcsCommandFailed

logger = logging.getLogger(__name__)


class FakeGitClient(GitClient):
    """
    GitClient that serves canned text instead of spawning processes.

    Args:
        outputs: Map of "subcommand arg ..." to stdout text
        failures: Command prefixes that raise VcsCommandFailed (fault injection)
        line_counts: Map of tracked file name to line count
        repos: Paths reported as git repositories (None means every path)
        default_output: Text for commands missing from outputs; None makes
            an unknown command fail like an unknown revision would
    """

    def __init__(
        self,
        outputs: Optional[Dict[str, str]] = None,
        failures: Optional[Iterable[str]] = None,
        line_counts: Optional[Dict[str, int]] = None,
        repos: Optional[Iterable[str]] = None,
        default_output: Optional[str] = None
    ):
        super().__init__(timeout=0)
        self.outputs = dict(outputs or {})
        self.failures: List[str] = list(failures or [])
        self.line_counts = dict(line_counts or {})
        self.repos: Optional[Set[str]] = set(repos) if repos is not None else None
        self.default_output = default_output
        self.calls: List[Tuple[str, str]] = []

    def run(
        self,
        cwd: str,
        *args: str,
        check: bool = True
    ) -> Tuple[str, int]:
        self._validate(args)
        key = ' '.join(args)
        self.calls.append((cwd, key))

        for prefix in self.failures:
            if key.startswith(prefix):
                if check:
                    raise VcsCommandFailed(["git", *args], "injected failure", 128)
                return "", 128

        if key in self.outputs:
            return self.outputs[key], 0
        if self.default_output is not None:
            return self.default_output, 0

        if check:
            raise VcsCommandFailed(["git", *args], f"no canned output for '{key}'", 128)
        return "", 1

    def is_git_repo(self, path: str) -> bool:
        if self.repos is None:
            return True
        return path in self.repos

    def line_count(self, path: str, file_name: str) -> int:
        if file_name not in self.line_counts:
            raise VcsCommandFailed(["wc", "-l", file_name], "no such file")
        return self.line_counts[file_name]

    def commands(self) -> List[str]:
        """Commands issued so far, in order."""
        return [key for _, key in self.calls]
