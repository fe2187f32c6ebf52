"""
Git client infrastructure for gitportfolio.

Provides a narrow, read-only abstraction over git command execution.
All git queries go through this client, making them:
- Easy to replace with canned output for testing (see FakeGitClient)
- Consistent in error handling (VcsCommandFailed)
- Isolated from parsing, which lives in gitportfolio.parsers

Every capability returns the raw text git printed. The query forms are
fixed: field order and the '|' delimiter are part of the contract with
the parsers, so changing one means changing both.
"""

import subprocess
from typing import List, Optional, Tuple
from pathlib import Path
import logging

from ..errors import VcsCommandFailed

logger = logging.getLogger(__name__)


# Read-only subcommands the client is allowed to issue
ALLOWED_SUBCOMMANDS = frozenset({
    'rev-parse', 'rev-list', 'branch', 'log', 'show',
    'shortlog', 'ls-files', 'config',
})

# Characters with special meaning in git's default (basic) regex syntax
BASIC_REGEX_SPECIALS = frozenset('\\.[]*^$')

# Options that make `git branch` or `git config` mutate state
_MUTATING_OPTIONS = frozenset({
    '-d', '-D', '--delete', '-m', '-M', '--move', '-c', '-C', '--copy',
    '-u', '--set-upstream-to', '--unset-upstream', '--edit-description',
    '--add', '--unset', '--unset-all', '--replace-all', '--rename-section',
    '--remove-section', '-e', '--edit',
})

# Commit fields: hash|author date|author name|author email|subject|parents
COMMIT_LOG_FORMAT = '%H|%aI|%an|%ae|%s|%P'
# Branch first commit: author date|author name|subject
BRANCH_FIRST_FORMAT = '%aI|%an|%s'
# Branch last commit: author date|subject
BRANCH_LAST_FORMAT = '%aI|%s'
# Repository last commit: hash|author name|author date|subject
LAST_COMMIT_FORMAT = '%H|%an|%aI|%s'



def escape_basic_regex(text: str) -> str:
    """Escape text for use as a literal inside a POSIX basic regular expression."""
    return "".join("\\" + ch if ch in BASIC_REGEX_SPECIALS else ch for ch in text)


class GitClient:
    """
    Abstraction over read-only git queries.

    Example:
        client = GitClient(timeout=10)
        if client.is_git_repo("/path/to/repo"):
            print(client.current_branch("/path/to/repo"))
    """

    def __init__(self, timeout: int = 30, executable: str = "git"):
        """
        Initialize GitClient.

        Args:
            timeout: Hard wall-clock limit per command in seconds (default: 30)
            executable: git binary to invoke
        """
        self.timeout = timeout
        self.executable = executable

    def _validate(self, args: Tuple[str, ...]) -> None:
        """Reject anything outside the read-only allow-list."""
        if not args:
            raise ValueError("No git subcommand given")
        if args[0] not in ALLOWED_SUBCOMMANDS:
            raise ValueError(f"git {args[0]} is not an allowed read-only query")
        if args[0] in ('branch', 'config'):
            for arg in args[1:]:
                if arg.split('=', 1)[0] in _MUTATING_OPTIONS:
                    raise ValueError(f"git {args[0]} {arg} would modify the repository")
        if args[0] == 'branch':
            # Listing only: every positional must follow --merged/--contains
            expecting_ref = False
            for arg in args[1:]:
                if expecting_ref:
                    expecting_ref = False
                    continue
                if arg in ('--merged', '--no-merged', '--contains'):
                    expecting_ref = True
                    continue
                if not arg.startswith('-'):
                    raise ValueError(f"git branch {arg} would create a branch")

    def run(
        self,
        cwd: str,
        *args: str,
        check: bool = True
    ) -> Tuple[str, int]:
        """
        Run one git query and return its output.

        Args:
            cwd: Working directory (the repository root)
            *args: git subcommand and arguments, e.g. ("log", "-1")
            check: Raise VcsCommandFailed on non-zero exit

        Returns:
            Tuple of (stdout, returncode)

        Raises:
            ValueError: If the subcommand is not an allowed read-only query
            VcsCommandFailed: On non-zero exit (with check), timeout, or
                when git cannot be started
        """
        self._validate(args)
        cmd = [self.executable, *args]
        logger.debug(f"Running {' '.join(cmd)} in {cwd}")

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                errors='replace',
                stdin=subprocess.DEVNULL,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out after {self.timeout}s: {' '.join(cmd)}")
            raise VcsCommandFailed(cmd, f"timed out after {self.timeout}s")
        except OSError as e:
            raise VcsCommandFailed(cmd, str(e))

        if check and result.returncode != 0:
            raise VcsCommandFailed(cmd, result.stderr, result.returncode)

        return result.stdout or "", result.returncode

    def is_git_repo(self, path: str) -> bool:
        """Check if path contains git metadata (.git directory or gitfile)."""
        return (Path(path) / ".git").exists()

    def has_commits(self, path: str) -> bool:
        """False for a freshly initialized repository with no HEAD commit."""
        _, code = self.run(path, "rev-parse", "--verify", "--quiet", "HEAD", check=False)
        return code == 0

    def current_branch(self, path: str) -> str:
        """Get current branch name (empty on a detached HEAD)."""
        output, _ = self.run(path, "branch", "--show-current")
        return output

    def remote_url(self, path: str, remote: str = "origin") -> Optional[str]:
        """
        Get remote URL.

        Returns:
            Remote URL or None if the remote is not configured
        """
        output, code = self.run(path, "config", "--get", f"remote.{remote}.url", check=False)
        if code == 0 and output.strip():
            return output.strip()
        if code not in (0, 1):
            # 1 means "key not set"; anything else is a real failure
            raise VcsCommandFailed(["git", "config", "--get", f"remote.{remote}.url"], "", code)
        return None

    def list_branches(self, path: str) -> str:
        """List local and remote-tracking branches as full ref names."""
        output, _ = self.run(path, "branch", "-a", "--format=%(refname)")
        return output

    def remote_branches(self, path: str) -> str:
        """List remote-tracking branches."""
        output, _ = self.run(path, "branch", "-r")
        return output

    def merged_branches(self, path: str, target: str = "main") -> str:
        """List all branches (full ref names) whose tips are reachable from target."""
        output, _ = self.run(path, "branch", "-a", "--merged", target, "--format=%(refname)")
        return output

    def commit_count(self, path: str, ref: str = "HEAD") -> str:
        """Count commits reachable from ref."""
        output, _ = self.run(path, "rev-list", "--count", ref)
        return output

    def branch_first_commit(self, path: str, ref: str, exclude: Optional[str] = None) -> str:
        """
        Oldest-first log of ref, optionally excluding commits reachable from exclude.

        Format: author date|author name|subject
        """
        args: List[str] = ["log", "--reverse", f"--format={BRANCH_FIRST_FORMAT}", ref]
        if exclude:
            args.extend(["--not", exclude])
        output, _ = self.run(path, *args)
        return output

    def branch_last_commit(self, path: str, ref: str) -> str:
        """Most recent commit of ref. Format: author date|subject"""
        output, _ = self.run(path, "log", "-1", f"--format={BRANCH_LAST_FORMAT}", ref)
        return output

    def commit_log(self, path: str, limit: int = 100) -> str:
        """
        Most recent commits, newest first.

        Format: hash|author date|author name|author email|subject|parents
        """
        output, _ = self.run(path, "log", f"--format={COMMIT_LOG_FORMAT}", "-n", str(limit))
        return output

    def file_stat(self, path: str, commit_hash: str) -> str:
        """Diff-stat of one commit, without the commit header."""
        output, _ = self.run(path, "show", "--stat", "--format=", commit_hash)
        return output

    def shortlog(self, path: str) -> str:
        """Commit counts per author across all refs."""
        output, _ = self.run(path, "shortlog", "-sn", "--all")
        return output

    def author_dates(self, path: str, author: str) -> str:
        """
        Author dates of every commit by author, newest first.

        git matches --author against "Name <email>", so the pattern is
        anchored on both sides of the name to keep "Al" from matching "Alice".
        """
        pattern = f"^{escape_basic_regex(author)} <"
        output, _ = self.run(path, "log", "--all", "--basic-regexp", f"--author={pattern}", "--format=%aI")
        return output

    def first_commit_date(self, path: str) -> str:
        """Author dates of the whole history, oldest first."""
        output, _ = self.run(path, "log", "--reverse", "--format=%aI")
        return output

    def last_commit_date(self, path: str) -> str:
        """Author date of HEAD."""
        output, _ = self.run(path, "log", "-1", "--format=%aI")
        return output

    def last_commit(self, path: str) -> str:
        """HEAD commit. Format: hash|author name|author date|subject"""
        output, _ = self.run(path, "log", "-1", f"--format={LAST_COMMIT_FORMAT}")
        return output

    def recent_hashes(self, path: str, limit: int) -> str:
        """Hashes of the most recent commits."""
        output, _ = self.run(path, "log", "--format=%H", "-n", str(limit))
        return output

    def commit_shortstat(self, path: str, commit_hash: str) -> str:
        """Author date line followed by the shortstat summary of one commit."""
        output, _ = self.run(path, "show", "--shortstat", "--format=%aI", commit_hash)
        return output

    def changed_file_names(self, path: str) -> str:
        """Names of files touched by each commit, one per line."""
        output, _ = self.run(path, "log", "--name-only", "--format=")
        return output

    def tracked_files(self, path: str) -> str:
        """Files tracked in the index."""
        output, _ = self.run(path, "ls-files")
        return output

    def line_count(self, path: str, file_name: str) -> int:
        """
        Count newline characters in a working-tree file, as `wc -l` does.

        Raises:
            VcsCommandFailed: If the file cannot be read
        """
        file_path = Path(path) / file_name
        try:
            with open(file_path, 'rb') as f:
                return sum(chunk.count(b'\n') for chunk in iter(lambda: f.read(65536), b''))
        except OSError as e:
            raise VcsCommandFailed(["wc", "-l", str(file_path)], str(e))
