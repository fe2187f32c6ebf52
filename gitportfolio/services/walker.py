"""
Bounded filesystem traversal that finds git project candidates.
"""

from typing import Iterable, Iterator, List, Optional, Tuple
from pathlib import Path
import logging
import os

from ..infra import GitClient

logger = logging.getLogger(__name__)


# Directory names never descended into
DEFAULT_EXCLUDES = frozenset({
    'node_modules', '.git', 'dist', 'build', 'coverage', '.next', '.nuxt',
    'temp', 'tmp', 'backup', 'archive', '.vscode', '.idea',
    '__pycache__', '.pytest_cache', 'venv', 'env',
})


class DirectoryWalker:
    """
    Depth-bounded, exclusion-aware search for directories containing `.git`.

    Traversal uses an explicit stack of (path, depth) with the root at
    depth 0. A candidate is yielded and not descended into; its siblings are
    still visited. Symlinked directories are never followed. A directory
    that cannot be listed is recorded in `warnings` and its subtree skipped.

    Example:
        walker = DirectoryWalker(max_depth=2, exclude_names={"node_modules"})
        for path in walker.discover("~/Projects"):
            print(path)
    """

    def __init__(
        self,
        max_depth: int = 3,
        exclude_names: Optional[Iterable[str]] = None,
        skip_hidden: bool = True,
        git_client: Optional[GitClient] = None
    ):
        """
        Initialize DirectoryWalker.

        Args:
            max_depth: Deepest level (root = 0) that is inspected
            exclude_names: Exact, case-sensitive directory names to prune
                (default: DEFAULT_EXCLUDES)
            skip_hidden: Prune directories whose name starts with '.'
            git_client: Used for the `.git` presence check
        """
        if max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        self.max_depth = max_depth
        self.exclude_names = frozenset(DEFAULT_EXCLUDES if exclude_names is None else exclude_names)
        self.skip_hidden = skip_hidden
        self.git = git_client or GitClient()
        self.warnings: List[str] = []

    def _pruned(self, name: str) -> bool:
        if name in self.exclude_names:
            return True
        return self.skip_hidden and name.startswith('.')

    def _subdirectories(self, path: str) -> List[str]:
        """Sorted child directories of path, excluding symlinks and pruned names."""
        children = []
        with os.scandir(path) as entries:
            for entry in entries:
                try:
                    if not entry.is_dir(follow_symlinks=False):
                        continue
                except OSError:
                    continue
                if self._pruned(entry.name):
                    continue
                children.append(entry.path)
        return sorted(children)

    def discover(self, root: str) -> Iterator[str]:
        """
        Yield absolute paths of candidate projects under root.

        Args:
            root: Directory to start from (user home is expanded)

        Yields:
            Candidate directory paths in sorted depth-first order
        """
        root_path = str(Path(root).expanduser().resolve())
        if not os.path.isdir(root_path):
            message = f"Directory not found: {root_path}"
            logger.warning(message)
            self.warnings.append(message)
            return

        stack: List[Tuple[str, int]] = [(root_path, 0)]
        while stack:
            path, depth = stack.pop()

            try:
                # Path.exists() raises on EACCES when checking for .git
                is_repo = self.git.is_git_repo(path)
                children = [] if is_repo or depth >= self.max_depth else self._subdirectories(path)
            except OSError as e:
                # PermissionError included
                message = f"Skipping {path}: {e}"
                logger.warning(message)
                self.warnings.append(message)
                continue

            if is_repo:
                yield path
                continue

            # Reverse so the stack pops in sorted order
            for child in reversed(children):
                stack.append((child, depth + 1))
