"""
Repository domain object for gitportfolio.

Repository represents one discovered git project. It is created once per
discovery pass and is immutable until the next pass; it is designed to be
serializable for JSONL output.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Dict, Any, Iterable, Tuple
from pathlib import Path
import json


@dataclass(frozen=True)
class LastCommit:
    """Most recent commit on the checked-out branch."""
    hash: str
    author: str
    date: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hash': self.hash,
            'author': self.author,
            'date': self.date,
            'message': self.message,
        }


@dataclass(frozen=True)
class Repository:
    """
    Immutable representation of a discovered git project.

    Contains:
    - Identity: name, absolute path, path relative to the scan root
    - Classification: project type guessed from manifest files
    - Markers: TrackDown backlog presence, hosted remote presence
    - A basic git summary: last commit and branch names

    To "update" a Repository, create a new instance with
    dataclasses.replace() or one of the with_* helpers.
    """

    # Required fields
    path: str
    name: str
    relative_path: str = "."

    # Classification
    type: str = "unknown"
    has_trackdown: bool = False

    # Remote
    has_hosted_remote: bool = False
    remote_url: Optional[str] = None

    # Git summary
    last_commit: Optional[LastCommit] = None
    branches: Tuple[str, ...] = ()

    # Downstream filtering
    selected: bool = False

    @classmethod
    def from_path(cls, path: str, root: Optional[str] = None) -> 'Repository':
        """
        Create a minimal Repository from a filesystem path.

        Use RepositoryAnalyzer to populate type, remote and markers.

        Args:
            path: Path to the git repository
            root: Scan root used to compute relative_path

        Returns:
            Minimal Repository instance
        """
        resolved = Path(path).resolve()
        relative = "."
        if root is not None:
            try:
                relative = str(resolved.relative_to(Path(root).resolve())) or "."
            except ValueError:
                relative = str(resolved)
        return cls(path=str(resolved), name=resolved.name, relative_path=relative)

    def with_selected(self, selected: bool = True) -> 'Repository':
        """Create a new Repository with the selection flag set."""
        return replace(self, selected=selected)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'name': self.name,
            'path': self.path,
            'relativePath': self.relative_path,
            'type': self.type,
            'hasTrackDown': self.has_trackdown,
            'hasHostedRemote': self.has_hosted_remote,
            'remoteUrl': self.remote_url,
            'selected': self.selected,
            'lastCommit': self.last_commit.to_dict() if self.last_commit else None,
            'branches': list(self.branches),
        }

    def to_jsonl(self) -> str:
        """Convert to single-line JSON for streaming output."""
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def __str__(self) -> str:
        return f"{self.name} ({self.path})"

    def __repr__(self) -> str:
        return f"Repository(name={self.name!r}, path={self.path!r})"


@dataclass(frozen=True)
class DiscoverySummary:
    """Counts over one discovery pass."""
    total: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)
    with_trackdown: int = 0
    with_hosted_remote: int = 0
    selected: int = 0

    @classmethod
    def from_repositories(cls, repos: Iterable[Repository]) -> 'DiscoverySummary':
        total = 0
        by_type: Dict[str, int] = {}
        with_trackdown = with_hosted_remote = selected = 0

        for repo in repos:
            total += 1
            by_type[repo.type] = by_type.get(repo.type, 0) + 1
            if repo.has_trackdown:
                with_trackdown += 1
            if repo.has_hosted_remote:
                with_hosted_remote += 1
            if repo.selected:
                selected += 1

        return cls(
            total=total,
            by_type=by_type,
            with_trackdown=with_trackdown,
            with_hosted_remote=with_hosted_remote,
            selected=selected,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'byType': dict(self.by_type),
            'withTrackDown': self.with_trackdown,
            'withHostedRemote': self.with_hosted_remote,
            'selected': self.selected,
        }
