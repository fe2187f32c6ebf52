"""
Repository analysis service for gitportfolio.

Turns a discovered candidate directory into a classified Repository:
project type from manifest files, TrackDown backlog markers, hosted remote
detection and a basic git summary.
"""

from dataclasses import replace
from typing import Iterable, List, Optional, Tuple
from pathlib import Path
import logging

from ..domain import Repository, DiscoverySummary
from ..errors import NotAVersionControlledDirectory, VcsCommandFailed
from ..infra import GitClient
from ..parsers import parse_branch_refs, parse_hosted_remote, parse_last_commit_summary

logger = logging.getLogger(__name__)


# Manifest file -> project type, first match wins
PROJECT_TYPE_MARKERS: Tuple[Tuple[str, str], ...] = (
    ('package.json', 'nodejs'),
    ('pyproject.toml', 'python'),
    ('requirements.txt', 'python'),
    ('setup.py', 'python'),
    ('Cargo.toml', 'rust'),
    ('go.mod', 'go'),
    ('composer.json', 'php'),
    ('Gemfile', 'ruby'),
    ('pom.xml', 'java'),
    ('build.gradle', 'java'),
    ('CMakeLists.txt', 'cpp'),
    ('Makefile', 'make'),
)

WEB_MARKERS = ('index.html', 'src')

TRACKDOWN_BACKLOG = Path('trackdown') / 'BACKLOG.md'
LEGACY_TRACKDOWN_MARKERS = ('trackdown', 'TRACKDOWN.md', 'trackdown.md')


def detect_project_type(path: str) -> str:
    """Guess the ecosystem of a project from the files at its root."""
    root = Path(path)
    for marker, project_type in PROJECT_TYPE_MARKERS:
        if (root / marker).exists():
            return project_type
    if any((root / marker).exists() for marker in WEB_MARKERS):
        return 'web'
    return 'unknown'


def has_trackdown(path: str) -> bool:
    """Check for a TrackDown backlog, or one of the legacy markers."""
    root = Path(path)
    if (root / TRACKDOWN_BACKLOG).is_file():
        return True
    return any((root / marker).exists() for marker in LEGACY_TRACKDOWN_MARKERS)


class RepositoryAnalyzer:
    """
    Service for classifying discovered repositories.

    Example:
        analyzer = RepositoryAnalyzer()
        repo = analyzer.analyze("/home/user/projects/site", root="/home/user/projects")
        print(repo.type, repo.has_hosted_remote)
    """

    def __init__(
        self,
        git_client: Optional[GitClient] = None,
        remote: str = "origin"
    ):
        """
        Initialize RepositoryAnalyzer.

        Args:
            git_client: Git client instance (creates default if None)
            remote: Remote whose URL is inspected
        """
        self.git = git_client or GitClient()
        self.remote = remote

    def analyze(self, path: str, root: Optional[str] = None) -> Repository:
        """
        Classify one candidate directory.

        Git inspection is best effort: a failing query leaves its fields
        empty and the rest of the Repository is still populated.

        Args:
            path: Candidate project directory
            root: Scan root, used for relative_path

        Returns:
            Populated Repository

        Raises:
            NotAVersionControlledDirectory: If path has no .git
        """
        repo = Repository.from_path(path, root=root)
        if not self.git.is_git_repo(repo.path):
            raise NotAVersionControlledDirectory(repo.path)

        repo = replace(
            repo,
            type=detect_project_type(repo.path),
            has_trackdown=has_trackdown(repo.path),
        )

        try:
            remote_url = self.git.remote_url(repo.path, self.remote)
        except VcsCommandFailed as e:
            logger.warning(f"Could not read remote of {repo.path}: {e}")
            remote_url = None
        if remote_url:
            repo = replace(
                repo,
                remote_url=remote_url,
                has_hosted_remote=parse_hosted_remote(remote_url) is not None,
            )

        try:
            repo = replace(repo, last_commit=parse_last_commit_summary(self.git.last_commit(repo.path)))
        except VcsCommandFailed as e:
            # An empty repository has no HEAD commit
            logger.debug(f"No last commit for {repo.path}: {e}")

        try:
            repo = replace(repo, branches=tuple(parse_branch_refs(self.git.list_branches(repo.path))))
        except VcsCommandFailed as e:
            logger.warning(f"Could not list branches of {repo.path}: {e}")

        return repo

    def analyze_all(self, paths: Iterable[str], root: Optional[str] = None) -> List[Repository]:
        """Analyze candidates, skipping any that are no longer repositories."""
        repos = []
        for path in paths:
            try:
                repos.append(self.analyze(path, root=root))
            except NotAVersionControlledDirectory as e:
                logger.warning(str(e))
        return repos

    def summarize(self, repos: Iterable[Repository]) -> DiscoverySummary:
        """Counts by type and marker over a discovery pass."""
        return DiscoverySummary.from_repositories(repos)
