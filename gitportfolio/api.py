"""
High-level Python API for gitportfolio.

Example:
    import gitportfolio

    gp = gitportfolio.GitPortfolio()

    # Discover repositories under the configured scan directories
    repos = gp.discover("~/Projects")
    print(gp.summarize(repos).to_dict())

    # History report for one project (cached for 24h by default)
    result = gp.report("~/Projects/site")
    print(result.report.to_json())

    # Whole portfolio, analyzed concurrently
    for result in gp.scan("~/Projects"):
        print(result.report.project_name if result.report else result.warnings)

    # Low-level access to services
    gp.report_service
    gp.analyzer
"""

from datetime import timedelta
from typing import Any, Dict, Iterator, List, Optional
from pathlib import Path
import logging

from .config import load_config
from .domain import AnalysisResult, DiscoverySummary, Repository
from .infra import CacheStore, FileCacheStore, GitClient
from .services import (
    DEFAULT_EXCLUDES,
    AnalysisOptions,
    DirectoryWalker,
    ReportCache,
    ReportService,
    RepositoryAnalyzer,
)

logger = logging.getLogger(__name__)


class GitPortfolio:
    """
    High-level API for gitportfolio, built from configuration.

    Example:
        gp = GitPortfolio(config={"cache": {"enabled": False}})
        for repo in gp.discover("."):
            print(repo.name, repo.type)
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        git_client: Optional[GitClient] = None,
        cache_store: Optional[CacheStore] = None
    ):
        """
        Initialize GitPortfolio.

        Args:
            config: Full config dict (loads from file if None)
            git_client: Git client (built from the `git` section if None)
            cache_store: Report cache store (a FileCacheStore in the
                configured directory if None)
        """
        self._config = config if config is not None else load_config()

        git = self._config.get('git', {})
        self.git = git_client or GitClient(timeout=int(git.get('timeout_seconds', 30)))
        self.options = AnalysisOptions.from_config(self._config)
        self.analyzer = RepositoryAnalyzer(self.git, remote=self.options.remote)

        cache_config = self._config.get('cache', {})
        cache = None
        if cache_config.get('enabled', True):
            store = cache_store
            if store is None:
                store = FileCacheStore(Path(cache_config.get('directory', '~/.gitportfolio/reports')))
            cache = ReportCache(store, ttl=timedelta(hours=float(cache_config.get('ttl_hours', 24))))

        general = self._config.get('general', {})
        self.report_service = ReportService(
            git_client=self.git,
            cache=cache,
            options=self.options,
            max_concurrent_scans=int(general.get('max_concurrent_scans', 5)),
            analyzer=self.analyzer,
        )

    @property
    def config(self) -> Dict[str, Any]:
        return self._config

    def walker(self, max_depth: Optional[int] = None, exclude: Optional[List[str]] = None) -> DirectoryWalker:
        """A DirectoryWalker configured from the `discovery` section."""
        discovery = self._config.get('discovery', {})
        configured = discovery.get('exclude_dirs')
        # An explicit empty list disables pruning; only a missing key means defaults
        exclude_names = set(DEFAULT_EXCLUDES if configured is None else configured)
        exclude_names.update(exclude or [])
        return DirectoryWalker(
            max_depth=int(max_depth if max_depth is not None else discovery.get('max_depth', 3)),
            exclude_names=exclude_names,
            skip_hidden=bool(discovery.get('skip_hidden', True)),
            git_client=self.git,
        )

    def _roots(self, root: Optional[str]) -> List[str]:
        if root is not None:
            return [root]
        return list(self._config.get('general', {}).get('scan_directories') or ['.'])

    def discover(
        self,
        root: Optional[str] = None,
        walker: Optional[DirectoryWalker] = None
    ) -> List[Repository]:
        """
        Discover and classify repositories.

        Args:
            root: Directory to scan (configured scan_directories if None)
            walker: Walker to use (configured walker if None)

        Returns:
            Repositories in discovery order, de-duplicated by path
        """
        walker = walker or self.walker()
        seen = set()
        repos: List[Repository] = []
        for scan_root in self._roots(root):
            for path in walker.discover(scan_root):
                if path in seen:
                    continue
                seen.add(path)
                repos.extend(self.analyzer.analyze_all([path], root=str(Path(scan_root).expanduser())))
        return repos

    def summarize(self, repos: List[Repository]) -> DiscoverySummary:
        return self.analyzer.summarize(repos)

    def report(
        self,
        path: str,
        force_refresh: bool = False,
        options: Optional[AnalysisOptions] = None
    ) -> AnalysisResult:
        """History report for one repository."""
        return self.report_service.get_report(path, options=options, force_refresh=force_refresh)

    def scan(
        self,
        root: Optional[str] = None,
        walker: Optional[DirectoryWalker] = None
    ) -> Iterator[AnalysisResult]:
        """Report on every repository under root (or each scan directory)."""
        walker = walker or self.walker()
        for scan_root in self._roots(root):
            yield from self.report_service.scan(scan_root, walker=walker)

    def clear_cache(self) -> int:
        return self.report_service.clear_cache()
