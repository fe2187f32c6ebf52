"""
Report orchestration for gitportfolio.

ReportService is the single entry point a dashboard needs: it resolves a
project to a cache key, serves cached Reports while they are fresh, and
otherwise runs HistoryEngine and stores the result. It also drives whole
portfolio scans across a thread pool.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterator, Optional, Tuple
from pathlib import Path
import logging
import threading

from ..domain import AnalysisResult
from ..errors import NotAVersionControlledDirectory
from ..infra import GitClient
from .history_service import AnalysisOptions, HistoryEngine
from .report_cache import ReportCache, make_cache_key
from .repository_service import RepositoryAnalyzer
from .walker import DirectoryWalker

logger = logging.getLogger(__name__)


class ReportService:
    """
    Cached report generation for one or many repositories.

    Analyses of the same path are serialized by a per-path lock, which
    also keeps two threads from computing and writing the same cache key
    at once. Different paths run independently.

    Example:
        service = ReportService(cache=ReportCache(FileCacheStore(cache_dir)))
        result = service.get_report("/home/user/projects/site")
        print(result.from_cache, result.report.summary.total_commits)
    """

    def __init__(
        self,
        git_client: Optional[GitClient] = None,
        cache: Optional[ReportCache] = None,
        options: Optional[AnalysisOptions] = None,
        max_concurrent_scans: int = 5,
        analyzer: Optional[RepositoryAnalyzer] = None
    ):
        """
        Initialize ReportService.

        Args:
            git_client: Git client instance (creates default if None)
            cache: Report cache; None disables caching
            options: Default analysis options
            max_concurrent_scans: Worker threads used by scan()
            analyzer: Repository classifier used by scan()
        """
        self.git = git_client or GitClient()
        self.cache = cache
        self.options = options or AnalysisOptions()
        self.max_concurrent_scans = max(1, max_concurrent_scans)
        self.analyzer = analyzer or RepositoryAnalyzer(self.git, remote=self.options.remote)
        # path -> (lock, number of callers holding or waiting on it)
        self._locks: Dict[str, Tuple[threading.Lock, int]] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _lock_for(self, path: str) -> Iterator[None]:
        """Serialize analyses of one path; the lock is dropped once unused."""
        with self._locks_guard:
            lock, users = self._locks.get(path, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[path] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                lock, users = self._locks[path]
                if users == 1:
                    del self._locks[path]
                else:
                    self._locks[path] = (lock, users - 1)

    def get_report(
        self,
        path: str,
        name: Optional[str] = None,
        options: Optional[AnalysisOptions] = None,
        force_refresh: bool = False
    ) -> AnalysisResult:
        """
        Report for one repository, from cache when fresh.

        Args:
            path: Repository root
            name: Display name (directory name if None)
            options: Analysis options (service defaults if None)
            force_refresh: Recompute even on a cache hit

        Returns:
            AnalysisResult; from_cache is True when served from cache

        Raises:
            NotAVersionControlledDirectory: If path has no .git
        """
        resolved = str(Path(path).expanduser().resolve())
        options = options or self.options
        key = make_cache_key(resolved, options.to_dict())

        with self._lock_for(resolved):
            if self.cache is not None and not force_refresh:
                cached = self.cache.get(key)
                if cached is not None:
                    logger.debug(f"Cache hit for {resolved}")
                    return AnalysisResult(report=cached, from_cache=True)

            engine = HistoryEngine(self.git, options)
            result = engine.generate(resolved, project_name=name)

            if self.cache is not None:
                try:
                    self.cache.put(key, result.report)
                except OSError as e:
                    message = f"could not write cache entry: {e}"
                    logger.warning(message)
                    result = replace(result, warnings=result.warnings + (message,))
            return result

    def _scan_one(self, path: str, root: str) -> AnalysisResult:
        try:
            repo = self.analyzer.analyze(path, root=root)
            result = self.get_report(repo.path, name=repo.name)
        except NotAVersionControlledDirectory as e:
            logger.warning(str(e))
            return AnalysisResult(report=None, warnings=(str(e),))
        return replace(result, repository=repo)

    def scan(self, root: str, walker: Optional[DirectoryWalker] = None) -> Iterator[AnalysisResult]:
        """
        Discover, classify and report every project under root.

        Projects are analyzed concurrently; results are yielded as they
        complete. One failing project never aborts the scan.

        Args:
            root: Directory to scan
            walker: Configured walker (defaults if None)

        Yields:
            AnalysisResult per discovered project
        """
        walker = walker or DirectoryWalker(git_client=self.git)
        candidates = list(walker.discover(root))
        logger.info(f"Found {len(candidates)} candidate project(s) under {root}")
        if not candidates:
            return

        with ThreadPoolExecutor(max_workers=self.max_concurrent_scans) as executor:
            futures = {
                executor.submit(self._scan_one, path, root): path
                for path in candidates
            }
            for future in as_completed(futures):
                yield future.result()

    def clear_cache(self) -> int:
        """Remove all cached reports. Returns the number removed."""
        if self.cache is None:
            return 0
        return self.cache.clear()
