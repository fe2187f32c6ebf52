"""
Service layer for gitportfolio.

Contains logic that orchestrates domain objects and infrastructure:
- DirectoryWalker: Bounded search for git projects
- RepositoryAnalyzer: Project classification
- HistoryEngine: Report generation for one repository
- ReportCache: TTL-bound report cache
- ReportService: Cached reports and portfolio scans

Services are the primary API for the CLI and for embedding applications.
"""

from .walker import DirectoryWalker, DEFAULT_EXCLUDES
from .repository_service import RepositoryAnalyzer
from .history_service import AnalysisOptions, HistoryEngine
from .report_cache import ReportCache, make_cache_key
from .report_service import ReportService

__all__ = [
    'DirectoryWalker',
    'DEFAULT_EXCLUDES',
    'RepositoryAnalyzer',
    'AnalysisOptions',
    'HistoryEngine',
    'ReportCache',
    'make_cache_key',
    'ReportService',
]
