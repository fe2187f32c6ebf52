"""
Domain layer for gitportfolio.

Contains pure domain objects with no I/O or side effects:
- Repository: A discovered git project with classification markers
- Report: Complete history analysis of one project, and its parts
- AnalysisResult / CacheEntry: Wrappers used by the report layer

These objects are immutable and provide serialization methods for
JSON/JSONL output.
"""

from .repository import Repository, LastCommit, DiscoverySummary
from .history import (
    Report,
    RepositorySummary,
    RepositoryAge,
    BranchRecord,
    BranchEvolution,
    Commit,
    FileChange,
    Contributor,
    LOCSnapshot,
    LOCDelta,
    LOCStatistics,
    FileChangeCount,
    FileChangeStats,
    TimelineAnalysis,
    assign_percentages,
    is_branch_active,
    parse_timestamp,
)
from .result import AnalysisResult, CacheEntry

__all__ = [
    'Repository',
    'LastCommit',
    'DiscoverySummary',
    'Report',
    'RepositorySummary',
    'RepositoryAge',
    'BranchRecord',
    'BranchEvolution',
    'Commit',
    'FileChange',
    'Contributor',
    'LOCSnapshot',
    'LOCDelta',
    'LOCStatistics',
    'FileChangeCount',
    'FileChangeStats',
    'TimelineAnalysis',
    'assign_percentages',
    'is_branch_active',
    'parse_timestamp',
    'AnalysisResult',
    'CacheEntry',
]
