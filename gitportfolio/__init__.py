"""
gitportfolio - Git repository discovery and history analysis.

gitportfolio walks a directory tree, finds git projects, classifies them,
and builds history reports (branch evolution, commits, contributors, lines
of code, activity timeline and Mermaid diagram source) behind a TTL-bound
report cache.

Quick Start:
    import gitportfolio

    gp = gitportfolio.GitPortfolio()

    for repo in gp.discover("~/Projects"):
        print(repo.name, repo.type)

    result = gp.report("~/Projects/site")
    print(result.report.summary.total_commits)

Domain Objects:
    Repository - Discovered git project with classification markers
    Report - Complete history analysis of one project
    AnalysisResult - Report plus warnings and cache provenance

Services:
    DirectoryWalker - Bounded project discovery
    RepositoryAnalyzer - Project classification
    HistoryEngine - Report generation
    ReportCache / ReportService - Cached reports and portfolio scans
"""

__version__ = "0.1.0"

# High-level API
from .api import GitPortfolio

# Domain objects
from .domain import (
    Repository,
    DiscoverySummary,
    Report,
    BranchRecord,
    BranchEvolution,
    Commit,
    Contributor,
    AnalysisResult,
)

# Services (for advanced use)
from .services import (
    AnalysisOptions,
    DirectoryWalker,
    HistoryEngine,
    ReportCache,
    ReportService,
    RepositoryAnalyzer,
    make_cache_key,
)

# Errors
from .errors import (
    GitPortfolioError,
    VcsCommandFailed,
    NotAVersionControlledDirectory,
    CacheCorrupt,
)

# Configuration
from .config import load_config, save_config

__all__ = [
    # Version
    "__version__",
    # High-level API
    "GitPortfolio",
    # Domain objects
    "Repository",
    "DiscoverySummary",
    "Report",
    "BranchRecord",
    "BranchEvolution",
    "Commit",
    "Contributor",
    "AnalysisResult",
    # Services
    "AnalysisOptions",
    "DirectoryWalker",
    "HistoryEngine",
    "ReportCache",
    "ReportService",
    "RepositoryAnalyzer",
    "make_cache_key",
    # Errors
    "GitPortfolioError",
    "VcsCommandFailed",
    "NotAVersionControlledDirectory",
    "CacheCorrupt",
    # Configuration
    "load_config",
    "save_config",
]
