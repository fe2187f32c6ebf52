"""
Result wrappers returned by the report layer.

A CacheEntry is what the report cache stores; an AnalysisResult is what
callers get back from ReportService. Warnings live here rather than in the
Report so the Report JSON stays exactly the dashboard shape.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .history import Report
from .repository import Repository


@dataclass(frozen=True)
class CacheEntry:
    """A cached Report and the POSIX time it was written."""
    key: str
    payload: Report
    written_at: float


@dataclass(frozen=True)
class AnalysisResult:
    """
    Outcome of analyzing one project.

    report is None when the project could not be analyzed at all (for
    example the directory lost its .git between discovery and analysis);
    warnings then says why.
    """
    report: Optional[Report]
    warnings: Tuple[str, ...] = ()
    from_cache: bool = False
    repository: Optional[Repository] = None

    @property
    def ok(self) -> bool:
        return self.report is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'repository': self.repository.to_dict() if self.repository else None,
            'report': self.report.to_dict() if self.report else None,
            'warnings': list(self.warnings),
            'fromCache': self.from_cache,
        }
