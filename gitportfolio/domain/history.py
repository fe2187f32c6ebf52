"""
History domain objects for gitportfolio.

These are the building blocks of a Report: commits, branch records,
contributors, lines-of-code snapshots and timeline buckets. They are pure
values with no I/O. `to_dict()` produces the camelCase JSON shape consumed
by dashboards; `from_dict()` rebuilds objects from that shape (used when
reading cached reports) and raises KeyError/TypeError/ValueError on
malformed input.

Timestamps are kept as the ISO-8601 strings git printed (`%aI`).
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple
import json


ACTIVE_BRANCH_DAYS = 30

DAY_NAMES = ('Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday')


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a git ISO-8601 timestamp into an aware datetime.

    Accepts strict ISO (`%aI`, "2024-01-15T10:30:00+01:00") and git's
    human ISO (`%ai`, "2024-01-15 10:30:00 +0100"). Naive values are
    taken as UTC.

    Returns:
        datetime, or None if value is empty or unparseable
    """
    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    try:
        parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        try:
            parsed = datetime.strptime(text, '%Y-%m-%d %H:%M:%S %z')
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_branch_active(
    last_commit_date: Optional[str],
    now: Optional[datetime] = None,
    active_days: int = ACTIVE_BRANCH_DAYS
) -> bool:
    """A branch is active if its last commit is at most active_days old."""
    last = parse_timestamp(last_commit_date)
    if last is None:
        return False
    now = now or datetime.now(timezone.utc)
    return now - last <= timedelta(days=active_days)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"expected string, got {type(value).__name__}")
    return value


# =============================================================================
# COMMITS
# =============================================================================

@dataclass(frozen=True)
class FileChange:
    """One line of a commit's diff-stat: path and change descriptor."""
    file_name: str
    changes: str

    def to_dict(self) -> Dict[str, Any]:
        return {'fileName': self.file_name, 'changes': self.changes}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileChange':
        return cls(file_name=str(data['fileName']), changes=str(data['changes']))


@dataclass(frozen=True)
class Commit:
    """A commit with its parents and changed files."""
    hash: str
    date: str
    author: str
    email: str
    subject: str
    parents: Tuple[str, ...] = ()
    files_changed: Tuple[FileChange, ...] = ()

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    def with_files(self, files: Sequence[FileChange]) -> 'Commit':
        return replace(self, files_changed=tuple(files))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hash': self.hash,
            'date': self.date,
            'author': self.author,
            'email': self.email,
            'subject': self.subject,
            'parents': list(self.parents),
            'isMerge': self.is_merge,
            'filesChanged': [f.to_dict() for f in self.files_changed],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Commit':
        return cls(
            hash=str(data['hash']),
            date=str(data['date']),
            author=str(data['author']),
            email=str(data['email']),
            subject=str(data['subject']),
            parents=tuple(str(p) for p in data['parents']),
            files_changed=tuple(FileChange.from_dict(f) for f in data['filesChanged']),
        )


# =============================================================================
# BRANCHES
# =============================================================================

@dataclass(frozen=True)
class BranchRecord:
    """
    Evolution of one branch.

    is_active is not stored: it is recomputed from last_commit_date every
    time it is read, so a cached record never carries a stale flag.
    """
    name: str
    created_at: Optional[str] = None
    author: Optional[str] = None
    first_commit_message: Optional[str] = None
    commit_count: int = 0
    last_commit_date: Optional[str] = None
    last_commit_message: Optional[str] = None
    merged_into: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return is_branch_active(self.last_commit_date)

    def is_active_at(self, now: datetime, active_days: int = ACTIVE_BRANCH_DAYS) -> bool:
        return is_branch_active(self.last_commit_date, now, active_days)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'createdAt': self.created_at,
            'author': self.author,
            'firstCommitMessage': self.first_commit_message,
            'commitCount': self.commit_count,
            'lastCommitDate': self.last_commit_date,
            'lastCommitMessage': self.last_commit_message,
            'mergedInto': self.merged_into,
            'isActive': self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BranchRecord':
        return cls(
            name=str(data['name']),
            created_at=_optional_str(data.get('createdAt')),
            author=_optional_str(data.get('author')),
            first_commit_message=_optional_str(data.get('firstCommitMessage')),
            commit_count=int(data['commitCount']),
            last_commit_date=_optional_str(data.get('lastCommitDate')),
            last_commit_message=_optional_str(data.get('lastCommitMessage')),
            merged_into=_optional_str(data.get('mergedInto')),
        )


@dataclass(frozen=True)
class BranchEvolution:
    """
    Analyzed branches plus aggregate counts over the final branch set.

    Activity is judged against evaluated_at with a window of active_days.
    With no evaluated_at (a report read back from the cache) the current
    time is used. Per-branch flags and the active count always come from
    the same instant.
    """
    branches: Dict[str, BranchRecord] = field(default_factory=dict)
    total_branches: int = 0
    merged_branches: int = 0
    active_days: int = ACTIVE_BRANCH_DAYS
    evaluated_at: Optional[datetime] = None

    @classmethod
    def from_records(
        cls,
        records: Sequence[BranchRecord],
        total_branches: int,
        now: Optional[datetime] = None,
        active_days: int = ACTIVE_BRANCH_DAYS
    ) -> 'BranchEvolution':
        branches = {r.name: r for r in records}
        return cls(
            branches=branches,
            total_branches=total_branches,
            merged_branches=sum(1 for r in branches.values() if r.merged_into),
            active_days=active_days,
            evaluated_at=now,
        )

    def _now(self) -> datetime:
        return self.evaluated_at or datetime.now(timezone.utc)

    def active_flags(self, now: Optional[datetime] = None) -> Dict[str, bool]:
        now = now or self._now()
        return {name: r.is_active_at(now, self.active_days) for name, r in self.branches.items()}

    @property
    def active_branches(self) -> int:
        return sum(self.active_flags().values())

    def to_dict(self) -> Dict[str, Any]:
        flags = self.active_flags()
        branches = {}
        for name, record in self.branches.items():
            data = record.to_dict()
            data['isActive'] = flags[name]
            branches[name] = data
        return {
            'branches': branches,
            'totalBranches': self.total_branches,
            'activeBranches': sum(flags.values()),
            'mergedBranches': self.merged_branches,
            'activeDays': self.active_days,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BranchEvolution':
        records = [BranchRecord.from_dict(r) for r in data['branches'].values()]
        active_days = int(data.get('activeDays', ACTIVE_BRANCH_DAYS))
        if active_days < 0:
            raise ValueError(f"activeDays must be >= 0, got {active_days}")
        return cls.from_records(records, total_branches=int(data['totalBranches']), active_days=active_days)


# =============================================================================
# CONTRIBUTORS
# =============================================================================

@dataclass(frozen=True)
class Contributor:
    """
    Commit statistics for one author.

    first_commit, last_commit and active_period are only resolved for the
    top contributors; the rest keep None.
    """
    name: str
    commits: int
    percentage: float = 0.0
    first_commit: Optional[str] = None
    last_commit: Optional[str] = None
    active_period: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'commits': self.commits,
            'percentage': self.percentage,
            'firstCommit': self.first_commit,
            'lastCommit': self.last_commit,
            'activePeriod': self.active_period,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Contributor':
        return cls(
            name=str(data['name']),
            commits=int(data['commits']),
            percentage=float(data['percentage']),
            first_commit=_optional_str(data.get('firstCommit')),
            last_commit=_optional_str(data.get('lastCommit')),
            active_period=_optional_str(data.get('activePeriod')),
        )


def assign_percentages(contributors: Sequence[Contributor]) -> List[Contributor]:
    """
    Recompute every contributor's share of the total commit count.

    Must be called on the complete contributor set; percentages are rounded
    to one decimal place.
    """
    total = sum(c.commits for c in contributors)
    if total == 0:
        return [replace(c, percentage=0.0) for c in contributors]
    return [replace(c, percentage=round(c.commits / total * 100, 1)) for c in contributors]


# =============================================================================
# LINES OF CODE
# =============================================================================

@dataclass(frozen=True)
class LOCSnapshot:
    """Point-in-time line counts by file type."""
    by_type: Dict[str, Dict[str, int]] = field(default_factory=dict)
    total: int = 0
    file_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'byType': {k: dict(v) for k, v in self.by_type.items()},
            'total': self.total,
            'fileCount': self.file_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LOCSnapshot':
        return cls(
            by_type={
                str(k): {'files': int(v['files']), 'lines': int(v['lines'])}
                for k, v in data['byType'].items()
            },
            total=int(data['total']),
            file_count=int(data['fileCount']),
        )


@dataclass(frozen=True)
class LOCDelta:
    """Insertions and deletions of one sampled commit."""
    commit: str
    date: Optional[str]
    insertions: int = 0
    deletions: int = 0

    @property
    def net_change(self) -> int:
        return self.insertions - self.deletions

    def to_dict(self) -> Dict[str, Any]:
        return {
            'commit': self.commit,
            'date': self.date,
            'insertions': self.insertions,
            'deletions': self.deletions,
            'netChange': self.net_change,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LOCDelta':
        return cls(
            commit=str(data['commit']),
            date=_optional_str(data.get('date')),
            insertions=int(data['insertions']),
            deletions=int(data['deletions']),
        )


@dataclass(frozen=True)
class LOCStatistics:
    """Current LOC snapshot plus a sampled trend over recent commits."""
    current: LOCSnapshot = field(default_factory=LOCSnapshot)
    history: Tuple[LOCDelta, ...] = ()

    @property
    def total_insertions(self) -> int:
        return sum(d.insertions for d in self.history)

    @property
    def total_deletions(self) -> int:
        return sum(d.deletions for d in self.history)

    @property
    def net_change(self) -> int:
        return sum(d.net_change for d in self.history)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'current': self.current.to_dict(),
            'history': [d.to_dict() for d in self.history],
            'totalInsertions': self.total_insertions,
            'totalDeletions': self.total_deletions,
            'netChange': self.net_change,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LOCStatistics':
        return cls(
            current=LOCSnapshot.from_dict(data['current']),
            history=tuple(LOCDelta.from_dict(d) for d in data['history']),
        )


# =============================================================================
# SUMMARY
# =============================================================================

@dataclass(frozen=True)
class RepositoryAge:
    """Span between first and last commit."""
    days: int
    months: int
    years: int

    @classmethod
    def between(cls, first: Optional[str], last: Optional[str]) -> Optional['RepositoryAge']:
        start = parse_timestamp(first)
        end = parse_timestamp(last)
        if start is None or end is None:
            return None
        days = (end - start).days
        return cls(days=days, months=days // 30, years=days // 365)

    def to_dict(self) -> Dict[str, Any]:
        return {'days': self.days, 'months': self.months, 'years': self.years}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RepositoryAge':
        return cls(days=int(data['days']), months=int(data['months']), years=int(data['years']))


@dataclass(frozen=True)
class RepositorySummary:
    """Repository-wide totals."""
    total_commits: int = 0
    total_branches: int = 0
    first_commit_date: Optional[str] = None
    last_commit_date: Optional[str] = None
    current_branch: Optional[str] = None
    remote_url: Optional[str] = None
    repository_age: Optional[RepositoryAge] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalCommits': self.total_commits,
            'totalBranches': self.total_branches,
            'firstCommitDate': self.first_commit_date,
            'lastCommitDate': self.last_commit_date,
            'currentBranch': self.current_branch,
            'remoteUrl': self.remote_url,
            'repositoryAge': self.repository_age.to_dict() if self.repository_age else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RepositorySummary':
        age = data.get('repositoryAge')
        return cls(
            total_commits=int(data['totalCommits']),
            total_branches=int(data['totalBranches']),
            first_commit_date=_optional_str(data.get('firstCommitDate')),
            last_commit_date=_optional_str(data.get('lastCommitDate')),
            current_branch=_optional_str(data.get('currentBranch')),
            remote_url=_optional_str(data.get('remoteUrl')),
            repository_age=RepositoryAge.from_dict(age) if age else None,
        )


# =============================================================================
# FILE CHANGES
# =============================================================================

@dataclass(frozen=True)
class FileChangeCount:
    """How many commits touched one file."""
    file_name: str
    change_count: int
    file_type: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'fileName': self.file_name,
            'changeCount': self.change_count,
            'fileType': self.file_type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileChangeCount':
        return cls(
            file_name=str(data['fileName']),
            change_count=int(data['changeCount']),
            file_type=str(data['fileType']),
        )


@dataclass(frozen=True)
class FileChangeStats:
    """Most frequently changed files, and the same grouped by file type."""
    most_changed: Tuple[FileChangeCount, ...] = ()

    @property
    def changes_by_type(self) -> Dict[str, Dict[str, int]]:
        grouped: Dict[str, Dict[str, int]] = {}
        for change in self.most_changed:
            bucket = grouped.setdefault(change.file_type, {'files': 0, 'changes': 0})
            bucket['files'] += 1
            bucket['changes'] += change.change_count
        return grouped

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mostChanged': [c.to_dict() for c in self.most_changed],
            'changesByType': self.changes_by_type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileChangeStats':
        return cls(most_changed=tuple(FileChangeCount.from_dict(c) for c in data['mostChanged']))


# =============================================================================
# TIMELINE
# =============================================================================

def _buckets(data: Dict[str, Any], size: int) -> Dict[int, int]:
    """Integer-keyed buckets; every key must lie in range(size)."""
    buckets = {int(k): int(v) for k, v in data.items()}
    for key in buckets:
        if not 0 <= key < size:
            raise ValueError(f"bucket {key} outside 0-{size - 1}")
    return buckets


def _peak(buckets: Dict[Any, int]) -> Optional[Tuple[Any, int]]:
    """Highest-count bucket; ties go to the lowest key."""
    if not buckets:
        return None
    return min(buckets.items(), key=lambda item: (-item[1], item[0]))


@dataclass(frozen=True)
class TimelineAnalysis:
    """
    Commit counts bucketed by month ("YYYY-MM"), weekday (0 = Sunday) and
    hour of day, with the peak bucket of each dimension derived on demand.
    """
    commits_by_month: Dict[str, int] = field(default_factory=dict)
    commits_by_day: Dict[int, int] = field(default_factory=dict)
    commits_by_hour: Dict[int, int] = field(default_factory=dict)

    @property
    def peak_activity(self) -> Dict[str, Optional[Dict[str, Any]]]:
        month = _peak(self.commits_by_month)
        day = _peak(self.commits_by_day)
        hour = _peak(self.commits_by_hour)
        return {
            'month': {'period': month[0], 'commits': month[1]} if month else None,
            'day': {'day': DAY_NAMES[day[0]], 'commits': day[1]} if day else None,
            'hour': {'hour': hour[0], 'commits': hour[1]} if hour else None,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'commitsByMonth': dict(self.commits_by_month),
            'commitsByDay': {str(k): v for k, v in self.commits_by_day.items()},
            'commitsByHour': {str(k): v for k, v in self.commits_by_hour.items()},
            'peakActivity': self.peak_activity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TimelineAnalysis':
        return cls(
            commits_by_month={str(k): int(v) for k, v in data['commitsByMonth'].items()},
            commits_by_day=_buckets(data['commitsByDay'], len(DAY_NAMES)),
            commits_by_hour=_buckets(data['commitsByHour'], 24),
        )


# =============================================================================
# REPORT
# =============================================================================

@dataclass(frozen=True)
class Report:
    """
    Complete history analysis of one repository.

    The JSON shape (top-level keys and nesting) is consumed by dashboards
    and must stay stable.
    """
    project_name: str
    project_path: str
    generated_at: str
    summary: RepositorySummary = field(default_factory=RepositorySummary)
    branch_evolution: BranchEvolution = field(default_factory=BranchEvolution)
    commit_history: Tuple[Commit, ...] = ()
    contributors: Tuple[Contributor, ...] = ()
    loc_statistics: LOCStatistics = field(default_factory=LOCStatistics)
    mermaid_diagrams: Dict[str, str] = field(default_factory=dict)
    file_changes: FileChangeStats = field(default_factory=FileChangeStats)
    timeline_analysis: TimelineAnalysis = field(default_factory=TimelineAnalysis)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'projectName': self.project_name,
            'projectPath': self.project_path,
            'generatedAt': self.generated_at,
            'summary': self.summary.to_dict(),
            'branchEvolution': self.branch_evolution.to_dict(),
            'commitHistory': [c.to_dict() for c in self.commit_history],
            'contributors': [c.to_dict() for c in self.contributors],
            'locStatistics': self.loc_statistics.to_dict(),
            'mermaidDiagrams': dict(self.mermaid_diagrams),
            'fileChanges': self.file_changes.to_dict(),
            'timelineAnalysis': self.timeline_analysis.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Report':
        if not isinstance(data, dict):
            raise TypeError("report must be a JSON object")
        diagrams = data['mermaidDiagrams']
        if not isinstance(diagrams, dict):
            raise TypeError("mermaidDiagrams must be an object")
        return cls(
            project_name=str(data['projectName']),
            project_path=str(data['projectPath']),
            generated_at=str(data['generatedAt']),
            summary=RepositorySummary.from_dict(data['summary']),
            branch_evolution=BranchEvolution.from_dict(data['branchEvolution']),
            commit_history=tuple(Commit.from_dict(c) for c in data['commitHistory']),
            contributors=tuple(Contributor.from_dict(c) for c in data['contributors']),
            loc_statistics=LOCStatistics.from_dict(data['locStatistics']),
            mermaid_diagrams={str(k): str(v) for k, v in diagrams.items()},
            file_changes=FileChangeStats.from_dict(data['fileChanges']),
            timeline_analysis=TimelineAnalysis.from_dict(data['timelineAnalysis']),
        )

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> 'Report':
        return cls.from_dict(json.loads(text))
