"""
History analysis service for gitportfolio.

HistoryEngine runs the fixed set of git queries against one repository and
assembles a Report. Analysis degrades instead of failing: each section runs
behind a guard that turns a git, parse or filesystem error into that
section's empty default plus a warning, so a repository where `shortlog`
breaks still gets its branches, commits and LOC statistics.
"""

from collections import Counter
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, TypeVar
from pathlib import Path
import logging
import os

from ..diagrams import generate_diagrams
from ..domain import (
    AnalysisResult,
    BranchEvolution,
    BranchRecord,
    Commit,
    Contributor,
    FileChangeCount,
    FileChangeStats,
    LOCDelta,
    LOCSnapshot,
    LOCStatistics,
    Report,
    RepositoryAge,
    RepositorySummary,
    TimelineAnalysis,
    assign_percentages,
)
from ..errors import NotAVersionControlledDirectory, VcsCommandFailed
from ..infra import GitClient
from ..parsers import (
    count_changed_files,
    parse_branch_refs,
    parse_commit_log,
    parse_count,
    parse_file_stat,
    parse_first_commit,
    parse_git_date,
    parse_last_commit,
    parse_lines,
    parse_shortlog,
    parse_shortstat,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


# Extension -> display name used for LOC and file-change grouping
FILE_TYPES = {
    '.js': 'JavaScript',
    '.ts': 'TypeScript',
    '.jsx': 'React',
    '.tsx': 'React TypeScript',
    '.py': 'Python',
    '.go': 'Go',
    '.rs': 'Rust',
    '.java': 'Java',
    '.c': 'C',
    '.cpp': 'C++',
    '.css': 'CSS',
    '.html': 'HTML',
    '.md': 'Markdown',
    '.json': 'JSON',
    '.yml': 'YAML',
    '.yaml': 'YAML',
    '.xml': 'XML',
    '.sh': 'Shell',
    '.sql': 'SQL',
}


def get_file_type(file_name: str) -> str:
    """Classify a path by its extension; unknown extensions are 'Other'."""
    extension = os.path.splitext(file_name)[1].lower()
    return FILE_TYPES.get(extension, 'Other')


@dataclass(frozen=True)
class AnalysisOptions:
    """Knobs that shape a Report. Part of the cache key."""
    max_commits: int = 100
    max_branches: int = 20
    top_contributors: int = 10
    loc_file_limit: int = 100
    loc_sample_commits: int = 5
    most_changed_files: int = 20
    default_branch: str = "main"
    active_days: int = 30
    remote: str = "origin"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> 'AnalysisOptions':
        """Build options from the `history` and `git` configuration sections."""
        config = config or {}
        history = config.get('history', {}) or {}
        git = config.get('git', {}) or {}
        defaults = cls()
        return cls(
            max_commits=int(history.get('max_commits', defaults.max_commits)),
            max_branches=int(history.get('max_branches', defaults.max_branches)),
            top_contributors=int(history.get('top_contributors', defaults.top_contributors)),
            loc_file_limit=int(history.get('loc_file_limit', defaults.loc_file_limit)),
            loc_sample_commits=int(history.get('loc_sample_commits', defaults.loc_sample_commits)),
            most_changed_files=int(history.get('most_changed_files', defaults.most_changed_files)),
            default_branch=str(git.get('default_branch', defaults.default_branch)),
            active_days=int(history.get('active_branch_days', defaults.active_days)),
            remote=str(git.get('remote', defaults.remote)),
        )


def build_timeline(commit_history: Sequence[Commit]) -> TimelineAnalysis:
    """
    Bucket commits by month, weekday (0 = Sunday) and hour.

    Each commit is bucketed in its own recorded UTC offset, so a commit made
    at 23:30 local time counts for hour 23 wherever the report is built.
    """
    months: Counter = Counter()
    days: Counter = Counter()
    hours: Counter = Counter()

    for commit in commit_history:
        when = parse_git_date(commit.date)
        if when is None:
            logger.warning(f"Skipping commit {commit.hash[:7]} with unparseable date {commit.date!r}")
            continue
        months[when.strftime('%Y-%m')] += 1
        days[(when.weekday() + 1) % 7] += 1
        hours[when.hour] += 1

    return TimelineAnalysis(
        commits_by_month=dict(sorted(months.items())),
        commits_by_day=dict(sorted(days.items())),
        commits_by_hour=dict(sorted(hours.items())),
    )


def active_period(first: Optional[str], last: Optional[str]) -> Optional[str]:
    """Whole days between two author dates, as "<n> days"."""
    start = parse_git_date(first)
    end = parse_git_date(last)
    if start is None or end is None:
        return None
    return f"{(end - start).days} days"


class HistoryEngine:
    """
    Builds a Report for one repository.

    Example:
        engine = HistoryEngine(GitClient(), AnalysisOptions(max_commits=50))
        result = engine.generate("/home/user/projects/site")
        print(result.report.summary.total_commits, result.warnings)
    """

    def __init__(
        self,
        git_client: Optional[GitClient] = None,
        options: Optional[AnalysisOptions] = None,
        now: Optional[datetime] = None
    ):
        """
        Initialize HistoryEngine.

        Args:
            git_client: Git client instance (creates default if None)
            options: Analysis options (defaults if None)
            now: Fixed "current time" for generatedAt and branch activity;
                the wall clock is used if None
        """
        self.git = git_client or GitClient()
        self.options = options or AnalysisOptions()
        self.now = now

    def _now(self) -> datetime:
        return self.now or datetime.now(timezone.utc)

    def _guarded(
        self,
        section: str,
        func: Callable[[], T],
        default: T,
        warnings: List[str]
    ) -> T:
        """Run one section; on failure log, record a warning and use default."""
        try:
            return func()
        except (VcsCommandFailed, ValueError, OSError) as e:
            message = f"{section} unavailable: {e}"
            logger.warning(message)
            warnings.append(message)
            return default

    def generate(self, path: str, project_name: Optional[str] = None) -> AnalysisResult:
        """
        Analyze the repository at path.

        Args:
            path: Repository root
            project_name: Display name (directory name if None)

        Returns:
            AnalysisResult with the Report and any section warnings

        Raises:
            NotAVersionControlledDirectory: If path has no .git
        """
        path = str(Path(path).expanduser().resolve())
        if not self.git.is_git_repo(path):
            raise NotAVersionControlledDirectory(path)

        now = self._now()
        warnings: List[str] = []
        logger.info(f"Generating history report for {path}")

        has_commits = self._guarded('commit check', lambda: self.git.has_commits(path), False, warnings)

        summary = self._summary(path, has_commits, warnings)
        branch_evolution = self._guarded(
            'branch evolution',
            lambda: self._branch_evolution(path, now, warnings),
            BranchEvolution(),
            warnings,
        )
        commit_history: List[Commit] = []
        if has_commits:
            commit_history = self._guarded(
                'commit history', lambda: self._commit_history(path, warnings), [], warnings
            )
        contributors = self._guarded(
            'contributors', lambda: self._contributors(path), [], warnings
        )
        loc_statistics = self._guarded(
            'lines of code', lambda: self._loc_statistics(path, has_commits), LOCStatistics(), warnings
        )
        file_changes = FileChangeStats()
        if has_commits:
            file_changes = self._guarded(
                'file changes', lambda: self._file_changes(path), FileChangeStats(), warnings
            )
        timeline = build_timeline(commit_history)
        diagrams = self._guarded(
            'diagrams',
            lambda: generate_diagrams(branch_evolution, commit_history, contributors),
            {},
            warnings,
        )

        report = Report(
            project_name=project_name or Path(path).name,
            project_path=path,
            generated_at=now.isoformat(),
            summary=summary,
            branch_evolution=branch_evolution,
            commit_history=tuple(commit_history),
            contributors=tuple(contributors),
            loc_statistics=loc_statistics,
            mermaid_diagrams=diagrams,
            file_changes=file_changes,
            timeline_analysis=timeline,
        )
        return AnalysisResult(report=report, warnings=tuple(warnings))

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def _summary(self, path: str, has_commits: bool, warnings: List[str]) -> RepositorySummary:
        """Each field degrades on its own."""
        guard = self._guarded

        total_commits = 0
        first_date = last_date = None
        if has_commits:
            total_commits = guard(
                'total commits', lambda: parse_count(self.git.commit_count(path, 'HEAD')), 0, warnings
            )
            first_date = guard(
                'first commit date',
                lambda: next(iter(parse_lines(self.git.first_commit_date(path))), None),
                None,
                warnings,
            )
            last_date = guard(
                'last commit date',
                lambda: next(iter(parse_lines(self.git.last_commit_date(path))), None),
                None,
                warnings,
            )

        total_branches = guard(
            'remote branches', lambda: len(parse_lines(self.git.remote_branches(path))), 0, warnings
        )
        current_branch = guard(
            'current branch', lambda: self.git.current_branch(path).strip() or None, None, warnings
        )
        remote_url = guard(
            'remote url', lambda: self.git.remote_url(path, self.options.remote), None, warnings
        )

        return RepositorySummary(
            total_commits=total_commits,
            total_branches=total_branches,
            first_commit_date=first_date,
            last_commit_date=last_date,
            current_branch=current_branch,
            remote_url=remote_url,
            repository_age=RepositoryAge.between(first_date, last_date),
        )

    def _merged_names(self, path: str, warnings: List[str]) -> Set[str]:
        target = self.options.default_branch
        try:
            return set(parse_branch_refs(self.git.merged_branches(path, target)))
        except VcsCommandFailed as e:
            message = f"merge detection against '{target}' unavailable: {e}"
            logger.warning(message)
            warnings.append(message)
            return set()

    def _branch_evolution(self, path: str, now: datetime, warnings: List[str]) -> BranchEvolution:
        refs = parse_branch_refs(self.git.list_branches(path))
        if not refs:
            return BranchEvolution()

        merged = self._merged_names(path, warnings)
        records: List[BranchRecord] = []
        for name, ref in list(refs.items())[:self.options.max_branches]:
            try:
                records.append(self._branch_record(path, name, ref, merged))
            except VcsCommandFailed as e:
                message = f"branch {name} skipped: {e}"
                logger.warning(message)
                warnings.append(message)

        return BranchEvolution.from_records(
            records,
            total_branches=len(refs),
            now=now,
            active_days=self.options.active_days,
        )

    def _branch_record(self, path: str, name: str, ref: str, merged: Set[str]) -> BranchRecord:
        """
        Evolution of one branch.

        The creation point is the oldest commit reachable only from the
        branch; when the branch has no unique commits (or the default branch
        is missing) it falls back to the oldest reachable commit.
        """
        default_branch = self.options.default_branch
        first = None
        if name != default_branch:
            try:
                first = parse_first_commit(self.git.branch_first_commit(path, ref, exclude=default_branch))
            except VcsCommandFailed as e:
                logger.debug(f"No unique commits for {name}: {e}")
        if first is None:
            first = parse_first_commit(self.git.branch_first_commit(path, ref))

        last = parse_last_commit(self.git.branch_last_commit(path, ref))
        commit_count = parse_count(self.git.commit_count(path, ref))

        return BranchRecord(
            name=name,
            created_at=first.date if first else None,
            author=first.author if first else None,
            first_commit_message=first.subject if first else None,
            commit_count=commit_count,
            last_commit_date=last.date if last else None,
            last_commit_message=last.subject if last else None,
            merged_into=default_branch if name in merged and name != default_branch else None,
        )

    def _commit_history(self, path: str, warnings: List[str]) -> List[Commit]:
        commits = parse_commit_log(self.git.commit_log(path, self.options.max_commits))
        commits = commits[:self.options.max_commits]

        detailed = []
        missing = 0
        for commit in commits:
            try:
                detailed.append(commit.with_files(parse_file_stat(self.git.file_stat(path, commit.hash))))
            except VcsCommandFailed as e:
                logger.debug(f"No file stat for {commit.hash[:7]}: {e}")
                missing += 1
                detailed.append(commit)

        if missing:
            message = f"file stats unavailable for {missing} commit(s)"
            logger.warning(message)
            warnings.append(message)
        return detailed

    def _contributors(self, path: str) -> List[Contributor]:
        contributors = assign_percentages(parse_shortlog(self.git.shortlog(path)))

        enriched = []
        for index, contributor in enumerate(contributors):
            if index < self.options.top_contributors:
                contributor = self._enrich_contributor(path, contributor)
            enriched.append(contributor)
        return enriched

    def _enrich_contributor(self, path: str, contributor: Contributor) -> Contributor:
        """Attach first/last commit dates and active period."""
        try:
            dates = parse_lines(self.git.author_dates(path, contributor.name))
        except VcsCommandFailed as e:
            logger.debug(f"No commit dates for {contributor.name}: {e}")
            return contributor
        if not dates:
            return contributor

        # newest first
        first, last = dates[-1], dates[0]
        return replace(
            contributor,
            first_commit=first,
            last_commit=last,
            active_period=active_period(first, last),
        )

    def _loc_statistics(self, path: str, has_commits: bool) -> LOCStatistics:
        files = parse_lines(self.git.tracked_files(path))

        by_type: Dict[str, Dict[str, int]] = {}
        total = 0
        for file_name in files[:self.options.loc_file_limit]:
            try:
                lines = self.git.line_count(path, file_name)
            except VcsCommandFailed as e:
                logger.debug(f"Skipping unreadable file {file_name}: {e}")
                continue
            bucket = by_type.setdefault(get_file_type(file_name), {'files': 0, 'lines': 0})
            bucket['files'] += 1
            bucket['lines'] += lines
            total += lines

        current = LOCSnapshot(by_type=by_type, total=total, file_count=len(files))

        history: List[LOCDelta] = []
        if has_commits:
            hashes = parse_lines(self.git.recent_hashes(path, self.options.loc_sample_commits))
            for commit_hash in hashes[:self.options.loc_sample_commits]:
                try:
                    stat = parse_shortstat(self.git.commit_shortstat(path, commit_hash))
                except VcsCommandFailed as e:
                    logger.debug(f"Skipping LOC sample {commit_hash[:7]}: {e}")
                    continue
                history.append(LOCDelta(
                    commit=commit_hash,
                    date=stat.date,
                    insertions=stat.insertions,
                    deletions=stat.deletions,
                ))

        return LOCStatistics(current=current, history=tuple(history))

    def _file_changes(self, path: str) -> FileChangeStats:
        ranked = count_changed_files(self.git.changed_file_names(path), self.options.most_changed_files)
        return FileChangeStats(most_changed=tuple(
            FileChangeCount(file_name=name, change_count=count, file_type=get_file_type(name))
            for name, count in ranked
        ))
