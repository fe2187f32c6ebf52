"""
Parsers for the fixed git query forms issued by GitClient.

Each function turns the raw text of exactly one query form into values.
Fields are '|'-delimited in the order fixed by the format constants in
gitportfolio.infra.git_client. Free-text fields (commit subjects) are
always last, or next to last with only a space-separated list after them,
so a subject containing '|' is recovered by splitting a bounded number of
times from the left and, where needed, once from the right.

Parsers never raise on malformed lines: such lines are skipped and logged.
"""

from collections import Counter
from datetime import datetime
from typing import Dict, List, NamedTuple, Optional, Tuple
import logging
import re

from .domain import Commit, Contributor, FileChange, LastCommit
from .domain.history import parse_timestamp

logger = logging.getLogger(__name__)


_SHORTLOG_RE = re.compile(r'^\s*(\d+)\s+(.+)$')
_INSERTIONS_RE = re.compile(r'(\d+) insertions?\(\+\)')
_DELETIONS_RE = re.compile(r'(\d+) deletions?\(-\)')

_HOSTED_REMOTE_PATTERNS = (
    # git@github.com:owner/repo.git
    re.compile(r'^[\w.-]+@(github\.com|gitlab\.com|bitbucket\.org):([^/]+)/(.+?)(?:\.git)?/?$'),
    # ssh://git@gitlab.com/owner/repo.git (optionally with a port)
    re.compile(r'^ssh://(?:[^@/]+@)?(github\.com|gitlab\.com|bitbucket\.org)(?::\d+)?/([^/]+)/(.+?)(?:\.git)?/?$'),
    # https://[user@]bitbucket.org/owner/repo.git
    re.compile(r'^(?:https?|git)://(?:[^@/]+@)?(github\.com|gitlab\.com|bitbucket\.org)/([^/]+)/(.+?)(?:\.git)?/?$'),
)

LOCAL_PREFIX = 'refs/heads/'
REMOTE_PREFIX = 'refs/remotes/'


class FirstCommit(NamedTuple):
    date: str
    author: str
    subject: str


class LastBranchCommit(NamedTuple):
    date: str
    subject: str


class ShortStat(NamedTuple):
    date: Optional[str]
    insertions: int
    deletions: int


class HostedRemote(NamedTuple):
    host: str
    owner: str
    repo: str


def parse_git_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a `%aI` author date; None when empty or unparseable."""
    return parse_timestamp(value)


def parse_lines(text: str) -> List[str]:
    """Non-empty, stripped lines."""
    return [line.strip() for line in (text or '').splitlines() if line.strip()]


def parse_count(text: str) -> int:
    """
    Parse the single integer printed by `rev-list --count`.

    Returns 0 (and logs) when the output is not a number.
    """
    value = (text or '').strip()
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Unparseable commit count: {value!r}")
        return 0


def parse_branch_refs(text: str) -> Dict[str, str]:
    """
    Parse `branch -a --format=%(refname)` into short name -> ref to query.

    refs/heads/<name> and refs/remotes/<remote>/<name> collapse to <name>.
    Symbolic remote HEADs are dropped. When a name exists both locally and
    as a remote-tracking branch, the local ref wins but the name keeps the
    position where it was first seen.
    """
    branches: Dict[str, str] = {}
    local: set = set()

    for line in parse_lines(text):
        if line.startswith(LOCAL_PREFIX):
            name = line[len(LOCAL_PREFIX):]
            if not name:
                continue
            branches[name] = line
            local.add(name)
        elif line.startswith(REMOTE_PREFIX):
            remainder = line[len(REMOTE_PREFIX):]
            if '/' not in remainder:
                logger.warning(f"Unparseable remote ref: {line!r}")
                continue
            name = remainder.split('/', 1)[1]
            if not name or name == 'HEAD':
                continue
            if name not in local and name not in branches:
                branches[name] = line
        else:
            # e.g. "(HEAD detached at 1a2b3c4)"
            logger.debug(f"Skipping non-branch ref line: {line!r}")

    return branches


def parse_first_commit(text: str) -> Optional[FirstCommit]:
    """
    First line of an oldest-first `%aI|%an|%s` log.

    The subject is everything after the second '|'.
    """
    lines = parse_lines(text)
    if not lines:
        return None
    parts = lines[0].split('|', 2)
    if len(parts) != 3:
        logger.warning(f"Unparseable branch first-commit line: {lines[0]!r}")
        return None
    return FirstCommit(date=parts[0], author=parts[1], subject=parts[2])


def parse_last_commit(text: str) -> Optional[LastBranchCommit]:
    """`%aI|%s` of a branch tip; the subject is everything after the first '|'."""
    lines = parse_lines(text)
    if not lines:
        return None
    parts = lines[0].split('|', 1)
    if len(parts) != 2:
        logger.warning(f"Unparseable branch last-commit line: {lines[0]!r}")
        return None
    return LastBranchCommit(date=parts[0], subject=parts[1])


def parse_commit_log(text: str) -> List[Commit]:
    """
    Parse `%H|%aI|%an|%ae|%s|%P` lines, newest first.

    Four fields are split off the left; the remainder is split once from the
    right into subject and the space-separated parent list (empty for root
    commits).
    """
    commits: List[Commit] = []
    for line in (text or '').splitlines():
        if not line.strip():
            continue
        head = line.split('|', 4)
        if len(head) != 5 or '|' not in head[4]:
            logger.warning(f"Skipping unparseable commit line: {line!r}")
            continue
        commit_hash, date, author, email, rest = head
        subject, parents = rest.rsplit('|', 1)
        commit_hash = commit_hash.strip()
        if not commit_hash:
            logger.warning(f"Skipping commit line without hash: {line!r}")
            continue
        commits.append(Commit(
            hash=commit_hash,
            date=date.strip(),
            author=author,
            email=email,
            subject=subject,
            parents=tuple(parents.split()),
        ))
    return commits


def parse_file_stat(text: str) -> List[FileChange]:
    """
    Parse `show --stat --format=` output.

    Per-file lines look like " path/to/file.py | 12 +++---"; the summary
    line (" 3 files changed, ...") has no '|' and is ignored.
    """
    changes: List[FileChange] = []
    for line in (text or '').splitlines():
        if '|' not in line:
            continue
        file_name, stat = line.rsplit('|', 1)
        file_name = file_name.strip()
        if not file_name:
            continue
        changes.append(FileChange(file_name=file_name, changes=stat.strip()))
    return changes


def parse_shortlog(text: str) -> List[Contributor]:
    """
    Parse `shortlog -sn` output ("   42\tJane Doe") into contributors.

    Sorted by commit count, descending; equal counts keep git's order.
    Percentages are left at zero; see assign_percentages().
    """
    contributors: List[Contributor] = []
    for line in parse_lines(text):
        match = _SHORTLOG_RE.match(line)
        if not match:
            logger.warning(f"Skipping unparseable shortlog line: {line!r}")
            continue
        contributors.append(Contributor(name=match.group(2).strip(), commits=int(match.group(1))))
    contributors.sort(key=lambda c: -c.commits)
    return contributors


def parse_shortstat(text: str) -> ShortStat:
    """
    Parse `show --shortstat --format=%aI <hash>`.

    The first line is the author date; the summary line reads
    "N files changed, X insertions(+), Y deletions(-)" with either count
    omitted when zero.
    """
    lines = parse_lines(text)
    if not lines:
        return ShortStat(date=None, insertions=0, deletions=0)

    date: Optional[str] = None
    summary = ''
    for line in lines:
        if 'changed' in line and ('file' in line):
            summary = line
        elif date is None:
            date = line

    insertions = _INSERTIONS_RE.search(summary)
    deletions = _DELETIONS_RE.search(summary)
    return ShortStat(
        date=date,
        insertions=int(insertions.group(1)) if insertions else 0,
        deletions=int(deletions.group(1)) if deletions else 0,
    )


def count_changed_files(text: str, limit: Optional[int] = None) -> List[Tuple[str, int]]:
    """
    Count occurrences of each path in `log --name-only --format=` output.

    Returns (path, count) pairs, most changed first; ties sorted by path.
    """
    counts = Counter(parse_lines(text))
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    if limit is not None:
        ranked = ranked[:limit]
    return ranked


def parse_last_commit_summary(text: str) -> Optional[LastCommit]:
    """`%H|%an|%aI|%s` of HEAD, with the hash shortened to seven characters."""
    lines = parse_lines(text)
    if not lines:
        return None
    parts = lines[0].split('|', 3)
    if len(parts) != 4:
        logger.warning(f"Unparseable last-commit line: {lines[0]!r}")
        return None
    commit_hash, author, date, message = parts
    return LastCommit(hash=commit_hash[:7], author=author, date=date, message=message)


def parse_hosted_remote(url: Optional[str]) -> Optional[HostedRemote]:
    """
    Recognize GitHub, GitLab and Bitbucket remotes.

    Handles SSH (git@host:owner/repo.git), ssh:// and HTTPS URLs.

    Returns:
        HostedRemote(host, owner, repo) or None for unrecognized URLs
    """
    if not url:
        return None
    url = url.strip()
    for pattern in _HOSTED_REMOTE_PATTERNS:
        match = pattern.match(url)
        if match:
            host, owner, repo = match.groups()
            return HostedRemote(host=host, owner=owner, repo=repo)
    return None
