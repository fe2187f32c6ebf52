"""Shared fixtures: canned git output for FakeGitClient-driven tests."""

from datetime import datetime, timezone
from typing import Dict, List

import pytest

from gitportfolio.infra import FakeGitClient, MemoryCacheStore


AUTHOR = "Alice Example"
EMAIL = "alice@example.com"
NOW = datetime(2024, 1, 20, 12, 0, tzinfo=timezone.utc)


def make_hash(n: int) -> str:
    return f"{n:040x}"


def commit_line(commit_hash: str, date: str, subject: str, parents: str = "", author: str = AUTHOR) -> str:
    return f"{commit_hash}|{date}|{author}|{EMAIL}|{subject}|{parents}"


def linear_outputs(count: int = 5) -> Dict[str, str]:
    """
    Outputs for a repository with `count` commits on main, one per day
    starting 2024-01-01, all by Alice, each touching README.md.
    """
    hashes: List[str] = [make_hash(i) for i in range(1, count + 1)]
    dates: List[str] = [f"2024-01-{i:02d}T10:00:00+00:00" for i in range(1, count + 1)]

    log_lines = []
    for i in reversed(range(count)):
        parent = hashes[i - 1] if i > 0 else ""
        log_lines.append(commit_line(hashes[i], dates[i], f"Commit {i + 1}", parent))

    outputs = {
        "rev-parse --verify --quiet HEAD": hashes[-1] + "\n",
        "rev-list --count HEAD": f"{count}\n",
        "log --reverse --format=%aI": "\n".join(dates) + "\n",
        "log -1 --format=%aI": dates[-1] + "\n",
        "branch -r": "",
        "branch --show-current": "main\n",
        "branch -a --format=%(refname)": "refs/heads/main\n",
        "branch -a --merged main --format=%(refname)": "refs/heads/main\n",
        "log --reverse --format=%aI|%an|%s refs/heads/main": "".join(
            f"{dates[i]}|{AUTHOR}|Commit {i + 1}\n" for i in range(count)
        ),
        "log -1 --format=%aI|%s refs/heads/main": f"{dates[-1]}|Commit {count}\n",
        "rev-list --count refs/heads/main": f"{count}\n",
        "log --format=%H|%aI|%an|%ae|%s|%P -n 100": "\n".join(log_lines) + "\n",
        "shortlog -sn --all": f"{count:6d}\t{AUTHOR}\n",
        f"log --all --basic-regexp --author=^{AUTHOR} < --format=%aI": "\n".join(reversed(dates)) + "\n",
        "ls-files": "README.md\nmain.py\n",
        f"log --format=%H -n 5": "\n".join(reversed(hashes[-5:])) + "\n",
        "log --name-only --format=": "README.md\n\n" * count,
    }
    for commit_hash, date in zip(hashes, dates):
        outputs[f"show --stat --format= {commit_hash}"] = (
            " README.md | 1 +\n 1 file changed, 1 insertion(+)\n"
        )
        outputs[f"show --shortstat --format=%aI {commit_hash}"] = (
            f"{date}\n\n 1 file changed, 1 insertion(+)\n"
        )
    return outputs


def merged_feature_outputs() -> Dict[str, str]:
    """
    main: 3 commits, then a merge of `feature` (2 commits of its own).
    Both branches appear in `branch --merged main`.
    """
    outputs = linear_outputs(3)
    c1, c2, c3 = make_hash(1), make_hash(2), make_hash(3)
    f1, f2, merge = make_hash(11), make_hash(12), make_hash(20)

    log = [
        commit_line(merge, "2024-01-06T10:00:00+00:00", "Merge branch 'feature'", f"{c3} {f2}"),
        commit_line(f2, "2024-01-05T10:00:00+00:00", "Feature part 2", f1),
        commit_line(f1, "2024-01-04T10:00:00+00:00", "Feature part 1", c2),
        commit_line(c3, "2024-01-03T10:00:00+00:00", "Commit 3", c2),
        commit_line(c2, "2024-01-02T10:00:00+00:00", "Commit 2", c1),
        commit_line(c1, "2024-01-01T10:00:00+00:00", "Commit 1", ""),
    ]
    outputs.update({
        "rev-list --count HEAD": "6\n",
        "log -1 --format=%aI": "2024-01-06T10:00:00+00:00\n",
        "branch -a --format=%(refname)": "refs/heads/feature\nrefs/heads/main\n",
        "branch -a --merged main --format=%(refname)": "refs/heads/feature\nrefs/heads/main\n",
        "log --reverse --format=%aI|%an|%s refs/heads/feature --not main": "",
        "log --reverse --format=%aI|%an|%s refs/heads/feature": (
            f"2024-01-01T10:00:00+00:00|{AUTHOR}|Commit 1\n"
            f"2024-01-02T10:00:00+00:00|{AUTHOR}|Commit 2\n"
            f"2024-01-04T10:00:00+00:00|{AUTHOR}|Feature part 1\n"
            f"2024-01-05T10:00:00+00:00|{AUTHOR}|Feature part 2\n"
        ),
        "log -1 --format=%aI|%s refs/heads/feature": "2024-01-05T10:00:00+00:00|Feature part 2\n",
        "rev-list --count refs/heads/feature": "4\n",
        "log -1 --format=%aI|%s refs/heads/main": "2024-01-06T10:00:00+00:00|Merge branch 'feature'\n",
        "rev-list --count refs/heads/main": "6\n",
        "log --format=%H|%aI|%an|%ae|%s|%P -n 100": "\n".join(log) + "\n",
    })
    for commit_hash in (f1, f2, merge):
        outputs[f"show --stat --format= {commit_hash}"] = (
            " feature.py | 3 +++\n 1 file changed, 3 insertions(+)\n"
        )
    return outputs


def empty_repo_outputs() -> Dict[str, str]:
    """A freshly initialized repository: no commits, no branches."""
    return {
        "branch -r": "",
        "branch --show-current": "main\n",
        "branch -a --format=%(refname)": "",
        "shortlog -sn --all": "",
        "ls-files": "",
    }


@pytest.fixture
def linear_git():
    """FakeGitClient serving a five-commit linear history."""
    return FakeGitClient(outputs=linear_outputs(5), line_counts={"README.md": 5, "main.py": 10})


@pytest.fixture
def merged_git():
    """FakeGitClient serving a history with a merged feature branch."""
    return FakeGitClient(outputs=merged_feature_outputs(), line_counts={"README.md": 5, "main.py": 10})


@pytest.fixture
def empty_git():
    """FakeGitClient serving an empty repository."""
    return FakeGitClient(outputs=empty_repo_outputs())


@pytest.fixture
def memory_store():
    return MemoryCacheStore()
