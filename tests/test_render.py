"""Tests for the rich table renderers."""

import io

from rich.console import Console

from gitportfolio.render import print_discovery_summary, render_discovery_table, render_scan_table


def console():
    return Console(file=io.StringIO(), width=200, color_system=None)


def test_discovery_table():
    out = console()
    render_discovery_table([
        {"name": "site", "relativePath": "web/site", "type": "nodejs", "hasTrackDown": True,
         "hasHostedRemote": True, "remoteUrl": "git@github.com:o/site.git",
         "lastCommit": {"date": "2024-01-05T10:00:00+00:00", "message": "Ship it"}},
        {"name": "tool", "relativePath": "tool", "type": "python", "hasTrackDown": False,
         "hasHostedRemote": False, "remoteUrl": None, "lastCommit": None},
    ], out=out)

    text = out.file.getvalue()
    assert "Discovered Repositories" in text
    assert "web/site" in text
    assert "hosted" in text
    assert "local" in text
    assert "2024-01-05 Ship it" in text


def test_discovery_table_empty():
    out = console()
    render_discovery_table([], out=out)
    assert "No repositories found." in out.file.getvalue()


def test_discovery_summary():
    out = console()
    print_discovery_summary(
        {"total": 3, "byType": {"python": 1, "nodejs": 2}, "withTrackDown": 1, "withHostedRemote": 2},
        out=out,
    )
    text = out.file.getvalue()
    assert "Total repositories: 3" in text
    assert "By type: nodejs: 2, python: 1" in text


def test_scan_table_lists_failures_after_table():
    out = console()
    render_scan_table([
        {"report": None, "warnings": ["/work/gone is not a git repository"], "fromCache": False},
        {"report": {
            "projectName": "site",
            "summary": {"totalCommits": 12, "lastCommitDate": "2024-01-05T10:00:00+00:00"},
            "branchEvolution": {"totalBranches": 3, "activeBranches": 1, "mergedBranches": 2},
            "contributors": [{}, {}],
            "locStatistics": {"current": {"total": 480}},
        }, "warnings": [], "fromCache": True},
    ], out=out)

    text = out.file.getvalue()
    assert "Portfolio" in text
    assert "480" in text
    assert "2024-01-05" in text
    assert text.index("site") < text.index("/work/gone is not a git repository")
