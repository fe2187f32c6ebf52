"""
Rendering functions for gitportfolio output.

This module handles all pretty-printing and table formatting.
Services return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from typing import List, Dict, Any, Optional

console = Console()


def _table(title: str) -> Table:
    return Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )


def render_discovery_table(repos: List[Dict[str, Any]], out: Optional[Console] = None) -> None:
    """
    Render discovered repositories as a table.

    Args:
        repos: Repository dictionaries (Repository.to_dict())
        out: Console to print to (module console if None)
    """
    out = out or console
    if not repos:
        out.print("[yellow]No repositories found.[/yellow]")
        return

    table = _table("Discovered Repositories")
    table.add_column("Repository", style="cyan")
    table.add_column("Path", style="dim")
    table.add_column("Type", style="green")
    table.add_column("TrackDown", justify="center")
    table.add_column("Remote", style="blue")
    table.add_column("Last Commit", style="yellow")

    for repo in sorted(repos, key=lambda r: r['name'].lower()):
        last = repo.get('lastCommit') or {}
        last_display = ""
        if last:
            last_display = f"{last.get('date', '')[:10]} {last.get('message', '')[:40]}"
        table.add_row(
            repo['name'],
            repo.get('relativePath', repo.get('path', '')),
            repo.get('type', 'unknown'),
            "✓" if repo.get('hasTrackDown') else "",
            "hosted" if repo.get('hasHostedRemote') else ("local" if not repo.get('remoteUrl') else "other"),
            last_display,
        )

    out.print(table)


def print_discovery_summary(summary: Dict[str, Any], out: Optional[Console] = None) -> None:
    """Print discovery counts (DiscoverySummary.to_dict())."""
    out = out or console
    out.print(f"\n[bold]Total repositories:[/bold] {summary.get('total', 0)}")
    by_type = summary.get('byType', {})
    if by_type:
        parts = [f"{name}: {count}" for name, count in sorted(by_type.items(), key=lambda x: (-x[1], x[0]))]
        out.print(f"[bold]By type:[/bold] {', '.join(parts)}")
    out.print(f"[bold]With TrackDown:[/bold] {summary.get('withTrackDown', 0)}")
    out.print(f"[bold]With hosted remote:[/bold] {summary.get('withHostedRemote', 0)}")


def render_scan_table(results: List[Dict[str, Any]], out: Optional[Console] = None) -> None:
    """
    Render portfolio scan results (AnalysisResult.to_dict()) as a table.

    Projects that could not be analyzed are listed with their warning.
    """
    out = out or console
    if not results:
        out.print("[yellow]No repositories found.[/yellow]")
        return

    table = _table("Portfolio")
    table.add_column("Repository", style="cyan")
    table.add_column("Commits", justify="right")
    table.add_column("Branches", justify="right")
    table.add_column("Active", justify="right", style="green")
    table.add_column("Merged", justify="right")
    table.add_column("Contributors", justify="right")
    table.add_column("LOC", justify="right")
    table.add_column("Last Commit", style="yellow")
    table.add_column("Cached", justify="center", style="dim")

    def sort_key(result: Dict[str, Any]) -> str:
        report = result.get('report') or {}
        return str(report.get('projectName', '')).lower()

    failed = []
    for result in sorted(results, key=sort_key):
        report = result.get('report')
        if not report:
            failed.append(result)
            continue
        summary = report['summary']
        branches = report['branchEvolution']
        table.add_row(
            report['projectName'],
            str(summary.get('totalCommits', 0)),
            str(branches.get('totalBranches', 0)),
            str(branches.get('activeBranches', 0)),
            str(branches.get('mergedBranches', 0)),
            str(len(report.get('contributors', []))),
            str(report['locStatistics']['current'].get('total', 0)),
            (summary.get('lastCommitDate') or '')[:10],
            "✓" if result.get('fromCache') else "",
        )

    out.print(table)

    for result in failed:
        for warning in result.get('warnings', []):
            out.print(f"[red]✗[/red] {warning}")
