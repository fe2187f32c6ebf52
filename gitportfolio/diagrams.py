"""
Mermaid diagram source generation.

Pure functions from report sections to diagram text. Nothing here renders
or touches the filesystem.
"""

from typing import Dict, List, Optional, Sequence, Set
import re

from .domain import BranchEvolution, Commit, Contributor


TRUNK_NAMES = ('main', 'master')
MAX_GRAPH_BRANCHES = 5
MAX_TIMELINE_COMMITS = 10
MAX_FLOW_CONTRIBUTORS = 5
SUBJECT_LIMIT = 30

_NON_ALNUM = re.compile(r'[^A-Za-z0-9]')


def _branch_id(name: str, used: Set[str]) -> str:
    """Mermaid-safe identifier for a branch name, unique within one graph."""
    base = _NON_ALNUM.sub('', name) or 'branch'
    candidate = base
    suffix = 2
    while candidate in used:
        candidate = f"{base}{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


def _label(text: str) -> str:
    """Escape characters that end a quoted Mermaid label."""
    return text.replace('"', '#quot;')


def _timeline_text(text: str) -> str:
    # ':' separates events in a timeline section
    return text.replace(':', '#58;')


def branch_graph(branch_evolution: BranchEvolution) -> str:
    """
    Mermaid gitGraph of the trunk and up to five feature branches.

    Only branches with more than one commit are drawn. Merged branches get
    a merge edge back into the trunk.
    """
    branches = list(branch_evolution.branches.values())
    trunk = next((b for b in branches if b.name in TRUNK_NAMES), None)
    trunk_name = trunk.name if trunk else 'main'

    used: Set[str] = {trunk_name}
    lines = ['gitGraph']
    if trunk_name != 'main':
        # gitGraph names its first branch "main" unless told otherwise
        lines = ['%%{init: { "gitGraph": { "mainBranchName": "' + trunk_name + '" } } }%%', 'gitGraph']
    lines.append('    commit id: "Initial"')
    if trunk:
        lines.append(f'    commit id: "{_label(trunk.name)}-{trunk.commit_count}"')

    features = [
        b for b in branches
        if b.name not in TRUNK_NAMES and b.commit_count > 1
    ][:MAX_GRAPH_BRANCHES]

    for branch in features:
        branch_id = _branch_id(branch.name, used)
        name = _label(branch.name)
        lines.append(f'    branch {branch_id}')
        lines.append(f'    checkout {branch_id}')
        lines.append(f'    commit id: "{name}-1"')
        lines.append(f'    commit id: "{name}-{branch.commit_count}"')
        lines.append(f'    checkout {trunk_name}')
        if branch.merged_into:
            lines.append(f'    merge {branch_id}')

    return '\n'.join(lines) + '\n'


def commit_timeline(commit_history: Sequence[Commit]) -> str:
    """Mermaid timeline of the ten most recent commits, grouped by day."""
    lines = ['timeline', '    title Git Commit Timeline', '']

    by_date: Dict[str, List[Commit]] = {}
    for commit in list(commit_history)[:MAX_TIMELINE_COMMITS]:
        day = commit.date.split('T')[0].split(' ')[0]
        by_date.setdefault(day, []).append(commit)

    for day, commits in by_date.items():
        lines.append(f'    {day}')
        for commit in commits:
            subject = commit.subject[:SUBJECT_LIMIT]
            if len(commit.subject) > SUBJECT_LIMIT:
                subject += '...'
            lines.append(f'        : {_timeline_text(subject)}')
            lines.append(f'        : by {_timeline_text(commit.author)}')

    return '\n'.join(lines) + '\n'


def contributor_flow(contributors: Sequence[Contributor]) -> str:
    """Mermaid flowchart of the top five contributors."""
    lines = ['flowchart TD', '    A[Repository] --> B[Contributors]']
    for index, contributor in enumerate(list(contributors)[:MAX_FLOW_CONTRIBUTORS], start=1):
        lines.append(
            f'    B --> C{index}["{_label(contributor.name)}<br/>'
            f'{contributor.commits} commits<br/>{contributor.percentage}%"]'
        )
    return '\n'.join(lines) + '\n'


def generate_diagrams(
    branch_evolution: Optional[BranchEvolution] = None,
    commit_history: Sequence[Commit] = (),
    contributors: Sequence[Contributor] = ()
) -> Dict[str, str]:
    """All three diagrams, keyed as they appear in the report."""
    return {
        'branchEvolution': branch_graph(branch_evolution or BranchEvolution()),
        'commitTimeline': commit_timeline(commit_history),
        'contributorFlow': contributor_flow(contributors),
    }
