#!/usr/bin/env python3

import click
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional

from gitportfolio.api import GitPortfolio
from gitportfolio.cli_utils import emit_json, emit_jsonl, standard_command, warn
from gitportfolio.config import configure_logging, load_config, merge_configs
from gitportfolio.exit_codes import ConfigError, NoReposFoundError, NotARepositoryError
from gitportfolio.render import print_discovery_summary, render_discovery_table, render_scan_table

DIAGRAM_KINDS = ('branchEvolution', 'commitTimeline', 'contributorFlow')


def _load(ctx: click.Context, overrides: Optional[Dict[str, Any]] = None) -> GitPortfolio:
    """Build the API object from the group options stored on the context."""
    obj = ctx.ensure_object(dict)
    config = obj.get('config')
    if config is None:
        config_path = obj.get('config_path')
        if config_path and not Path(config_path).exists():
            raise ConfigError(f"Config file not found: {config_path}")
        try:
            config = load_config(Path(config_path) if config_path else None, strict=bool(config_path))
        except ValueError as e:
            raise ConfigError(str(e))
        obj['config'] = config
        configure_logging(config, level=obj.get('log_level'))
    if overrides:
        config = merge_configs(config, overrides)
    return GitPortfolio(config=config, git_client=obj.get('git_client'), cache_store=obj.get('cache_store'))


@click.group()
@click.version_option(package_name='gitportfolio')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False),
              help='Configuration file (default: ~/.gitportfolio/config.json)')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Override the configured log level')
@click.pass_context
def cli(ctx, config_path, log_level):
    """gitportfolio - Git repository discovery and history reports.

    Finds git projects under a directory tree, classifies them, and builds
    cached history reports (branches, commits, contributors, lines of code)
    as JSON for dashboards.
    """
    obj = ctx.ensure_object(dict)
    obj.setdefault('config_path', config_path)
    obj['log_level'] = log_level


@cli.command('discover')
@click.argument('root', required=False, type=click.Path(file_okay=False))
@click.option('--max-depth', type=click.IntRange(min=0), help='Deepest directory level to inspect')
@click.option('--exclude', multiple=True, help='Extra directory name to skip (repeatable)')
@click.option('--summary', is_flag=True, help='Print counts instead of repositories')
@click.option('--table/--no-table', default=False, help='Pretty table instead of JSONL')
@click.pass_context
@standard_command
def discover_cmd(ctx, root, max_depth, exclude, summary, table):
    """Find git repositories under ROOT and classify them.

    Outputs one JSON object per repository.
    """
    gp = _load(ctx)
    walker = gp.walker(max_depth=max_depth, exclude=list(exclude))
    repos = gp.discover(root, walker=walker)
    for message in walker.warnings:
        warn(message)

    if not repos:
        raise NoReposFoundError(f"No repositories found under {root or 'configured scan directories'}")

    if summary:
        stats = gp.summarize(repos).to_dict()
        if table:
            print_discovery_summary(stats)
        else:
            emit_json(stats)
        return

    if table:
        render_discovery_table([r.to_dict() for r in repos])
    else:
        emit_jsonl(r.to_dict() for r in repos)


@cli.command('report')
@click.argument('path', type=click.Path(file_okay=False))
@click.option('--refresh', is_flag=True, help='Ignore a cached report and regenerate')
@click.option('--no-cache', is_flag=True, help='Neither read nor write the report cache')
@click.option('--max-commits', type=click.IntRange(min=1), help='Commits to include in the history')
@click.option('--pretty', is_flag=True, help='Indent the JSON output')
@click.pass_context
@standard_command
def report_cmd(ctx, path, refresh, no_cache, max_commits, pretty):
    """Generate the history report for the repository at PATH."""
    gp = _load(ctx, {'cache': {'enabled': False}} if no_cache else None)
    if not gp.git.is_git_repo(str(Path(path).expanduser().resolve())):
        raise NotARepositoryError(f"{path} is not a git repository", path=path)

    options = replace(gp.options, max_commits=max_commits) if max_commits else None
    result = gp.report(path, force_refresh=refresh, options=options)
    for message in result.warnings:
        warn(message)
    emit_json(result.report.to_dict(), pretty=pretty)


@cli.command('scan')
@click.argument('root', required=False, type=click.Path(file_okay=False))
@click.option('--table/--no-table', default=False, help='Pretty table instead of JSONL')
@click.pass_context
@standard_command
def scan_cmd(ctx, root, table):
    """Discover every repository under ROOT and report on each.

    Outputs one JSON object per repository with its report and warnings.
    """
    gp = _load(ctx)
    walker = gp.walker()
    results = []
    count = 0
    for result in gp.scan(root, walker=walker):
        count += 1
        for message in result.warnings:
            warn(message)
        if table:
            results.append(result.to_dict())
        else:
            emit_json(result.to_dict())
    for message in walker.warnings:
        warn(message)

    if not count:
        raise NoReposFoundError(f"No repositories found under {root or 'configured scan directories'}")
    if table:
        render_scan_table(results)


@cli.command('diagram')
@click.argument('path', type=click.Path(file_okay=False))
@click.option('--kind', type=click.Choice(DIAGRAM_KINDS), default='branchEvolution',
              show_default=True, help='Which diagram to print')
@click.pass_context
@standard_command
def diagram_cmd(ctx, path, kind):
    """Print Mermaid source for one of the report diagrams of PATH."""
    gp = _load(ctx)
    if not gp.git.is_git_repo(str(Path(path).expanduser().resolve())):
        raise NotARepositoryError(f"{path} is not a git repository", path=path)
    result = gp.report(path)
    click.echo(result.report.mermaid_diagrams.get(kind, ''), nl=False)


@cli.group('cache')
def cache_cmd():
    """Manage the report cache."""


@cache_cmd.command('clear')
@click.pass_context
@standard_command
def cache_clear_cmd(ctx):
    """Delete every cached report."""
    gp = _load(ctx)
    emit_json({'removed': gp.clear_cache()})


def main():
    cli()


if __name__ == "__main__":
    main()
