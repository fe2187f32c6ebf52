"""
CLI tests using click's CliRunner with an injected FakeGitClient.
"""

import json

import pytest
from click.testing import CliRunner

from conftest import linear_outputs
from gitportfolio.cli import cli
from gitportfolio.config import get_default_config, merge_configs
from gitportfolio.infra import FakeGitClient, MemoryCacheStore


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def store():
    return MemoryCacheStore()


def json_lines(output):
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


def make_projects(root, *names):
    paths = []
    for name in names:
        path = root / name
        (path / ".git").mkdir(parents=True)
        paths.append(str(path.resolve()))
    return paths


def invoke(runner, args, git, store=None, config=None):
    obj = {
        "config": merge_configs(get_default_config(), config or {}),
        "git_client": git,
        "cache_store": store if store is not None else MemoryCacheStore(),
    }
    return runner.invoke(cli, args, obj=obj)


class TestReportCommand:
    """Tests for `gitportfolio report`."""

    def test_report(self, runner, linear_git, tmp_path):
        result = invoke(runner, ["report", str(tmp_path)], linear_git)

        assert result.exit_code == 0, result.output
        report = json_lines(result.output)[0]
        assert report["projectName"] == tmp_path.name
        assert report["summary"]["totalCommits"] == 5
        assert set(report["mermaidDiagrams"]) == {"branchEvolution", "commitTimeline", "contributorFlow"}

    def test_report_is_cached(self, runner, linear_git, tmp_path, store):
        invoke(runner, ["report", str(tmp_path)], linear_git, store=store)
        assert len(store) == 1

        calls = len(linear_git.calls)
        result = invoke(runner, ["report", str(tmp_path)], linear_git, store=store)

        assert result.exit_code == 0
        assert len(linear_git.calls) == calls

    def test_no_cache(self, runner, linear_git, tmp_path, store):
        result = invoke(runner, ["report", "--no-cache", str(tmp_path)], linear_git, store=store)

        assert result.exit_code == 0
        assert len(store) == 0

    def test_max_commits(self, runner, linear_git, tmp_path):
        full = linear_git.outputs["log --format=%H|%aI|%an|%ae|%s|%P -n 100"]
        linear_git.outputs["log --format=%H|%aI|%an|%ae|%s|%P -n 2"] = "\n".join(full.splitlines()[:2])

        result = invoke(runner, ["report", "--max-commits", "2", str(tmp_path)], linear_git)

        assert result.exit_code == 0
        assert len(json_lines(result.output)[0]["commitHistory"]) == 2

    def test_pretty(self, runner, linear_git, tmp_path):
        result = invoke(runner, ["report", "--pretty", str(tmp_path)], linear_git)
        assert result.exit_code == 0
        assert '\n  "projectName"' in result.output

    def test_warnings_go_to_stderr(self, runner, tmp_path):
        git = FakeGitClient(outputs=linear_outputs(5), failures=["shortlog"], line_counts={"README.md": 5})

        result = invoke(runner, ["report", str(tmp_path)], git)

        assert result.exit_code == 0
        assert "warning: contributors unavailable" in result.output
        assert json_lines(result.output)[0]["contributors"] == []

    def test_not_a_repository(self, runner, tmp_path):
        result = invoke(runner, ["report", str(tmp_path)], FakeGitClient(repos=[]))

        assert result.exit_code == 65
        error = json_lines(result.output)[0]
        assert error["type"] == "NotARepositoryError"
        assert error["exit_code"] == 65


class TestDiscoverCommand:
    """Tests for `gitportfolio discover`."""

    def test_jsonl(self, runner, tmp_path):
        (tmp_path / "work").mkdir()
        paths = make_projects(tmp_path / "work", "alpha", "beta")
        (tmp_path / "work" / "alpha" / "package.json").write_text("{}")
        git = FakeGitClient(repos=paths, default_output="")

        result = invoke(runner, ["discover", str(tmp_path / "work")], git)

        assert result.exit_code == 0, result.output
        repos = json_lines(result.output)
        assert [r["name"] for r in repos] == ["alpha", "beta"]
        assert repos[0]["type"] == "nodejs"
        assert repos[0]["relativePath"] == "alpha"

    def test_summary(self, runner, tmp_path):
        paths = make_projects(tmp_path, "alpha", "beta")
        git = FakeGitClient(repos=paths, default_output="")

        result = invoke(runner, ["discover", "--summary", str(tmp_path)], git)

        assert result.exit_code == 0
        assert json_lines(result.output)[0]["total"] == 2

    def test_table(self, runner, tmp_path):
        paths = make_projects(tmp_path, "alpha")
        git = FakeGitClient(repos=paths, default_output="")

        result = invoke(runner, ["discover", "--table", str(tmp_path)], git)

        assert result.exit_code == 0
        assert "alpha" in result.output

    def test_max_depth_and_exclude(self, runner, tmp_path):
        paths = make_projects(tmp_path, "a", "deep/er/b", "skip/c")
        git = FakeGitClient(repos=paths, default_output="")

        result = invoke(runner, ["discover", "--max-depth", "2", "--exclude", "skip", str(tmp_path)], git)

        assert [r["name"] for r in json_lines(result.output)] == ["a"]

    def test_nothing_found(self, runner, tmp_path):
        result = invoke(runner, ["discover", str(tmp_path)], FakeGitClient(repos=[]))

        assert result.exit_code == 64
        assert json_lines(result.output)[0]["type"] == "NoReposFoundError"

    def test_missing_root_warns(self, runner, tmp_path):
        result = invoke(runner, ["discover", str(tmp_path / "absent")], FakeGitClient(repos=[]))

        assert result.exit_code == 64
        assert "warning: Directory not found" in result.output


class TestScanCommand:
    """Tests for `gitportfolio scan`."""

    def test_scan(self, runner, tmp_path):
        paths = make_projects(tmp_path, "alpha", "beta")
        git = FakeGitClient(outputs=linear_outputs(5), repos=paths, default_output="")

        result = invoke(runner, ["scan", str(tmp_path)], git)

        assert result.exit_code == 0, result.output
        results = json_lines(result.output)
        assert sorted(r["repository"]["name"] for r in results) == ["alpha", "beta"]
        assert all(r["report"]["summary"]["totalCommits"] == 5 for r in results)

    def test_scan_table(self, runner, tmp_path):
        paths = make_projects(tmp_path, "alpha")
        git = FakeGitClient(outputs=linear_outputs(5), repos=paths, default_output="")

        result = invoke(runner, ["scan", "--table", str(tmp_path)], git)

        assert result.exit_code == 0
        assert "Portfolio" in result.output

    def test_scan_nothing(self, runner, tmp_path):
        result = invoke(runner, ["scan", str(tmp_path)], FakeGitClient(repos=[]))
        assert result.exit_code == 64


class TestOtherCommands:
    """diagram and cache commands."""

    def test_diagram(self, runner, linear_git, tmp_path):
        result = invoke(runner, ["diagram", "--kind", "commitTimeline", str(tmp_path)], linear_git)

        assert result.exit_code == 0
        assert result.output.startswith("timeline\n")
        assert "Commit 5" in result.output

    def test_diagram_default_kind(self, runner, linear_git, tmp_path):
        result = invoke(runner, ["diagram", str(tmp_path)], linear_git)
        assert result.output.startswith("gitGraph\n")

    def test_diagram_bad_kind(self, runner, linear_git, tmp_path):
        result = invoke(runner, ["diagram", "--kind", "pie", str(tmp_path)], linear_git)
        assert result.exit_code == 2

    def test_cache_clear(self, runner, linear_git, tmp_path, store):
        invoke(runner, ["report", str(tmp_path)], linear_git, store=store)

        result = invoke(runner, ["cache", "clear"], linear_git, store=store)

        assert result.exit_code == 0
        assert json_lines(result.output)[0] == {"removed": 1}
        assert len(store) == 0


class TestConfigOption:
    """Tests for --config handling."""

    def test_missing_config_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["--config", str(tmp_path / "nope.json"), "cache", "clear"])

        assert result.exit_code == 66
        assert json_lines(result.output)[0]["type"] == "ConfigError"

    def test_invalid_config_file(self, runner, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{broken")

        result = runner.invoke(cli, ["--config", str(path), "cache", "clear"])

        assert result.exit_code == 66

    def test_config_file_used(self, runner, linear_git, tmp_path):
        cache_dir = tmp_path / "reports"
        path = tmp_path / "config.yaml"
        path.write_text(f"cache:\n  directory: {cache_dir}\n")

        result = runner.invoke(
            cli, ["--config", str(path), "report", str(tmp_path)], obj={"git_client": linear_git}
        )

        assert result.exit_code == 0, result.output
        assert len(list(cache_dir.glob("*.json"))) == 1
