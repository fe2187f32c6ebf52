"""Tests for GitClient and FakeGitClient."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from gitportfolio.errors import VcsCommandFailed
from gitportfolio.infra import FakeGitClient, GitClient


def completed(stdout="", returncode=0, stderr=""):
    result = MagicMock()
    result.stdout = stdout
    result.stderr = stderr
    result.returncode = returncode
    return result


class TestAllowList:
    """Only read-only queries reach subprocess."""

    @pytest.mark.parametrize("args", [
        ("commit", "-m", "x"),
        ("push",),
        ("checkout", "main"),
        ("branch", "-D", "feature"),
        ("branch", "new-branch"),
        ("config", "--unset", "user.name"),
        (),
    ])
    def test_rejected(self, args):
        client = GitClient()
        with patch("gitportfolio.infra.git_client.subprocess.run") as run:
            with pytest.raises(ValueError):
                client.run("/repo", *args)
            run.assert_not_called()

    @pytest.mark.parametrize("args", [
        ("branch", "-a", "--format=%(refname)"),
        ("branch", "-a", "--merged", "main", "--format=%(refname)"),
        ("config", "--get", "remote.origin.url"),
        ("log", "-1", "--format=%aI"),
    ])
    def test_allowed(self, args):
        GitClient()._validate(args)


class TestRun:
    """Process invocation and failure mapping."""

    def test_invocation(self):
        client = GitClient(timeout=7)
        with patch("gitportfolio.infra.git_client.subprocess.run", return_value=completed("5\n")) as run:
            output, code = client.run("/repo", "rev-list", "--count", "HEAD")

        assert (output, code) == ("5\n", 0)
        args, kwargs = run.call_args
        assert args[0] == ["git", "rev-list", "--count", "HEAD"]
        assert kwargs["cwd"] == "/repo"
        assert kwargs["timeout"] == 7
        assert kwargs["stdin"] is subprocess.DEVNULL
        assert "shell" not in kwargs

    def test_nonzero_raises(self):
        client = GitClient()
        with patch("gitportfolio.infra.git_client.subprocess.run",
                   return_value=completed("", 128, "fatal: bad revision")):
            with pytest.raises(VcsCommandFailed) as excinfo:
                client.run("/repo", "log", "-1")

        assert excinfo.value.returncode == 128
        assert "bad revision" in excinfo.value.stderr

    def test_nonzero_without_check(self):
        client = GitClient()
        with patch("gitportfolio.infra.git_client.subprocess.run", return_value=completed("", 1)):
            assert client.run("/repo", "log", "-1", check=False) == ("", 1)

    def test_timeout(self):
        client = GitClient(timeout=1)
        with patch("gitportfolio.infra.git_client.subprocess.run",
                   side_effect=subprocess.TimeoutExpired(["git"], 1)):
            with pytest.raises(VcsCommandFailed) as excinfo:
                client.run("/repo", "log")
        assert "timed out" in excinfo.value.stderr

    def test_missing_executable(self):
        client = GitClient(executable="/nonexistent/git")
        with patch("gitportfolio.infra.git_client.subprocess.run",
                   side_effect=FileNotFoundError("no such file")):
            with pytest.raises(VcsCommandFailed):
                client.run("/repo", "log")


class TestCapabilities:
    """Capability methods built on run()."""

    def test_remote_url(self):
        client = GitClient()
        with patch.object(client, "run", return_value=("git@github.com:o/r.git\n", 0)) as run:
            assert client.remote_url("/repo") == "git@github.com:o/r.git"
        run.assert_called_once_with("/repo", "config", "--get", "remote.origin.url", check=False)

    def test_remote_url_not_configured(self):
        client = GitClient()
        with patch.object(client, "run", return_value=("", 1)):
            assert client.remote_url("/repo", remote="upstream") is None

    def test_remote_url_real_failure(self):
        client = GitClient()
        with patch.object(client, "run", return_value=("", 128)):
            with pytest.raises(VcsCommandFailed):
                client.remote_url("/repo")

    def test_has_commits(self):
        client = GitClient()
        with patch.object(client, "run", return_value=("", 1)):
            assert client.has_commits("/repo") is False
        with patch.object(client, "run", return_value=("abc\n", 0)):
            assert client.has_commits("/repo") is True

    def test_branch_first_commit_exclude(self):
        client = GitClient()
        with patch.object(client, "run", return_value=("", 0)) as run:
            client.branch_first_commit("/repo", "refs/heads/feature", exclude="main")
        assert run.call_args[0][1:] == (
            "log", "--reverse", "--format=%aI|%an|%s", "refs/heads/feature", "--not", "main"
        )

    def test_author_dates_anchored_to_name(self):
        client = GitClient()
        with patch.object(client, "run", return_value=("", 0)) as run:
            client.author_dates("/repo", "Al")
        assert run.call_args[0][1:] == (
            "log", "--all", "--basic-regexp", "--author=^Al <", "--format=%aI"
        )

    def test_author_dates_escapes_regex_characters(self):
        client = GitClient()
        with patch.object(client, "run", return_value=("", 0)) as run:
            client.author_dates("/repo", "J.R. [bot]*")
        assert run.call_args[0][4] == r"--author=^J\.R\. \[bot\]\* <"

    def test_is_git_repo(self, tmp_path):
        client = GitClient()
        assert client.is_git_repo(str(tmp_path)) is False
        (tmp_path / ".git").mkdir()
        assert client.is_git_repo(str(tmp_path)) is True

    def test_is_git_repo_gitfile(self, tmp_path):
        (tmp_path / ".git").write_text("gitdir: ../.git/worktrees/x\n")
        assert GitClient().is_git_repo(str(tmp_path)) is True

    def test_line_count(self, tmp_path):
        (tmp_path / "a.txt").write_text("one\ntwo\nthree\n")
        (tmp_path / "b.txt").write_text("no newline")
        client = GitClient()
        assert client.line_count(str(tmp_path), "a.txt") == 3
        assert client.line_count(str(tmp_path), "b.txt") == 0

    def test_line_count_missing(self, tmp_path):
        with pytest.raises(VcsCommandFailed):
            GitClient().line_count(str(tmp_path), "missing.txt")


class TestFakeGitClient:
    """Tests for the canned-output client."""

    def test_serves_outputs(self):
        git = FakeGitClient(outputs={"rev-list --count HEAD": "3\n"})
        assert git.commit_count("/repo") == "3\n"
        assert git.commands() == ["rev-list --count HEAD"]

    def test_unknown_command(self):
        git = FakeGitClient()
        with pytest.raises(VcsCommandFailed):
            git.commit_count("/repo")
        assert git.run("/repo", "log", "-1", check=False) == ("", 1)

    def test_default_output(self):
        git = FakeGitClient(default_output="")
        assert git.shortlog("/repo") == ""

    def test_failure_injection(self):
        git = FakeGitClient(outputs={"shortlog -sn --all": "1\tA\n"}, failures=["shortlog"])
        with pytest.raises(VcsCommandFailed):
            git.shortlog("/repo")

    def test_still_validates(self):
        with pytest.raises(ValueError):
            FakeGitClient(default_output="").run("/repo", "push")

    def test_repos_and_line_counts(self):
        git = FakeGitClient(repos=["/a"], line_counts={"x.py": 4})
        assert git.is_git_repo("/a")
        assert not git.is_git_repo("/b")
        assert git.line_count("/a", "x.py") == 4
        with pytest.raises(VcsCommandFailed):
            git.line_count("/a", "y.py")
