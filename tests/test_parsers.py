"""Tests for the git query-form parsers."""

from datetime import timedelta

from gitportfolio.parsers import (
    count_changed_files,
    parse_branch_refs,
    parse_commit_log,
    parse_count,
    parse_file_stat,
    parse_first_commit,
    parse_git_date,
    parse_hosted_remote,
    parse_last_commit,
    parse_last_commit_summary,
    parse_lines,
    parse_shortlog,
    parse_shortstat,
)


class TestSimpleForms:
    """Counts and line lists."""

    def test_parse_count(self):
        assert parse_count("42\n") == 42

    def test_parse_count_garbage_is_zero(self):
        assert parse_count("fatal: bad revision") == 0
        assert parse_count("") == 0

    def test_parse_lines_drops_blanks(self):
        assert parse_lines("a\n\n  b  \n") == ["a", "b"]
        assert parse_lines("") == []


class TestBranchRefs:
    """Tests for parse_branch_refs."""

    def test_local_and_remote(self):
        text = (
            "refs/heads/main\n"
            "refs/heads/feature/login\n"
            "refs/remotes/origin/HEAD\n"
            "refs/remotes/origin/main\n"
            "refs/remotes/origin/release\n"
        )
        refs = parse_branch_refs(text)
        assert list(refs) == ["main", "feature/login", "release"]
        assert refs["main"] == "refs/heads/main"
        assert refs["release"] == "refs/remotes/origin/release"

    def test_local_wins_but_keeps_position(self):
        text = "refs/remotes/origin/dev\nrefs/heads/main\nrefs/heads/dev\n"
        refs = parse_branch_refs(text)
        assert list(refs) == ["dev", "main"]
        assert refs["dev"] == "refs/heads/dev"

    def test_same_name_on_two_remotes(self):
        text = "refs/remotes/origin/dev\nrefs/remotes/upstream/dev\n"
        assert parse_branch_refs(text) == {"dev": "refs/remotes/origin/dev"}

    def test_detached_head_line_skipped(self):
        assert parse_branch_refs("(HEAD detached at 1a2b3c4)\nrefs/heads/main\n") == {
            "main": "refs/heads/main"
        }

    def test_name_containing_head(self):
        refs = parse_branch_refs("refs/heads/fix-HEAD-parsing\n")
        assert list(refs) == ["fix-HEAD-parsing"]


class TestBranchCommits:
    """First and last commit forms."""

    def test_first_commit_takes_oldest_line(self):
        text = "2024-01-01T10:00:00+00:00|Alice|Initial\n2024-01-02T10:00:00+00:00|Bob|Second\n"
        first = parse_first_commit(text)
        assert first.date == "2024-01-01T10:00:00+00:00"
        assert first.author == "Alice"
        assert first.subject == "Initial"

    def test_first_commit_subject_with_pipe(self):
        first = parse_first_commit("2024-01-01T10:00:00+00:00|Alice|a | b\n")
        assert first.subject == "a | b"

    def test_first_commit_empty(self):
        assert parse_first_commit("") is None

    def test_first_commit_malformed(self):
        assert parse_first_commit("garbage\n") is None

    def test_last_commit(self):
        last = parse_last_commit("2024-01-05T10:00:00+00:00|Fix: x|y\n")
        assert last.date == "2024-01-05T10:00:00+00:00"
        assert last.subject == "Fix: x|y"


class TestCommitLog:
    """Tests for parse_commit_log."""

    def test_regular_and_root_commit(self):
        text = (
            "bbb|2024-01-02T10:00:00+00:00|Alice|alice@x.org|Second|aaa\n"
            "aaa|2024-01-01T10:00:00+00:00|Alice|alice@x.org|First|\n"
        )
        commits = parse_commit_log(text)
        assert [c.hash for c in commits] == ["bbb", "aaa"]
        assert commits[0].parents == ("aaa",)
        assert commits[1].parents == ()
        assert commits[1].email == "alice@x.org"

    def test_merge_commit(self):
        commits = parse_commit_log("ccc|2024-01-03T10:00:00+00:00|A|a@x|Merge|aaa bbb\n")
        assert commits[0].parents == ("aaa", "bbb")
        assert commits[0].is_merge

    def test_subject_containing_pipes(self):
        commits = parse_commit_log("ddd|2024-01-03T10:00:00+00:00|A|a@x|feat: a | b | c|aaa\n")
        assert commits[0].subject == "feat: a | b | c"
        assert commits[0].parents == ("aaa",)

    def test_malformed_lines_skipped(self):
        text = "not a commit\naaa|2024-01-01T10:00:00+00:00|A|a@x|First|\n|x|y|z|w|\n"
        commits = parse_commit_log(text)
        assert [c.hash for c in commits] == ["aaa"]


class TestFileStat:
    """Tests for parse_file_stat."""

    def test_files_and_summary(self):
        text = (
            " src/app.py        | 12 +++++++-----\n"
            " docs/file-list.md |  2 +-\n"
            " logo.png          | Bin 0 -> 1024 bytes\n"
            " 3 files changed, 8 insertions(+), 6 deletions(-)\n"
        )
        changes = parse_file_stat(text)
        assert [c.file_name for c in changes] == ["src/app.py", "docs/file-list.md", "logo.png"]
        assert changes[0].changes == "12 +++++++-----"
        assert changes[2].changes == "Bin 0 -> 1024 bytes"

    def test_empty(self):
        assert parse_file_stat("") == []


class TestShortlog:
    """Tests for parse_shortlog."""

    def test_sorted_descending(self):
        text = "     3\tBob\n    10\tAlice Example\n     3\tCarol\n"
        contributors = parse_shortlog(text)
        assert [(c.name, c.commits) for c in contributors] == [
            ("Alice Example", 10), ("Bob", 3), ("Carol", 3)
        ]
        assert all(c.percentage == 0.0 for c in contributors)

    def test_garbage_skipped(self):
        assert parse_shortlog("no count here\n") == []


class TestShortstat:
    """Tests for parse_shortstat."""

    def test_insertions_and_deletions(self):
        text = "2024-01-02T10:00:00+00:00\n\n 2 files changed, 10 insertions(+), 3 deletions(-)\n"
        stat = parse_shortstat(text)
        assert stat == ("2024-01-02T10:00:00+00:00", 10, 3)

    def test_single_deletion_only(self):
        stat = parse_shortstat("2024-01-02T10:00:00+00:00\n\n 1 file changed, 1 deletion(-)\n")
        assert (stat.insertions, stat.deletions) == (0, 1)

    def test_no_changes(self):
        stat = parse_shortstat("2024-01-02T10:00:00+00:00\n")
        assert stat == ("2024-01-02T10:00:00+00:00", 0, 0)


class TestChangedFiles:
    """Tests for count_changed_files."""

    def test_ranked_with_ties_by_name(self):
        text = "b.py\na.py\n\nb.py\nc.py\na.py\n"
        assert count_changed_files(text) == [("a.py", 2), ("b.py", 2), ("c.py", 1)]

    def test_limit(self):
        assert count_changed_files("a\nb\nb\n", limit=1) == [("b", 2)]


class TestLastCommitSummary:
    """Tests for parse_last_commit_summary."""

    def test_short_hash(self):
        last = parse_last_commit_summary(
            "0123456789abcdef0123456789abcdef01234567|Alice|2024-01-05T10:00:00+00:00|Ship it\n"
        )
        assert last.hash == "0123456"
        assert last.author == "Alice"
        assert last.message == "Ship it"

    def test_empty(self):
        assert parse_last_commit_summary("") is None


class TestDates:
    """Tests for parse_git_date."""

    def test_strict_iso_with_offset(self):
        parsed = parse_git_date("2024-01-15T10:30:00+01:00")
        assert parsed.hour == 10
        assert parsed.utcoffset() == timedelta(hours=1)

    def test_zulu(self):
        assert parse_git_date("2024-01-15T10:30:00Z").utcoffset() == timedelta(0)

    def test_human_iso(self):
        parsed = parse_git_date("2024-01-15 10:30:00 -0500")
        assert parsed.utcoffset() == timedelta(hours=-5)

    def test_invalid(self):
        assert parse_git_date("yesterday") is None
        assert parse_git_date("") is None
        assert parse_git_date(None) is None


class TestHostedRemote:
    """Tests for parse_hosted_remote."""

    def test_github_ssh(self):
        remote = parse_hosted_remote("git@github.com:octo/site.git")
        assert remote == ("github.com", "octo", "site")

    def test_gitlab_ssh_url(self):
        remote = parse_hosted_remote("ssh://git@gitlab.com/group/project.git")
        assert remote == ("gitlab.com", "group", "project")

    def test_bitbucket_https_with_user(self):
        remote = parse_hosted_remote("https://alice@bitbucket.org/team/repo.git")
        assert remote == ("bitbucket.org", "team", "repo")

    def test_https_without_suffix(self):
        assert parse_hosted_remote("https://github.com/octo/site") == ("github.com", "octo", "site")

    def test_unknown_host(self):
        assert parse_hosted_remote("https://git.example.com/octo/site.git") is None
        assert parse_hosted_remote("/srv/git/site.git") is None
        assert parse_hosted_remote(None) is None
