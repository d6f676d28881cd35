from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from gito.config import GitoSettings
from gito.errors import CommitParseError, GitCommandError
from gito.history import GitHistory, last_second_before, parse_branch_list, parse_commit_line, parse_numstat
from gito.models import CommitComponent
from gitutil import commit_file, git, init_repo


def test_parse_branch_list_strips_remote_and_skips_head() -> None:
    out = "  origin/HEAD -> origin/main\n  origin/feature/a\n  origin/fix-1\n\n"

    assert parse_branch_list(out) == ["feature/a", "fix-1"]
    assert parse_branch_list(out, strip_remote=False) == ["origin/feature/a", "origin/fix-1"]


def test_parse_branch_list_keeps_names_containing_head() -> None:
    assert parse_branch_list("  origin/HEADER-fix\n") == ["HEADER-fix"]


def test_parse_branch_list_empty() -> None:
    assert parse_branch_list("") == []


def test_parse_commit_line() -> None:
    components = [CommitComponent.FULL_HASH, CommitComponent.AUTHOR_EMAIL, CommitComponent.SUBJECT]

    record = parse_commit_line("abc\x00a@example.com\x00fix ~ things", components)

    assert record == {
        CommitComponent.FULL_HASH: "abc",
        CommitComponent.AUTHOR_EMAIL: "a@example.com",
        CommitComponent.SUBJECT: "fix ~ things",
    }


def test_parse_commit_line_keeps_empty_trailing_field() -> None:
    record = parse_commit_line("abc\x00", [CommitComponent.HASH, CommitComponent.SUBJECT])
    assert record == {CommitComponent.HASH: "abc", CommitComponent.SUBJECT: ""}


def test_parse_commit_line_field_count_mismatch() -> None:
    with pytest.raises(CommitParseError) as excinfo:
        parse_commit_line("abc", [CommitComponent.HASH, CommitComponent.AUTHOR_NAME])
    assert excinfo.value.expected == 2
    assert excinfo.value.actual == 1


def test_parse_numstat_sums_and_ignores_binary() -> None:
    out = "\n3\t1\tsrc/a.py\n-\t-\timage.png\n10\t0\tsrc/{old => new}/b.py\n"
    assert parse_numstat(out) == 14


def test_parse_numstat_empty() -> None:
    assert parse_numstat("") == 0


@pytest.fixture
def dated_repo(tmp_path: Path) -> Path:
    repo = init_repo(tmp_path / "repo")
    commit_file(repo, "a.txt", "0\n", "before window", date="2023-12-01T12:00:00Z")
    commit_file(repo, "a.txt", "1\n", "first", date="2024-01-10T12:00:00Z", author=("Ann", "ann@example.com"))
    commit_file(repo, "b.txt", "1\n2\n", "second", date="2024-01-15T12:00:00Z", author=("Bob", "bob@example.com"))
    commit_file(repo, "a.txt", "3\n", "third", date="2024-01-20T12:00:00Z", author=("Ann", "ann@example.com"))
    commit_file(repo, "c.txt", "x\n", "after window", date="2024-02-05T12:00:00Z")
    return repo


def test_commits_in_range_returns_only_requested_component(dated_repo: Path) -> None:
    history = GitHistory(dated_repo)

    commits = history.commits_in_range(dt.date(2024, 1, 1), dt.date(2024, 2, 1), [CommitComponent.AUTHOR_EMAIL])

    assert len(commits) == 3
    assert all(set(c) == {CommitComponent.AUTHOR_EMAIL} for c in commits)
    assert [c[CommitComponent.AUTHOR_EMAIL] for c in commits] == [
        "ann@example.com",
        "bob@example.com",
        "ann@example.com",
    ]


def test_commits_in_range_all_components_newest_first(dated_repo: Path) -> None:
    history = GitHistory(dated_repo)

    commits = history.commits_in_range(dt.date(2024, 1, 1), dt.date(2024, 2, 1), list(CommitComponent))

    assert [c[CommitComponent.SUBJECT] for c in commits] == ["third", "second", "first"]
    first = commits[-1]
    assert len(first[CommitComponent.FULL_HASH]) == 40
    assert first[CommitComponent.FULL_HASH].startswith(first[CommitComponent.HASH])
    assert first[CommitComponent.AUTHOR_NAME] == "Ann"


def test_commits_in_range_until_is_exclusive(dated_repo: Path) -> None:
    history = GitHistory(dated_repo)

    commits = history.commits_in_range(dt.date(2024, 1, 10), dt.date(2024, 1, 15), [CommitComponent.SUBJECT])

    assert commits == [{CommitComponent.SUBJECT: "first"}]


def test_commits_in_range_excludes_commit_at_until_midnight(tmp_path: Path) -> None:
    repo = init_repo(tmp_path / "repo")
    commit_file(repo, "a.txt", "1\n", "at-since", date="2024-01-10T00:00:00Z")
    commit_file(repo, "a.txt", "2\n", "inside", date="2024-01-14T12:00:00Z")
    commit_file(repo, "a.txt", "3\n", "last-second", date="2024-01-14T23:59:59Z")
    commit_file(repo, "a.txt", "4\n", "at-until", date="2024-01-15T00:00:00Z")

    commits = GitHistory(repo).commits_in_range(dt.date(2024, 1, 10), dt.date(2024, 1, 15), [CommitComponent.SUBJECT])

    assert [c[CommitComponent.SUBJECT] for c in commits] == ["last-second", "inside", "at-since"]


def test_last_second_before() -> None:
    assert last_second_before(dt.date(2024, 3, 1)) == "2024-02-29T23:59:59Z"


def test_history_from_settings(tmp_path: Path) -> None:
    settings = GitoSettings(stable_branch="release", git_timeout_s=30)

    history = GitHistory.from_settings(tmp_path, settings)

    assert history.folder == tmp_path
    assert history.stable_ref == "origin/release"
    assert history._runner.timeout_s == 30


def test_commits_in_range_empty_window(dated_repo: Path) -> None:
    history = GitHistory(dated_repo)
    assert history.commits_in_range(dt.date(2030, 1, 1), dt.date(2030, 2, 1), [CommitComponent.HASH]) == []


def test_commits_in_range_requires_components(dated_repo: Path) -> None:
    with pytest.raises(ValueError):
        GitHistory(dated_repo).commits_in_range(dt.date(2024, 1, 1), dt.date(2024, 2, 1), [])


def test_changed_line_count(dated_repo: Path) -> None:
    sha = git(dated_repo, "log", "-1", "--format=%H", "--grep=second").strip()
    assert GitHistory(dated_repo).changed_line_count(sha) == 2


def test_changed_line_count_counts_insertions_and_deletions(dated_repo: Path) -> None:
    sha = git(dated_repo, "log", "-1", "--format=%H", "--grep=third").strip()
    # "1\n" -> "3\n" is one deletion plus one insertion
    assert GitHistory(dated_repo).changed_line_count(sha) == 2


def test_changed_line_count_binary_file_counts_zero(tmp_path: Path) -> None:
    repo = init_repo(tmp_path / "bin")
    (repo / "blob.bin").write_bytes(b"\x00\x01\x02" * 10)
    git(repo, "add", "blob.bin")
    git(repo, "commit", "-m", "binary")
    sha = git(repo, "rev-parse", "HEAD").strip()

    assert GitHistory(repo).changed_line_count(sha) == 0


def test_changed_line_count_unknown_hash_raises(dated_repo: Path) -> None:
    with pytest.raises(GitCommandError):
        GitHistory(dated_repo).changed_line_count("0" * 40)


@pytest.fixture
def clone_with_branches(tmp_path: Path, remote_repo: Path) -> Path:
    seed = tmp_path / "seed"
    git(seed, "checkout", "-b", "merged-feature")
    commit_file(seed, "m.txt", "m\n", "merged work")
    git(seed, "checkout", "main")
    git(seed, "merge", "--ff-only", "merged-feature")
    git(seed, "checkout", "-b", "open-feature")
    commit_file(seed, "o.txt", "o\n", "open work", author=("Olga", "olga@example.com"))
    git(seed, "checkout", "main")
    git(seed, "push", "origin", "main", "merged-feature", "open-feature")

    clone = tmp_path / "clone"
    git(tmp_path, "clone", str(remote_repo), str(clone))
    return clone


def test_merged_and_unmerged_remote_branches(clone_with_branches: Path) -> None:
    history = GitHistory(clone_with_branches)

    assert sorted(history.merged_remote_branches()) == ["main", "merged-feature"]
    assert history.unmerged_remote_branches() == ["open-feature"]
    assert history.unmerged_remote_branches(strip_origin=False) == ["origin/open-feature"]


def test_remote_branches_empty_without_remote(dated_repo: Path) -> None:
    history = GitHistory(dated_repo)

    assert history.merged_remote_branches() == []
    assert history.unmerged_remote_branches() == []


def test_last_commit_summary(clone_with_branches: Path) -> None:
    summary = GitHistory(clone_with_branches).last_commit_summary("origin/open-feature")

    assert summary.endswith(", Olga")
    assert "ago" in summary


def test_last_commit_date_is_iso(clone_with_branches: Path) -> None:
    raw = GitHistory(clone_with_branches).last_commit_date("origin/open-feature")

    assert raw is not None
    dt.datetime.fromisoformat(raw.replace("Z", "+00:00"))
