from __future__ import annotations

from pathlib import Path

import pytest

from gitutil import commit_file, git, init_repo


@pytest.fixture(autouse=True)
def git_identity(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> None:
    global_cfg = tmp_path_factory.mktemp("gitconfig") / "global.gitconfig"
    global_cfg.write_text("", encoding="utf-8")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(global_cfg))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Repo User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "repo@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Repo User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "repo@example.com")
    for name in ("GIT_AUTHOR_DATE", "GIT_COMMITTER_DATE", "GIT_DIR", "GIT_WORK_TREE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def remote_repo(tmp_path: Path) -> Path:
    """A bare repository with one commit on `main`."""
    bare = tmp_path / "remote.git"
    bare.mkdir()
    git(bare, "init", "--bare")
    git(bare, "symbolic-ref", "HEAD", "refs/heads/main")

    seed = init_repo(tmp_path / "seed")
    commit_file(seed, "README.md", "seed\n", "seed")
    git(seed, "remote", "add", "origin", str(bare))
    git(seed, "push", "origin", "main")
    return bare
