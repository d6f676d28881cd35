from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from .errors import DirtyStatusError
from .git import GitRunner

logger = logging.getLogger(__name__)


class GitCommands:
    """Single git invocations used by CI scripts: tags, fetch, push and friends."""

    def __init__(self, folder: Path | str, runner: GitRunner | None = None) -> None:
        self.folder = Path(folder)
        self._runner = runner or GitRunner()

    def _git(self, args: Sequence[str]) -> str:
        return self._runner.run(args, cwd=self.folder)

    def ensure_status_clean(self) -> None:
        result = self._git(["status", "--porcelain"]).strip()
        if result:
            logger.error("Git status should be clean! Check your files:\n%s", result)
            raise DirtyStatusError(result)

    def head_tags(self) -> list[str]:
        """Local tags pointing at HEAD."""
        out = self._git(["tag", "--points-at", "HEAD"])
        return [line.strip() for line in out.splitlines() if line.strip()]

    def set_tag(self, tag: str) -> None:
        """Creates an annotated tag; does not push."""
        self._git(["tag", "-a", tag, "-m", f"gito_{tag}"])

    def remove_tag(self, tag: str) -> None:
        self._git(["tag", "-d", tag])

    def push_tag(self, tag: str) -> None:
        self._git(["rev-parse", "--verify", tag])
        self._git(["push", "origin", tag])

    def clone(self, branch: str, url: str, target_folder: str, depth: int = 1) -> None:
        self._git(["clone", "--branch", branch, "--depth", str(depth), url, target_folder])

    def add(self, path: str = ".") -> None:
        self._git(["add", path])

    def commit(self, message: str) -> None:
        self._git(["commit", "-m", message])

    def push(self, options: Sequence[str] = (), destination: str = "", branch: str = "") -> None:
        self._git(["push", *options, *[a for a in (destination, branch) if a]])

    def branch(self, name: str, options: Sequence[str] = ()) -> None:
        self._git(["branch", *options, name])

    def checkout(self, branch: str, options: Sequence[str] = ()) -> None:
        self._git(["checkout", *options, branch])

    def fetch(self, all: bool = True, prune: bool = True, tags: bool = False, depth: int | None = None) -> None:
        """Fetch from remotes.

        `depth` > 0 truncates history to that many commits; 0 or less fetches
        the full history with `--unshallow`.
        """
        args = ["fetch"]
        if all:
            args.append("--all")
        if prune:
            args.append("--prune")
        if tags:
            args.append("--tags")
        if depth is not None:
            args.extend(["--depth", str(depth)] if depth > 0 else ["--unshallow"])
        self._git(args)

    def remove_remote_branch(self, branch: str) -> None:
        self._git(["push", "--delete", "origin", branch])
