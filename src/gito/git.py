from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Sequence

from .errors import GitCommandError, format_command

logger = logging.getLogger(__name__)


def run_git(args: Sequence[str], cwd: Path, timeout_s: float | None = None) -> tuple[int, str, str]:
    logger.debug("%s (cwd=%s)", format_command(args), cwd)
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=timeout_s,
    )
    return proc.returncode, proc.stdout, proc.stderr


class GitRunner:
    """Runs git in a working directory and fails on a non-zero exit.

    Output is returned as captured; callers trim what they need.
    """

    def __init__(self, timeout_s: float | None = None) -> None:
        self.timeout_s = timeout_s

    def run(self, args: Sequence[str], cwd: Path) -> str:
        code, out, err = run_git(args, cwd=cwd, timeout_s=self.timeout_s)
        if code != 0:
            raise GitCommandError(args, code, err or out)
        return out

    def ok(self, args: Sequence[str], cwd: Path) -> bool:
        code, _, _ = run_git(args, cwd=cwd, timeout_s=self.timeout_s)
        return code == 0


def get_remote_url(repo: Path, name: str = "origin", timeout_s: float | None = None) -> str:
    code, out, _ = run_git(["config", "--get", f"remote.{name}.url"], cwd=repo, timeout_s=timeout_s)
    if code == 0:
        return out.strip()
    return ""


def has_git_metadata(path: Path) -> bool:
    # `.git` is a file for worktrees and submodules
    return (path / ".git").exists()
