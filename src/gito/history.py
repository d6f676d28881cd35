from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import Sequence

from .config import GitoSettings
from .errors import CommitParseError
from .git import GitRunner
from .models import CommitComponent, CommitRecord

logger = logging.getLogger(__name__)

# git renders %x00 as NUL, which cannot occur in names, emails or subjects
FIELD_SEPARATOR = "\x00"


def _strip_remote(name: str, remote: str) -> str:
    prefix = f"{remote}/"
    return name[len(prefix) :] if name.startswith(prefix) else name


def parse_branch_list(output: str, *, remote: str = "origin", strip_remote: bool = True) -> list[str]:
    branches: list[str] = []
    for line in output.splitlines():
        name = line.strip()
        # skip the symbolic `origin/HEAD -> origin/main` entry
        if not name or "->" in name or name.endswith("/HEAD"):
            continue
        branches.append(_strip_remote(name, remote) if strip_remote else name)
    return branches


def parse_commit_line(line: str, components: Sequence[CommitComponent]) -> CommitRecord:
    fields = line.split(FIELD_SEPARATOR)
    if len(fields) != len(components):
        raise CommitParseError(line, expected=len(components), actual=len(fields))
    return dict(zip(components, fields))


def parse_numstat(output: str) -> int:
    """Sum insertions and deletions from `--numstat` output. Binary files (`-`) count as 0."""
    total = 0
    for line in output.splitlines():
        parts = line.split("\t", 2)
        if len(parts) < 3:
            continue
        for value in parts[:2]:
            value = value.strip()
            if value.isdigit():
                total += int(value)
    return total


def day_boundary(day: dt.date) -> str:
    return f"{day.isoformat()}T00:00:00Z"


def last_second_before(day: dt.date) -> str:
    # git's --before is inclusive
    return f"{(day - dt.timedelta(days=1)).isoformat()}T23:59:59Z"


class GitHistory:
    """Read-only history queries against a working copy."""

    def __init__(
        self,
        folder: Path | str,
        *,
        stable_branch: str = "main",
        remote: str = "origin",
        runner: GitRunner | None = None,
    ) -> None:
        self.folder = Path(folder)
        self.stable_branch = stable_branch
        self.remote = remote
        self._runner = runner or GitRunner()

    @classmethod
    def from_settings(cls, folder: Path | str, settings: GitoSettings) -> "GitHistory":
        return cls(folder, stable_branch=settings.stable_branch, runner=GitRunner(timeout_s=settings.git_timeout_s))

    def _git(self, args: Sequence[str]) -> str:
        return self._runner.run(args, cwd=self.folder)

    @property
    def stable_ref(self) -> str:
        return f"{self.remote}/{self.stable_branch}"

    def _remote_branches(self, mode: str, strip_origin: bool) -> list[str]:
        if not self._runner.ok(["rev-parse", "--verify", "--quiet", self.stable_ref], cwd=self.folder):
            logger.debug("%s does not resolve, no remote branches to compare", self.stable_ref)
            return []
        out = self._git(["--no-pager", "branch", "-r", mode, self.stable_ref])
        return parse_branch_list(out, remote=self.remote, strip_remote=strip_origin)

    def merged_remote_branches(self, strip_origin: bool = True) -> list[str]:
        return self._remote_branches("--merged", strip_origin)

    def unmerged_remote_branches(self, strip_origin: bool = True) -> list[str]:
        return self._remote_branches("--no-merged", strip_origin)

    def last_commit_summary(self, branch: str) -> str:
        """Relative age and author of the newest non-merge commit, e.g. `3 weeks ago, Jane Doe`."""
        return self._git(["--no-pager", "log", "--no-merges", "-n", "1", "--format=%cr, %an", branch]).strip()

    def last_commit_date(self, branch: str) -> str | None:
        out = self._git(["--no-pager", "log", "--no-merges", "-n", "1", "--format=%cd", "--date=iso-strict", branch])
        return out.strip() or None

    def commits_in_range(
        self,
        since: dt.date,
        until: dt.date,
        components: Sequence[CommitComponent],
    ) -> list[CommitRecord]:
        """Commits in [since, until) by UTC day, newest first.

        Each record holds exactly the requested components. Lines that do not
        split into one field per component are logged and skipped.
        """
        components = list(components)
        if not components:
            raise ValueError("At least one commit component is required")
        pretty = "%x00".join(c.placeholder for c in components)
        out = self._git(
            [
                "--no-pager",
                "log",
                f"--since={day_boundary(since)}",
                f"--before={last_second_before(until)}",
                f"--pretty=format:{pretty}",
            ]
        )

        text = out.rstrip("\n")
        records: list[CommitRecord] = []
        for line in text.split("\n") if text else []:
            try:
                records.append(parse_commit_line(line, components))
            except CommitParseError as exc:
                logger.warning("Skipping commit: %s", exc)
        return records

    def changed_line_count(self, commit_full_hash: str) -> int:
        out = self._git(["--no-pager", "show", "--numstat", "--pretty=format:", commit_full_hash])
        return parse_numstat(out)
