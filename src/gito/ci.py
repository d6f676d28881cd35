"""Branch and commit discovery for CI jobs.

Predefined CI variables are checked before asking git, because CI checkouts
are often shallow or detached:

- GitLab: https://docs.gitlab.com/ci/variables/predefined_variables/
- GitHub: https://docs.github.com/en/actions/reference/workflows-and-actions/variables
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Mapping

from .config import GitoSettings
from .git import GitRunner

DEFAULT_STABLE_BRANCHES = ("main", "release")


class CIContext:
    def __init__(
        self,
        folder: Path | str,
        env: Mapping[str, str] | None = None,
        runner: GitRunner | None = None,
        stable_branches: Iterable[str] = DEFAULT_STABLE_BRANCHES,
    ) -> None:
        self.folder = Path(folder)
        self.env: Mapping[str, str] = os.environ if env is None else env
        self._runner = runner or GitRunner()
        self.stable_branches = tuple(stable_branches)

    @classmethod
    def from_settings(
        cls,
        folder: Path | str,
        settings: GitoSettings,
        env: Mapping[str, str] | None = None,
    ) -> "CIContext":
        return cls(
            folder,
            env=env,
            runner=GitRunner(timeout_s=settings.git_timeout_s),
            stable_branches=settings.stable_branches,
        )

    def current_branch_name(self) -> str:
        mr_branch = self.env.get("CI_MERGE_REQUEST_SOURCE_BRANCH_NAME")
        if mr_branch:
            return mr_branch

        push_branch = self.env.get("CI_COMMIT_BRANCH")
        if push_branch:
            return push_branch

        pr_branch = self.env.get("GITHUB_HEAD_REF")  # pull request
        if pr_branch:
            return pr_branch

        push_ref = self.env.get("GITHUB_REF")  # push
        if push_ref and self.env.get("GITHUB_REF_TYPE") == "branch":
            return push_ref

        return self._runner.run(["rev-parse", "--abbrev-ref", "HEAD"], cwd=self.folder).strip()

    def is_branch_stable(self, stable_branches: Iterable[str] | None = None) -> bool:
        """Tags are usually only set on stable branches; feature branches are ignored."""
        if stable_branches is None:
            stable_branches = self.stable_branches
        return self.current_branch_name() in set(stable_branches)

    def commit_sha(self) -> str:
        gitlab_sha = self.env.get("CI_COMMIT_SHORT_SHA")
        if gitlab_sha:
            return gitlab_sha

        github_sha = self.env.get("GITHUB_SHA")
        if github_sha:
            return github_sha

        return self._runner.run(["log", "-1", "--pretty=format:%h"], cwd=self.folder).strip()
