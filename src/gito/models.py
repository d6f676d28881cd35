from __future__ import annotations

import dataclasses
import enum


class CommitComponent(str, enum.Enum):
    """Commit fields that can be requested from `git log`; values are pretty-format placeholders."""

    HASH = "h"
    FULL_HASH = "H"
    AUTHOR_NAME = "an"
    AUTHOR_EMAIL = "ae"
    SUBJECT = "s"

    @property
    def placeholder(self) -> str:
        return f"%{self.value}"


CommitRecord = dict[CommitComponent, str]


class WorkingCopyState(enum.Enum):
    ABSENT = "absent"  # path does not exist
    NON_REPO = "non_repo"  # path exists without git metadata
    REPO = "repo"


@dataclasses.dataclass(frozen=True)
class BranchInfo:
    name: str
    last_commit_age_days: int
    last_commit_summary: str


@dataclasses.dataclass(frozen=True)
class StaleBranch:
    branch_name: str
    info: str
