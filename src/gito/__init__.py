from __future__ import annotations

import logging

from .ci import CIContext
from .commands import GitCommands
from .config import GitoSettings, load_config, save_config
from .contributions import changed_lines_by_author
from .errors import (
    CommandFailedError,
    CommitParseError,
    ConfigError,
    DirtyStatusError,
    GitCommandError,
    GitoError,
    UnsafeWorkingCopyError,
)
from .git import GitRunner, run_git
from .history import GitHistory
from .models import BranchInfo, CommitComponent, CommitRecord, StaleBranch, WorkingCopyState
from .staleness import branch_infos, stale_branches, stale_branches_from_settings
from .storage import GitStorage

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "BranchInfo",
    "CIContext",
    "CommandFailedError",
    "CommitComponent",
    "CommitParseError",
    "CommitRecord",
    "ConfigError",
    "DirtyStatusError",
    "GitCommandError",
    "GitCommands",
    "GitHistory",
    "GitRunner",
    "GitStorage",
    "GitoError",
    "GitoSettings",
    "StaleBranch",
    "UnsafeWorkingCopyError",
    "WorkingCopyState",
    "branch_infos",
    "changed_lines_by_author",
    "load_config",
    "run_git",
    "save_config",
    "stale_branches",
    "stale_branches_from_settings",
]
