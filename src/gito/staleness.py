from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path

from .config import GitoSettings
from .history import GitHistory
from .models import BranchInfo, StaleBranch

logger = logging.getLogger(__name__)

DEFAULT_DAYS_THRESHOLD = 30


def parse_commit_date(value: str) -> dt.datetime:
    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    d = dt.datetime.fromisoformat(s)
    if d.tzinfo is None:
        d = d.replace(tzinfo=dt.timezone.utc)
    return d


def age_in_days(commit_date: dt.datetime, now: dt.datetime) -> int:
    return (now - commit_date).days


def _now(now: dt.datetime | None) -> dt.datetime:
    if now is None:
        return dt.datetime.now(dt.timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=dt.timezone.utc)
    return now


def _branch_ages(history: GitHistory, now: dt.datetime) -> list[tuple[str, int]]:
    ages: list[tuple[str, int]] = []
    # the fully qualified name is needed for per-branch log queries
    for branch in history.unmerged_remote_branches(strip_origin=False):
        raw = history.last_commit_date(branch)
        if raw is None:
            continue
        try:
            commit_date = parse_commit_date(raw)
        except ValueError:
            logger.warning("Skipping %s: unparsable commit date %r", branch, raw)
            continue
        ages.append((branch, age_in_days(commit_date, now)))
    return ages


def stale_branches(
    history: GitHistory,
    days_threshold: int = DEFAULT_DAYS_THRESHOLD,
    now: dt.datetime | None = None,
) -> list[StaleBranch]:
    """Unmerged remote branches whose last commit is more than `days_threshold` days old."""
    stale: list[StaleBranch] = []
    for branch, age in _branch_ages(history, _now(now)):
        if age > days_threshold:
            stale.append(StaleBranch(branch_name=branch, info=history.last_commit_summary(branch)))
    return stale


def stale_branches_from_settings(
    folder: Path | str,
    settings: GitoSettings,
    now: dt.datetime | None = None,
) -> list[StaleBranch]:
    return stale_branches(GitHistory.from_settings(folder, settings), settings.stale_days_threshold, now)


def branch_infos(history: GitHistory, now: dt.datetime | None = None) -> list[BranchInfo]:
    return [
        BranchInfo(name=branch, last_commit_age_days=age, last_commit_summary=history.last_commit_summary(branch))
        for branch, age in _branch_ages(history, _now(now))
    ]
