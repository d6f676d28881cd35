from __future__ import annotations

import datetime as dt
import logging
from collections import defaultdict

from .history import GitHistory
from .models import CommitComponent

logger = logging.getLogger(__name__)


def changed_lines_by_author(history: GitHistory, since: dt.date, until: dt.date) -> dict[str, int]:
    """Total inserted plus deleted lines per author email for commits in [since, until).

    Example: ``{"email@example.com": 120}``
    """
    commits = history.commits_in_range(
        since,
        until,
        [CommitComponent.FULL_HASH, CommitComponent.AUTHOR_EMAIL],
    )

    changed: dict[str, int] = defaultdict(int)
    for commit in commits:
        full_hash = commit.get(CommitComponent.FULL_HASH, "").strip()
        email = commit.get(CommitComponent.AUTHOR_EMAIL, "").strip()
        if not full_hash or not email:
            logger.warning("Skipping commit without hash or author email: %r", commit)
            continue
        changed[email] += history.changed_line_count(full_hash)
    return dict(changed)
