from __future__ import annotations

import hashlib
import logging
import shutil
import subprocess
import tempfile
import threading
from pathlib import Path
from typing import Callable, Sequence

from .config import GitoSettings
from .errors import CommandFailedError, ConfigError, GitCommandError, UnsafeWorkingCopyError, format_command
from .git import GitRunner, get_remote_url, has_git_metadata
from .models import WorkingCopyState

logger = logging.getLogger(__name__)

REMOTE_NAME = "origin"
PLACEHOLDER_FILE = ".gitkeep"
INITIAL_COMMIT_MESSAGE = "Initialize storage"


def default_local_path(url: str) -> Path:
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]
    return Path(tempfile.gettempdir()) / f"gito_storage_{digest}"


class GitStorage:
    """A git working copy used as durable storage, optionally mirrored to a remote.

    With a remote URL the remote is authoritative: `reconcile` clones it, or
    resets to it, dropping anything not on the remote. Without one the working
    copy is local-only and publishing only commits.

    Every operation holds a per-instance lock, so one handle never runs two
    git commands against its working copy at the same time.
    """

    def __init__(
        self,
        local_path: Path | str,
        remote_url: str | None = None,
        branch: str = "main",
        *,
        replace_non_repo: bool = True,
        runner: GitRunner | None = None,
    ) -> None:
        self.local_path = Path(local_path)
        self.remote_url = remote_url or None
        self.branch = branch
        self.replace_non_repo = replace_non_repo
        self._runner = runner or GitRunner()
        self._lock = threading.RLock()

    @classmethod
    def from_remote(cls, url: str, branch: str = "main", **kwargs) -> "GitStorage":
        return cls(default_local_path(url), remote_url=url, branch=branch, **kwargs)

    @classmethod
    def from_settings(cls, settings: GitoSettings) -> "GitStorage":
        runner = GitRunner(timeout_s=settings.git_timeout_s)
        if settings.local_path:
            return cls(
                settings.local_path,
                remote_url=settings.remote_url,
                branch=settings.branch,
                replace_non_repo=settings.replace_non_repo,
                runner=runner,
            )
        if settings.remote_url:
            return cls.from_remote(
                settings.remote_url,
                branch=settings.branch,
                replace_non_repo=settings.replace_non_repo,
                runner=runner,
            )
        raise ConfigError("Either local_path or remote_url must be configured")

    def __repr__(self) -> str:
        return f"GitStorage(local_path={str(self.local_path)!r}, remote_url={self.remote_url!r}, branch={self.branch!r})"

    # Reconciliation

    def state(self) -> WorkingCopyState:
        if not self.local_path.exists():
            return WorkingCopyState.ABSENT
        if not has_git_metadata(self.local_path):
            return WorkingCopyState.NON_REPO
        return WorkingCopyState.REPO

    def reconcile(self) -> None:
        """Bring the working copy into a usable state. Safe to call repeatedly."""
        with self._lock:
            state = self.state()
            transitions: dict[WorkingCopyState, Callable[[], None]]
            if self.remote_url is not None:
                transitions = {
                    WorkingCopyState.ABSENT: self._clone,
                    WorkingCopyState.NON_REPO: self._replace_with_clone,
                    WorkingCopyState.REPO: self._reset_and_pull,
                }
            else:
                transitions = {
                    WorkingCopyState.ABSENT: self._init_local,
                    WorkingCopyState.NON_REPO: self._init_local,
                    WorkingCopyState.REPO: self._keep_local,
                }
            transitions[state]()

    clone_or_pull = reconcile

    def _clone(self) -> None:
        logger.info("Cloning %s to %s...", self.remote_url, self.local_path)
        parent = self.local_path.parent
        parent.mkdir(parents=True, exist_ok=True)
        self._run(["clone", "--branch", self.branch, self.remote_url, str(self.local_path)], cwd=parent)

    def _replace_with_clone(self) -> None:
        if not self.replace_non_repo:
            raise UnsafeWorkingCopyError(f"{self.local_path} exists but is not a git repository")
        logger.warning("%s exists but is not a git repository; deleting it before cloning", self.local_path)
        if self.local_path.is_dir():
            shutil.rmtree(self.local_path)
        else:
            self.local_path.unlink()
        self._clone()

    def _reset_and_pull(self) -> None:
        logger.info("Repo exists at %s, pulling...", self.local_path)
        self._run(["fetch", REMOTE_NAME, self.branch])
        # the remote wins: unpushed commits, edits and untracked files are dropped
        self._run(["reset", "--hard", f"{REMOTE_NAME}/{self.branch}"])
        self._run(["clean", "-fd"])

    def _init_local(self) -> None:
        logger.info("Initializing local repo at %s...", self.local_path)
        self.local_path.mkdir(parents=True, exist_ok=True)
        self._run(["init"])
        self._run(["symbolic-ref", "HEAD", f"refs/heads/{self.branch}"])
        # an empty repository has no HEAD to report a SHA for
        (self.local_path / PLACEHOLDER_FILE).write_text("", encoding="utf-8")
        self._run(["add", "-A"])
        self._run(["commit", "-m", INITIAL_COMMIT_MESSAGE])

    def _keep_local(self) -> None:
        logger.info("Local repo exists at %s", self.local_path)

    # Remote

    def set_remote(self, url: str) -> None:
        with self._lock:
            if self.has_remote():
                self._run(["remote", "set-url", REMOTE_NAME, url])
            else:
                self._run(["remote", "add", REMOTE_NAME, url])
            logger.info("Remote set to %s", url)

    def has_remote(self) -> bool:
        with self._lock:
            if self.state() is not WorkingCopyState.REPO:
                return False
            return bool(get_remote_url(self.local_path, REMOTE_NAME, timeout_s=self._runner.timeout_s))

    def pull(self) -> None:
        with self._lock:
            if not self.has_remote():
                logger.warning("No remote configured, cannot pull")
                return
            self._run(["pull", "--ff-only", REMOTE_NAME, self.branch])

    def reset(self, hard: bool = False) -> None:
        with self._lock:
            self._run(["reset", "--hard"] if hard else ["reset"])

    # Commits

    def commit_and_publish(self, message: str, push: bool = False) -> bool:
        """Commit everything in the working copy; push when asked and a remote exists.

        Returns False when there was nothing to commit.
        """
        with self._lock:
            logger.info("Committing changes: %s", message)
            self._run(["add", "-A"])

            status = self._run(["status", "--porcelain"])
            if not status.strip():
                logger.info("No changes to commit")
                return False

            self._run(["commit", "-m", message])

            if not push:
                return True
            if self.has_remote():
                logger.info("Pushing to remote...")
                self._run(["push", REMOTE_NAME, self.branch])
            else:
                logger.info("No remote configured, changes committed locally only")
            return True

    commit_and_push = commit_and_publish

    def is_dirty(self) -> bool:
        with self._lock:
            return bool(self._run(["status", "--porcelain"]).strip())

    def current_commit_sha(self) -> str:
        with self._lock:
            return self._run(["rev-parse", "HEAD"]).strip()

    def current_short_sha(self) -> str:
        with self._lock:
            return self._run(["rev-parse", "--short", "HEAD"]).strip()

    # Files

    def _resolve(self, path: str | Path) -> Path:
        root = self.local_path.resolve()
        target = (root / path).resolve()
        if target != root and root not in target.parents:
            raise ValueError(f"{path!s} is outside of {root}")
        return target

    def file_exists(self, path: str | Path) -> bool:
        with self._lock:
            return self._resolve(path).exists()

    def read_file(self, path: str | Path) -> bytes:
        with self._lock:
            return self._resolve(path).read_bytes()

    def write_file(self, path: str | Path, content: bytes | str) -> None:
        data = content.encode("utf-8") if isinstance(content, str) else content
        with self._lock:
            target = self._resolve(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

    def _run(self, args: Sequence[str], cwd: Path | None = None) -> str:
        try:
            return self._runner.run(args, cwd=cwd or self.local_path)
        except (GitCommandError, subprocess.TimeoutExpired, OSError) as exc:
            raise CommandFailedError(format_command(args), exc) from exc
