from __future__ import annotations

from typing import Sequence


def format_command(args: Sequence[str]) -> str:
    return " ".join(["git", *args])


class GitoError(Exception):
    """Base class for every error raised by gito."""


class GitCommandError(GitoError):
    """git exited with a non-zero status."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str) -> None:
        self.command = format_command(args)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "no error output"
        super().__init__(f"{self.command} exited with status {returncode}: {detail}")


class CommandFailedError(GitoError):
    """A storage operation failed; `cause` holds the underlying execution error."""

    def __init__(self, command: str, cause: BaseException) -> None:
        self.command = command
        self.cause = cause
        super().__init__(f"Git command failed: {command}. Error: {cause}")


class DirtyStatusError(GitoError):
    def __init__(self, output: str) -> None:
        self.output = output
        super().__init__(f"Git status should be clean:\n{output}")


class CommitParseError(GitoError):
    def __init__(self, line: str, expected: int, actual: int) -> None:
        self.line = line
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} fields in log line, got {actual}: {line!r}")


class UnsafeWorkingCopyError(GitoError):
    """A non-repository directory occupies the working copy path."""


class ConfigError(GitoError, ValueError):
    pass
