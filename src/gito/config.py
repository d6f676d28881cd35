from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Any

from .errors import ConfigError

DEFAULT_CONFIG_PATH = Path("gito.json")


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    return json.loads(config_path.read_text(encoding="utf-8"))


def save_config(config_path: Path, config: dict) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(config, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def _optional_str(config: dict, key: str) -> str | None:
    value = config.get(key)
    if value is None:
        return None
    s = str(value).strip()
    return s or None


@dataclasses.dataclass(frozen=True)
class GitoSettings:
    local_path: str | None = None
    remote_url: str | None = None
    branch: str = "main"
    stable_branch: str = "main"
    stable_branches: tuple[str, ...] = ("main", "release")
    stale_days_threshold: int = 30
    replace_non_repo: bool = True
    git_timeout_s: float | None = None

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "GitoSettings":
        defaults = cls()

        try:
            threshold = int(config.get("stale_days_threshold", defaults.stale_days_threshold))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"stale_days_threshold must be an integer: {config.get('stale_days_threshold')!r}") from exc
        if threshold < 0:
            raise ConfigError(f"stale_days_threshold must be >= 0, got {threshold}")

        timeout_raw = config.get("git_timeout_s")
        timeout: float | None = None
        if timeout_raw is not None:
            try:
                timeout = float(timeout_raw)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"git_timeout_s must be a number: {timeout_raw!r}") from exc
            if timeout <= 0:
                raise ConfigError(f"git_timeout_s must be > 0, got {timeout}")

        replace_non_repo = config.get("replace_non_repo", defaults.replace_non_repo)
        if not isinstance(replace_non_repo, bool):
            raise ConfigError(f"replace_non_repo must be true or false: {replace_non_repo!r}")

        stable_branches_raw = config.get("stable_branches")
        if stable_branches_raw is None:
            stable_branches = defaults.stable_branches
        elif isinstance(stable_branches_raw, list):
            stable_branches = tuple(str(b).strip() for b in stable_branches_raw if str(b).strip())
        else:
            raise ConfigError(f"stable_branches must be a list: {stable_branches_raw!r}")

        return cls(
            local_path=_optional_str(config, "local_path"),
            remote_url=_optional_str(config, "remote_url"),
            branch=_optional_str(config, "branch") or defaults.branch,
            stable_branch=_optional_str(config, "stable_branch") or defaults.stable_branch,
            stable_branches=stable_branches,
            stale_days_threshold=threshold,
            replace_non_repo=replace_non_repo,
            git_timeout_s=timeout,
        )

    @classmethod
    def load(cls, config_path: Path = DEFAULT_CONFIG_PATH) -> "GitoSettings":
        return cls.from_dict(load_config(config_path))

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["stable_branches"] = list(self.stable_branches)
        return data
