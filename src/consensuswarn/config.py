"""Configuration management for ConsensusWarn."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from consensuswarn.exceptions import ConfigError

CONSENSUSWARN_DIR = ".consensuswarn"
CONFIG_FILE = "config.json"

COMMENT_TITLE = "Change potentially affects state."


class GitHubConfig(BaseModel):
    """GitHub repository and API settings."""

    repository: str = ""  # owner/name
    api_url: str = "https://api.github.com"
    token_env: str = "GITHUB_TOKEN"
    mergeable_retries: int = 6

    @property
    def token(self) -> str | None:
        if self.token_env:
            return os.environ.get(self.token_env)
        return None

    @property
    def hostname(self) -> str:
        """Host passed to `gh --hostname`, derived from the API URL."""
        host = self.api_url.split("://", 1)[-1].split("/", 1)[0]
        if host == "api.github.com":
            return "github.com"
        return host


class ProjectConfig(BaseModel):
    """Full project configuration."""

    roots: list[str] = Field(default_factory=list)
    base_dir: str = "."
    strip_prefix: str = "a/"
    comment_title: str = COMMENT_TITLE
    github: GitHubConfig = Field(default_factory=GitHubConfig)


def parse_root_list(value: str) -> list[str]:
    """Split a comma-separated root list, rejecting empty entries."""
    roots = []
    for name in value.split(","):
        name = name.strip()
        if not name:
            raise ConfigError(f"empty root in list: {value!r}")
        roots.append(name)
    return roots


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from `start` looking for a .consensuswarn directory."""
    current = (start or Path.cwd()).resolve()
    while current != current.parent:
        if (current / CONSENSUSWARN_DIR).is_dir():
            return current
        current = current.parent
    if (current / CONSENSUSWARN_DIR).is_dir():
        return current
    return None


def get_consensuswarn_dir(root: Path) -> Path:
    """Get the .consensuswarn directory for a project root."""
    return root / CONSENSUSWARN_DIR


def load_config(root: Path | None) -> ProjectConfig:
    """Load configuration from .consensuswarn/config.json, or defaults."""
    if root is None:
        return ProjectConfig()
    config_path = get_consensuswarn_dir(root) / CONFIG_FILE
    if not config_path.exists():
        return ProjectConfig()
    try:
        data = json.loads(config_path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid config file {config_path}: {e}") from e
    return ProjectConfig(**data)


def resolve_base_dir(config: ProjectConfig, root: Path | None) -> str:
    """The configured base_dir as a path, relative to `root` when not absolute."""
    if root is None:
        return config.base_dir
    return os.path.normpath(os.path.join(root, config.base_dir))


def save_config(root: Path, config: ProjectConfig) -> None:
    """Save configuration to .consensuswarn/config.json."""
    cw_dir = get_consensuswarn_dir(root)
    cw_dir.mkdir(parents=True, exist_ok=True)
    config_path = cw_dir / CONFIG_FILE
    config_path.write_text(json.dumps(config.model_dump(), indent=2))


def get_config_value(config: ProjectConfig, key: str) -> Any:
    """Read a nested config value using dot notation."""
    data: Any = config.model_dump()
    for part in key.split("."):
        if not isinstance(data, dict) or part not in data:
            raise KeyError(f"Invalid config key: {key}")
        data = data[part]
    return data


def set_config_value(config: ProjectConfig, key: str, value: Any) -> ProjectConfig:
    """Set a nested config value using dot notation (e.g., 'github.repository')."""
    parts = key.split(".")
    data = config.model_dump()
    target = data
    for part in parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            raise KeyError(f"Invalid config key: {key}")
        target = target[part]
    if parts[-1] not in target:
        raise KeyError(f"Invalid config key: {key}")
    if parts[-1] == "roots" and isinstance(value, str):
        value = parse_root_list(value)
    target[parts[-1]] = value
    return ProjectConfig(**data)
