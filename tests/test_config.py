"""Tests for configuration management."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from consensuswarn.config import (
    COMMENT_TITLE,
    GitHubConfig,
    ProjectConfig,
    find_project_root,
    get_config_value,
    load_config,
    parse_root_list,
    resolve_base_dir,
    save_config,
    set_config_value,
)
from consensuswarn.exceptions import ConfigError


class TestConfig:
    def test_default_config(self):
        config = ProjectConfig()
        assert config.roots == []
        assert config.strip_prefix == "a/"
        assert config.comment_title == COMMENT_TITLE
        assert config.github.mergeable_retries == 6

    def test_save_and_load(self, tmp_path: Path):
        config = ProjectConfig(roots=["pkg/mod.F"])
        config.github.repository = "owner/repo"

        save_config(tmp_path, config)
        loaded = load_config(tmp_path)

        assert loaded.roots == ["pkg/mod.F"]
        assert loaded.github.repository == "owner/repo"

    def test_relative_base_dir(self, tmp_path: Path):
        save_config(tmp_path, ProjectConfig(base_dir="src"))
        config = load_config(tmp_path)
        assert config.base_dir == "src"
        assert resolve_base_dir(config, tmp_path) == str(tmp_path / "src")

    def test_set_keeps_relative_base_dir(self, tmp_path: Path):
        save_config(tmp_path, ProjectConfig(base_dir="src"))
        config = set_config_value(load_config(tmp_path), "github.repository", "o/r")
        save_config(tmp_path, config)

        data = json.loads((tmp_path / ".consensuswarn" / "config.json").read_text())
        assert data["base_dir"] == "src"
        assert data["github"]["repository"] == "o/r"

    def test_defaults_without_file(self, tmp_path: Path):
        config = load_config(tmp_path)
        assert config.base_dir == "."
        assert resolve_base_dir(config, tmp_path) == str(tmp_path)
        assert resolve_base_dir(load_config(None), None) == "."

    def test_get_config_value(self):
        config = ProjectConfig(roots=["a/b.F"])
        assert get_config_value(config, "roots") == ["a/b.F"]
        assert get_config_value(config, "github.token_env") == "GITHUB_TOKEN"
        with pytest.raises(KeyError):
            get_config_value(config, "github.nope")

    def test_invalid_json(self, tmp_path: Path):
        (tmp_path / ".consensuswarn").mkdir()
        (tmp_path / ".consensuswarn" / "config.json").write_text("{not json")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_find_project_root(self, tmp_path: Path):
        assert find_project_root(tmp_path) is None

        (tmp_path / ".consensuswarn").mkdir()
        assert find_project_root(tmp_path) == tmp_path

        sub = tmp_path / "src" / "module"
        sub.mkdir(parents=True)
        assert find_project_root(sub) == tmp_path

    def test_set_config_value(self):
        config = ProjectConfig()
        updated = set_config_value(config, "github.repository", "owner/repo")
        assert updated.github.repository == "owner/repo"

    def test_set_config_nested_int(self):
        updated = set_config_value(ProjectConfig(), "github.mergeable_retries", 2)
        assert updated.github.mergeable_retries == 2

    def test_set_config_invalid_key(self):
        with pytest.raises(KeyError):
            set_config_value(ProjectConfig(), "nonexistent.key", "value")

    def test_set_roots_from_string(self):
        updated = set_config_value(ProjectConfig(), "roots", "a/b.F, a/b.T.M")
        assert updated.roots == ["a/b.F", "a/b.T.M"]


class TestRootList:
    def test_split(self):
        assert parse_root_list("a/b.F,c.T.M") == ["a/b.F", "c.T.M"]

    def test_empty_entry(self):
        with pytest.raises(ConfigError):
            parse_root_list("a/b.F,,c.G")


class TestGitHubConfig:
    def test_token_from_env(self, monkeypatch):
        monkeypatch.setenv("MY_TOKEN", "secret")
        assert GitHubConfig(token_env="MY_TOKEN").token == "secret"

    def test_hostname(self):
        assert GitHubConfig().hostname == "github.com"
        assert GitHubConfig(api_url="https://ghe.example.com/api/v3").hostname == "ghe.example.com"
