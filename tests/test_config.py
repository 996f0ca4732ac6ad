"""Tests for settings resolution."""

from pathlib import Path

import pytest

from turbo_ignore.config import DEFAULT_MANIFESTS, Settings, load_settings
from turbo_ignore.errors import ConfigError


def write_pyproject(root: Path, body: str) -> None:
    (root / "pyproject.toml").write_text(body)


class TestLoadSettings:
    def test_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path, environ={})
        assert settings == Settings()
        assert settings.base_ref == "origin/main"
        assert "package-lock.json" in settings.manifests

    def test_file_table(self, tmp_path: Path) -> None:
        write_pyproject(
            tmp_path,
            "[tool.turbo-ignore]\n"
            'default-branch = "origin/develop"\n'
            'ignore = ["*.md"]\n'
            'manifests = ["package.json"]\n'
            "include-uncommitted = true\n",
        )
        settings = load_settings(tmp_path, environ={})
        assert settings.base_ref == "origin/develop"
        assert settings.ignore == ("*.md",)
        assert settings.manifests == frozenset({"package.json"})
        assert settings.include_uncommitted is True

    def test_unknown_key(self, tmp_path: Path) -> None:
        write_pyproject(tmp_path, '[tool.turbo-ignore]\nbogus = "x"\n')
        with pytest.raises(ConfigError, match="unknown \\[tool.turbo-ignore\\] key"):
            load_settings(tmp_path, environ={})

    def test_wrong_type(self, tmp_path: Path) -> None:
        write_pyproject(tmp_path, '[tool.turbo-ignore]\nignore = "*.md"\n')
        with pytest.raises(ConfigError, match="must be a list"):
            load_settings(tmp_path, environ={})

    def test_settings_must_be_a_table(self, tmp_path: Path) -> None:
        write_pyproject(tmp_path, '[tool]\nturbo-ignore = "x"\n')
        with pytest.raises(ConfigError, match="must be a table"):
            load_settings(tmp_path, environ={})

    def test_undecodable_pyproject(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_bytes(b'[tool.turbo-ignore]\nignore = ["caf\xe9"]\n')
        with pytest.raises(ConfigError, match="cannot read"):
            load_settings(tmp_path, environ={})

    def test_env_base_and_force(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path, environ={"TURBO_IGNORE_BASE": "abc123", "TURBO_IGNORE_FORCE": "true"})
        assert settings.base_ref == "abc123"
        assert settings.force is True

    def test_env_force_falsy(self, tmp_path: Path) -> None:
        assert load_settings(tmp_path, environ={"TURBO_IGNORE_FORCE": "0"}).force is False

    def test_cli_overrides_env(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path, {"base": "HEAD~1"}, environ={"TURBO_IGNORE_BASE": "abc123"})
        assert settings.base_ref == "HEAD~1"

    def test_unset_flags_keep_lower_layers(self, tmp_path: Path) -> None:
        write_pyproject(tmp_path, '[tool.turbo-ignore]\nhead = "release"\n')
        settings = load_settings(tmp_path, {"head": None, "force": False, "manifests": []}, environ={})
        assert settings.head == "release"
        assert settings.force is False
        assert settings.manifests == DEFAULT_MANIFESTS

    def test_cli_ignore_appends(self, tmp_path: Path) -> None:
        write_pyproject(tmp_path, '[tool.turbo-ignore]\nignore = ["*.md"]\n')
        settings = load_settings(tmp_path, {"ignore": ["docs/"]}, environ={})
        assert settings.ignore == ("*.md", "docs/")

    def test_cli_manifests_replace(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path, {"manifests": ["Gemfile.lock"]}, environ={})
        assert settings.manifests == frozenset({"Gemfile.lock"})
