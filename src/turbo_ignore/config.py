"""Settings resolution.

Later sources win: built-in defaults, the ``[tool.turbo-ignore]`` table of
the root ``pyproject.toml``, ``TURBO_IGNORE_*`` environment variables, then
command-line flags.
"""

import dataclasses
import os
import pathlib
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from turbo_ignore.errors import ConfigError
from turbo_ignore.workspaces import load_toml

# Manifests and lockfiles that no ignore glob can hide. Replaced wholesale
# by `manifests` in [tool.turbo-ignore] or by --manifest.
DEFAULT_MANIFESTS = frozenset(
    {
        "package.json",
        "package-lock.json",
        "npm-shrinkwrap.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "pnpm-workspace.yaml",
        "bun.lockb",
        "turbo.json",
        "pyproject.toml",
        "uv.lock",
        "poetry.lock",
        "requirements.txt",
        "Cargo.toml",
        "Cargo.lock",
    }
)

ENV_BASE = "TURBO_IGNORE_BASE"
ENV_FORCE = "TURBO_IGNORE_FORCE"
TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    base: str | None = None
    head: str = "HEAD"
    default_branch: str = "origin/main"
    manifests: frozenset[str] = DEFAULT_MANIFESTS
    ignore: tuple[str, ...] = ()
    include_uncommitted: bool = False
    force: bool = False
    build_token: str = "[turbo-ignore build]"
    skip_token: str = "[turbo-ignore skip]"

    @property
    def base_ref(self) -> str:
        """The ref to diff against: the last successful build, else the default branch."""
        return self.base or self.default_branch


FILE_KEYS = {
    "base": str,
    "head": str,
    "default-branch": str,
    "manifests": list,
    "ignore": list,
    "include-uncommitted": bool,
    "build-token": str,
    "skip-token": str,
}


def _coerce(key: str, value: Any) -> Any:
    expected = FILE_KEYS[key]
    if not isinstance(value, expected):
        raise ConfigError(f"[tool.turbo-ignore] {key} must be a {expected.__name__}")
    if expected is list:
        if not all(isinstance(v, str) for v in value):
            raise ConfigError(f"[tool.turbo-ignore] {key} must be a list of strings")
        return frozenset(value) if key == "manifests" else tuple(value)
    return value


def from_file(settings: Settings, root: pathlib.Path) -> Settings:
    path = root / "pyproject.toml"
    if not path.is_file():
        return settings
    tool = load_toml(path).get("tool", {})
    table = tool.get("turbo-ignore", {}) if isinstance(tool, dict) else None
    if not isinstance(table, dict):
        raise ConfigError(f"{path}: [tool.turbo-ignore] must be a table")
    unknown = sorted(set(table) - set(FILE_KEYS))
    if unknown:
        raise ConfigError(f"{path}: unknown [tool.turbo-ignore] key(s): {', '.join(unknown)}")
    changes = {key.replace("-", "_"): _coerce(key, value) for key, value in table.items()}
    return dataclasses.replace(settings, **changes)


def from_env(settings: Settings, environ: Mapping[str, str]) -> Settings:
    changes: dict[str, Any] = {}
    if environ.get(ENV_BASE):
        changes["base"] = environ[ENV_BASE]
    if environ.get(ENV_FORCE, "").strip().lower() in TRUTHY:
        changes["force"] = True
    return dataclasses.replace(settings, **changes)


def load_settings(
    root: pathlib.Path,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Resolve settings for the repository at *root*.

    ``overrides`` holds command-line values; ``None`` entries mean the flag
    was not given. Extra ignore patterns are appended to the configured
    ones rather than replacing them.
    """
    settings = from_file(Settings(), root)
    settings = from_env(settings, os.environ if environ is None else environ)

    changes: dict[str, Any] = {}
    for key, value in (overrides or {}).items():
        if value is None or value == [] or value is False:
            continue
        if key == "ignore":
            changes["ignore"] = (*settings.ignore, *value)
        elif key == "manifests":
            changes["manifests"] = frozenset(value)
        else:
            changes[key] = value
    return dataclasses.replace(settings, **changes)
