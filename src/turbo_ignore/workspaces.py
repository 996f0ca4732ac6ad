"""Discover workspace members and their internal dependencies.

A member is any directory below the repository root holding a named
``pyproject.toml`` or ``package.json``. Only dependencies on other members
are kept; external packages are not part of the graph.
"""

import json
import os
import pathlib
import tomllib
from typing import Any

from turbo_ignore.errors import ConfigError

MANIFEST_FILES = ("pyproject.toml", "package.json")
SKIP_DIRS = {"node_modules", "__pycache__", "venv", "dist", "build", "site-packages"}
JS_DEPENDENCY_FIELDS = ("dependencies", "devDependencies", "peerDependencies", "optionalDependencies")


def _read_text(path: pathlib.Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"{path}: cannot read: {exc}") from None


def load_toml(path: pathlib.Path) -> dict:
    try:
        return tomllib.loads(_read_text(path))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path}: invalid TOML: {exc}") from None


def load_json(path: pathlib.Path) -> dict:
    try:
        data = json.loads(_read_text(path))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path}: invalid JSON: {exc}") from None
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a JSON object")
    return data


def _table(data: dict, key: str, path: pathlib.Path) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{path}: '{key}' must be a table")
    return value


def _string_list(value: Any, what: str, path: pathlib.Path) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{path}: '{what}' must be a list of strings")
    return value


def _name(value: Any, path: pathlib.Path) -> str | None:
    if value is not None and not isinstance(value, str):
        raise ConfigError(f"{path}: 'name' must be a string")
    return value


def parse_dep_name(dep: str) -> str:
    name = dep.split("[")[0].split(";")[0].split("@")[0]
    return name.split(">")[0].split("<")[0].split("=")[0].split("!")[0].split("~")[0].strip()


def read_pyproject(path: pathlib.Path) -> tuple[str | None, list[str], list[str]]:
    data = load_toml(path)
    project = _table(data, "project", path)
    deps = [parse_dep_name(dep) for dep in _string_list(project.get("dependencies"), "dependencies", path)]
    settings = _table(_table(data, "tool", path), "turbo-ignore", path)
    ignore = _string_list(settings.get("ignore"), "tool.turbo-ignore.ignore", path)
    return _name(project.get("name"), path), deps, ignore


def read_package_json(path: pathlib.Path) -> tuple[str | None, list[str], list[str]]:
    data = load_json(path)
    deps: list[str] = []
    for key in JS_DEPENDENCY_FIELDS:
        deps.extend(_table(data, key, path))
    ignore = _string_list(_table(data, "turbo-ignore", path).get("ignore"), "turbo-ignore.ignore", path)
    return _name(data.get("name"), path), deps, ignore


READERS = {"pyproject.toml": read_pyproject, "package.json": read_package_json}


def find_manifests(root: pathlib.Path) -> list[pathlib.Path]:
    """Member manifests below *root*, skipping hidden, vendored and build directories."""
    found: list[pathlib.Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS and not d.startswith("."))
        here = pathlib.Path(dirpath)
        if here == root:
            continue
        for manifest in MANIFEST_FILES:
            if manifest in filenames:
                found.append(here / manifest)
    return found


def discover_workspaces(root: pathlib.Path) -> dict[str, dict[str, Any]]:
    """Return ``{name: {"root", "dependencies", "ignore"}}`` for every member under *root*."""
    raw: dict[str, tuple[str, list[str], list[str]]] = {}
    claimed_dirs: set[pathlib.Path] = set()

    for manifest in find_manifests(root):
        # a directory with both manifests is one member; pyproject.toml wins
        if manifest.parent in claimed_dirs:
            continue
        name, deps, ignore = READERS[manifest.name](manifest)
        if not name:
            continue
        rel_dir = manifest.parent.relative_to(root).as_posix()
        if name in raw:
            raise ConfigError(f"workspace name '{name}' is declared by both {raw[name][0]} and {rel_dir}")
        raw[name] = (rel_dir, deps, ignore)
        claimed_dirs.add(manifest.parent)

    workspace_names = set(raw)
    return {
        name: {
            "root": rel_dir,
            "dependencies": list(dict.fromkeys(d for d in deps if d in workspace_names)),
            "ignore": ignore,
        }
        for name, (rel_dir, deps, ignore) in raw.items()
    }
