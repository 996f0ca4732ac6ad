"""Shared fixtures: a small workspace graph and throwaway git repositories."""

import json
import subprocess
from pathlib import Path

import pytest

from turbo_ignore.graph import DependencyGraph, load_graph

PROTECTED = frozenset({"package.json", "package-lock.json", "pnpm-lock.yaml", "pyproject.toml"})


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit_files(repo: Path, files: dict[str, str], message: str = "change") -> str:
    """Write *files* (path -> content), commit them and return the new sha."""
    for rel, content in files.items():
        path = repo / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


def package_json(name: str, deps: list[str] | None = None, ignore: list[str] | None = None) -> str:
    data: dict = {"name": name, "version": "1.0.0"}
    if deps:
        data["dependencies"] = {d: "*" for d in deps}
    if ignore:
        data["turbo-ignore"] = {"ignore": ignore}
    return json.dumps(data, indent=2)


@pytest.fixture
def graph() -> DependencyGraph:
    """app -> lib -> core, plus an unrelated `other` and a `docs` site with ignores."""
    return load_graph(
        {
            "app": {"root": "packages/app", "dependencies": ["lib"]},
            "lib": {"root": "packages/lib", "dependencies": ["core"], "ignore": ["*.md", "docs/"]},
            "core": {"root": "packages/core"},
            "other": {"root": "packages/other"},
            "docs": {"root": "apps/docs", "dependencies": ["lib"]},
        }
    )


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A monorepo with app -> lib and an unrelated `other`, one commit deep."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "config", "user.name", "turbo-ignore tests")
    git(repo, "config", "user.email", "tests@example.invalid")
    git(repo, "config", "commit.gpgsign", "false")
    commit_files(
        repo,
        {
            "package.json": json.dumps({"name": "monorepo", "private": True}),
            "README.md": "# monorepo\n",
            "packages/app/package.json": package_json("app", ["lib"]),
            "packages/app/src/index.ts": "export {};\n",
            "packages/lib/package.json": package_json("lib", ignore=["docs/"]),
            "packages/lib/src/index.ts": "export const x = 1;\n",
            "packages/other/package.json": package_json("other"),
            "packages/other/README.md": "other\n",
        },
        "initial",
    )
    return repo
