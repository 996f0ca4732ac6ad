"""Workspace dependency graph.

Workspaces are stored in a flat table; adjacency in both directions is kept
as tuples of indices into that table. The graph is built once per
invocation and never changes afterwards, so the transitive closures are
memoized on first use.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

import pathspec

from turbo_ignore.errors import ConfigError, CycleError
from turbo_ignore.paths import normalize_path, parent_dirs

WHITE, GRAY, BLACK = 0, 1, 2


@dataclass(frozen=True)
class Workspace:
    name: str
    root: str
    dependencies: tuple[str, ...] = ()
    ignore: tuple[str, ...] = field(default=(), compare=False)

    @cached_property
    def ignore_spec(self) -> pathspec.GitIgnoreSpec:
        return pathspec.GitIgnoreSpec.from_lines(self.ignore)

    def relative(self, path: str) -> str:
        return path[len(self.root) + 1 :]


class DependencyGraph:
    def __init__(self, workspaces: Iterable[Workspace]) -> None:
        self._table: list[Workspace] = list(workspaces)
        self._index: dict[str, int] = {ws.name: i for i, ws in enumerate(self._table)}
        self._roots: dict[str, int] = {ws.root: i for i, ws in enumerate(self._table)}
        self._deps: list[tuple[int, ...]] = [
            tuple(self._index[dep] for dep in ws.dependencies) for ws in self._table
        ]
        reverse: list[list[int]] = [[] for _ in self._table]
        for i, deps in enumerate(self._deps):
            for dep in deps:
                reverse[dep].append(i)
        self._rdeps: list[tuple[int, ...]] = [tuple(r) for r in reverse]
        self._dependents_cache: dict[int, frozenset[str]] = {}
        self._dependencies_cache: dict[int, frozenset[str]] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[str]:
        return (ws.name for ws in self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __getitem__(self, name: str) -> Workspace:
        return self._table[self._lookup(name)]

    @property
    def names(self) -> list[str]:
        return [ws.name for ws in self._table]

    def dependents(self, name: str) -> list[str]:
        """Workspaces declaring a direct dependency on *name*."""
        return [self._table[i].name for i in self._rdeps[self._lookup(name)]]

    def transitive_dependents(self, name: str) -> frozenset[str]:
        """Everything that must rebuild if *name* changes, excluding *name* itself."""
        return self._closure(self._lookup(name), self._rdeps, self._dependents_cache)

    def transitive_dependencies(self, name: str) -> frozenset[str]:
        """Everything *name* depends on, directly or indirectly."""
        return self._closure(self._lookup(name), self._deps, self._dependencies_cache)

    def workspace_for_path(self, path: str) -> Workspace | None:
        """Return the workspace whose root is the longest prefix of *path*."""
        for directory in parent_dirs(path):
            i = self._roots.get(directory)
            if i is not None:
                return self._table[i]
        return None

    def check_acyclic(self) -> None:
        """Three-color depth-first search over the dependency edges."""
        color = [WHITE] * len(self._table)
        path: list[int] = []

        def dfs(node: int) -> None:
            color[node] = GRAY
            path.append(node)
            for neighbor in self._deps[node]:
                if color[neighbor] == GRAY:
                    cycle = path[path.index(neighbor) :] + [neighbor]
                    raise CycleError([self._table[i].name for i in cycle])
                if color[neighbor] == WHITE:
                    dfs(neighbor)
            path.pop()
            color[node] = BLACK

        for node in range(len(self._table)):
            if color[node] == WHITE:
                dfs(node)

    def _lookup(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise ConfigError(f"unknown workspace '{name}'") from None

    def _closure(
        self,
        start: int,
        adjacency: list[tuple[int, ...]],
        cache: dict[int, frozenset[str]],
    ) -> frozenset[str]:
        if start in cache:
            return cache[start]
        seen: set[int] = set()
        queue = list(adjacency[start])
        while queue:
            node = queue.pop()
            if node not in seen:
                seen.add(node)
                queue.extend(adjacency[node])
        result = frozenset(self._table[i].name for i in seen)
        cache[start] = result
        return result


def _as_strings(value: Any, what: str, name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{name}: '{what}' must be a list of strings")
    return tuple(value)


def _parse_workspace(name: str, meta: Mapping[str, Any]) -> Workspace:
    raw_root = meta.get("root")
    if not isinstance(raw_root, str):
        raise ConfigError(f"{name}: missing workspace root")
    try:
        root = normalize_path(raw_root)
    except ValueError as exc:
        raise ConfigError(f"{name}: {exc}") from None
    if not root:
        raise ConfigError(f"{name}: workspace root cannot be the repository root")

    # dict.fromkeys keeps declaration order while dropping repeats
    dependencies = tuple(dict.fromkeys(_as_strings(meta.get("dependencies"), "dependencies", name)))
    ignore = _as_strings(meta.get("ignore"), "ignore", name)
    return Workspace(name=name, root=root, dependencies=dependencies, ignore=ignore)


def check_no_overlap(workspaces: list[Workspace]) -> None:
    """Reject workspaces whose roots are equal or nested inside one another."""
    # With a trailing slash, a root nested under another sorts directly after it
    ordered = sorted(workspaces, key=lambda ws: ws.root + "/")
    for outer, inner in zip(ordered, ordered[1:]):
        if (inner.root + "/").startswith(outer.root + "/"):
            raise ConfigError(
                f"workspace roots overlap: '{outer.name}' ({outer.root}) and '{inner.name}' ({inner.root})"
            )


def load_graph(workspace_metadata: Mapping[str, Mapping[str, Any]]) -> DependencyGraph:
    """Build and validate a DependencyGraph from discovery metadata.

    ``workspace_metadata`` maps each workspace name to a mapping with a
    ``root`` path and optional ``dependencies`` and ``ignore`` lists.
    """
    workspaces = [_parse_workspace(name, meta) for name, meta in workspace_metadata.items()]
    names = {ws.name for ws in workspaces}

    for ws in workspaces:
        for dep in ws.dependencies:
            if dep not in names:
                raise ConfigError(f"{ws.name}: depends on unknown workspace '{dep}'")

    check_no_overlap(workspaces)
    graph = DependencyGraph(workspaces)
    graph.check_acyclic()
    return graph
