"""Map changed paths to the workspaces that own them."""

import posixpath
from collections.abc import Iterable
from dataclasses import dataclass, field

import pathspec

from turbo_ignore.changes import ChangeSet
from turbo_ignore.graph import DependencyGraph


@dataclass(frozen=True)
class Classification:
    workspaces: dict[str, tuple[str, ...]] = field(default_factory=dict)
    root: tuple[str, ...] = ()
    ignored: tuple[str, ...] = ()

    def paths_for(self, name: str) -> tuple[str, ...]:
        return self.workspaces.get(name, ())

    def directly_affected(self, graph: DependencyGraph) -> set[str]:
        """Workspaces with a relevant change; a root-level change touches all of them."""
        if self.root:
            return set(graph.names)
        return set(self.workspaces)


def is_protected(path: str, protected_files: Iterable[str]) -> bool:
    """Manifests and lockfiles are matched by file name and can never be ignored."""
    return posixpath.basename(path) in protected_files


def classify(
    change_set: ChangeSet,
    graph: DependencyGraph,
    *,
    protected_files: frozenset[str],
    global_ignores: Iterable[str] = (),
) -> Classification:
    global_spec = pathspec.GitIgnoreSpec.from_lines(global_ignores)
    matched: dict[str, list[str]] = {}
    root: list[str] = []
    ignored: list[str] = []

    for path in change_set.paths:
        workspace = graph.workspace_for_path(path)
        if workspace is None:
            if global_spec.match_file(path) and not is_protected(path, protected_files):
                ignored.append(path)
            else:
                root.append(path)
            continue

        if workspace.ignore_spec.match_file(workspace.relative(path)) and not is_protected(path, protected_files):
            ignored.append(path)
            continue
        matched.setdefault(workspace.name, []).append(path)

    return Classification(
        workspaces={name: tuple(paths) for name, paths in matched.items()},
        root=tuple(root),
        ignored=tuple(ignored),
    )
