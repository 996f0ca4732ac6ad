"""Build/skip decision for a single target workspace.

Every branch that is not certain the target is unaffected resolves to
Build: an unneeded build only costs CI time, a wrongly skipped one ships a
stale artifact.
"""

from dataclasses import dataclass
from enum import StrEnum

from turbo_ignore.changes import ChangeSet, Provenance
from turbo_ignore.classify import Classification, is_protected
from turbo_ignore.errors import ConfigError
from turbo_ignore.graph import DependencyGraph


class Outcome(StrEnum):
    BUILD = "Build"
    SKIP = "Skip"


class Reason(StrEnum):
    DIRECT_CHANGE = "DirectChange"
    TRANSITIVE_CHANGE = "TransitiveChange"
    LOCKFILE_CHANGE = "LockfileChange"
    NO_RELEVANT_CHANGE = "NoRelevantChange"
    FORCED_BUILD = "ForcedBuild"
    FORCED_SKIP = "ForcedSkip"
    INSUFFICIENT_HISTORY = "InsufficientHistory"


@dataclass(frozen=True)
class DecideOptions:
    force_build: bool = False
    # Explicit opt-out from the head commit message; never inferred
    force_skip: bool = False
    protected_files: frozenset[str] = frozenset()


@dataclass(frozen=True)
class Verdict:
    target: str
    outcome: Outcome
    reason: Reason
    paths: tuple[str, ...] = ()
    sources: tuple[str, ...] = ()
    provenance: Provenance = Provenance.DIFF_RANGE

    @property
    def should_build(self) -> bool:
        return self.outcome is Outcome.BUILD


def decide(
    target_id: str,
    change_set: ChangeSet,
    classification: Classification,
    graph: DependencyGraph,
    options: DecideOptions,
) -> Verdict:
    if target_id not in graph:
        raise ConfigError(f"unknown target workspace '{target_id}'")

    def verdict(outcome: Outcome, reason: Reason, paths=(), sources=()) -> Verdict:
        return Verdict(target_id, outcome, reason, tuple(paths), tuple(sources), change_set.provenance)

    if options.force_build:
        return verdict(Outcome.BUILD, Reason.FORCED_BUILD)
    if options.force_skip:
        return verdict(Outcome.SKIP, Reason.FORCED_SKIP)

    if classification.root:
        return verdict(Outcome.BUILD, Reason.DIRECT_CHANGE, classification.root)

    own = classification.paths_for(target_id)
    if own:
        if any(is_protected(p, options.protected_files) for p in own):
            return verdict(Outcome.BUILD, Reason.LOCKFILE_CHANGE, own, [target_id])
        return verdict(Outcome.BUILD, Reason.DIRECT_CHANGE, own, [target_id])

    # sorted so the reported paths do not depend on set iteration order
    changed_deps = sorted(d for d in graph.transitive_dependencies(target_id) if classification.paths_for(d))
    if changed_deps:
        paths = [p for dep in changed_deps for p in classification.paths_for(dep)]
        return verdict(Outcome.BUILD, Reason.TRANSITIVE_CHANGE, paths, changed_deps)

    if change_set.provenance is Provenance.FALLBACK_FULL:
        return verdict(Outcome.BUILD, Reason.INSUFFICIENT_HISTORY)

    return verdict(Outcome.SKIP, Reason.NO_RELEVANT_CHANGE)


def affected_workspaces(change_set: ChangeSet, classification: Classification, graph: DependencyGraph) -> set[str]:
    """Every workspace ``decide`` would build, absent force flags."""
    if change_set.provenance is Provenance.FALLBACK_FULL:
        return set(graph.names)
    affected = classification.directly_affected(graph)
    for name in list(affected):
        affected |= graph.transitive_dependents(name)
    return affected
