"""Turn a git ref range into a ChangeSet.

An unresolvable base ref is not an error: the resolver diffs against a
fallback instead and tags the result ``fallback-full`` so the decision
engine knows the verdict has to stay conservative.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from turbo_ignore.errors import VersionControlError
from turbo_ignore.paths import normalize_path

logger = logging.getLogger(__name__)


class Provenance(StrEnum):
    DIFF_RANGE = "diff-range"
    FALLBACK_FULL = "fallback-full"
    FALLBACK_UNCOMMITTED = "fallback-uncommitted"


class Repository(Protocol):
    def resolve_commit(self, ref: str) -> str | None: ...

    def changed_paths(self, base: str, head: str) -> list[str]: ...

    def initial_commit(self, head: str = "HEAD") -> str: ...

    def uncommitted_paths(self, head: str = "HEAD") -> list[str]: ...


@dataclass(frozen=True)
class ChangeSet:
    paths: tuple[str, ...] = ()
    provenance: Provenance = Provenance.DIFF_RANGE
    base: str | None = None
    head: str | None = None

    @classmethod
    def from_paths(
        cls,
        paths: Iterable[str],
        provenance: Provenance = Provenance.DIFF_RANGE,
        base: str | None = None,
        head: str | None = None,
    ) -> "ChangeSet":
        return cls(paths=normalize_paths(paths), provenance=provenance, base=base, head=head)

    def __len__(self) -> int:
        return len(self.paths)

    def __bool__(self) -> bool:
        return bool(self.paths)


def normalize_paths(paths: Iterable[str]) -> tuple[str, ...]:
    """Normalize separators and drop duplicates, keeping first-seen order."""
    seen: dict[str, None] = {}
    for raw in paths:
        try:
            path = normalize_path(raw)
        except ValueError as exc:
            raise VersionControlError(str(exc)) from None
        if path:
            seen.setdefault(path, None)
    return tuple(seen)


def resolve_changes(
    base_ref: str | None,
    head_ref: str,
    repo: Repository,
    *,
    include_uncommitted: bool = False,
    fallback_ref: str | None = None,
) -> ChangeSet:
    head = repo.resolve_commit(head_ref)
    if head is None:
        raise VersionControlError(f"head ref '{head_ref}' does not resolve to a commit")

    base = repo.resolve_commit(base_ref) if base_ref else None
    if base is not None:
        paths = repo.changed_paths(base, head)
        provenance = Provenance.DIFF_RANGE
    else:
        if base_ref:
            logger.warning("base ref '%s' is not in local history (shallow clone?)", base_ref)
        else:
            logger.warning("no base ref given")
        base = repo.resolve_commit(fallback_ref) if fallback_ref else None
        if base is None:
            base = repo.initial_commit(head)
            logger.warning("diffing against initial commit %s", base[:12])
        else:
            logger.warning("diffing against fallback ref '%s'", fallback_ref)
        paths = repo.changed_paths(base, head)
        provenance = Provenance.FALLBACK_FULL

    if include_uncommitted:
        pending = repo.uncommitted_paths(head)
        if pending:
            logger.info("including %d uncommitted path(s)", len(pending))
            paths = [*paths, *pending]
            if provenance is Provenance.DIFF_RANGE:
                provenance = Provenance.FALLBACK_UNCOMMITTED

    return ChangeSet.from_paths(paths, provenance, base=base, head=head)
