"""Decide whether a monorepo workspace needs to build for a change set."""

from turbo_ignore.changes import ChangeSet, Provenance, resolve_changes
from turbo_ignore.classify import Classification, classify
from turbo_ignore.decide import DecideOptions, Outcome, Reason, Verdict, decide
from turbo_ignore.errors import ConfigError, CycleError, TurboIgnoreError, VersionControlError
from turbo_ignore.graph import DependencyGraph, Workspace, load_graph
from turbo_ignore.report import report

__version__ = "0.1.0"

__all__ = [
    "ChangeSet",
    "Classification",
    "ConfigError",
    "CycleError",
    "DecideOptions",
    "DependencyGraph",
    "Outcome",
    "Provenance",
    "Reason",
    "TurboIgnoreError",
    "Verdict",
    "VersionControlError",
    "Workspace",
    "classify",
    "decide",
    "load_graph",
    "report",
    "resolve_changes",
]
