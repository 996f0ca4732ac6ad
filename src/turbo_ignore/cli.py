"""Decide whether a workspace needs to build for the current change.

Usage:
    turbo-ignore web                        # diff vs $TURBO_IGNORE_BASE or origin/main
    turbo-ignore web --base HEAD~1          # diff vs previous commit
    turbo-ignore web --force                # always build
    turbo-ignore --list-affected            # JSON list of every affected workspace

Exit codes: 0 build, 1 skip, 2 configuration or git error.
"""

import argparse
import json
import logging
import pathlib
import sys

from turbo_ignore.changes import ChangeSet, resolve_changes
from turbo_ignore.classify import Classification, classify
from turbo_ignore.config import Settings, load_settings
from turbo_ignore.decide import DecideOptions, affected_workspaces, decide
from turbo_ignore.errors import TurboIgnoreError
from turbo_ignore.git import GitRepository
from turbo_ignore.graph import DependencyGraph, load_graph
from turbo_ignore.report import EXIT_BUILD, report, report_error, verdict_to_dict
from turbo_ignore.workspaces import discover_workspaces

logger = logging.getLogger("turbo_ignore")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="turbo-ignore", description="Decide whether a workspace needs to build")
    parser.add_argument("target", nargs="?", help="Workspace to decide for")
    parser.add_argument("--base", help="Ref of the last successful build (default: $TURBO_IGNORE_BASE or origin/main)")
    parser.add_argument("--head", help="Ref being built (default: HEAD)")
    parser.add_argument(
        "--fallback",
        dest="default_branch",
        help="Ref to diff against when --base is not in local history (default: origin/main)",
    )
    parser.add_argument("--force", action="store_true", help="Always build")
    parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="GLOB",
        help="Extra root-level glob that never triggers a build (repeatable)",
    )
    parser.add_argument(
        "--manifest",
        action="append",
        default=[],
        dest="manifests",
        metavar="NAME",
        help="File name that can never be ignored; replaces the default set (repeatable)",
    )
    parser.add_argument(
        "--include-uncommitted",
        action="store_true",
        help="Also consider staged, unstaged and untracked changes",
    )
    parser.add_argument("--root", default=".", help="Any directory inside the repository (default: .)")
    parser.add_argument("--json", action="store_true", help="Print the verdict as JSON")
    parser.add_argument(
        "--list-affected",
        action="store_true",
        help="Print every affected workspace as JSON instead of deciding for one target",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    return parser


def build_output(
    graph: DependencyGraph,
    change_set: ChangeSet,
    classification: Classification,
    run_all: bool = False,
) -> dict:
    """Structured output for --list-affected."""
    affected = set(graph.names) if run_all else affected_workspaces(change_set, classification, graph)
    packages = sorted(affected)
    return {
        "all": affected == set(graph.names),
        "packages": packages,
        "paths": [graph[name].root for name in packages],
        "provenance": str(change_set.provenance),
    }


def force_flags(settings: Settings, repo: GitRepository) -> tuple[bool, bool]:
    """Combine --force / $TURBO_IGNORE_FORCE with directives in the head commit message."""
    message = repo.head_message(settings.head)
    force_build = settings.force or settings.build_token in message
    force_skip = not force_build and settings.skip_token in message
    if force_build and not settings.force:
        logger.info("build forced by commit message")
    if force_skip:
        logger.info("skip forced by commit message")
    return force_build, force_skip


def run(args: argparse.Namespace) -> int:
    repo = GitRepository(pathlib.Path(args.root))
    settings = load_settings(
        repo.root,
        {
            "base": args.base,
            "head": args.head,
            "default_branch": args.default_branch,
            "force": args.force,
            "ignore": args.ignore,
            "manifests": args.manifests,
            "include_uncommitted": args.include_uncommitted,
        },
    )
    graph = load_graph(discover_workspaces(repo.root))
    logger.debug("discovered %d workspace(s)", len(graph))

    change_set = resolve_changes(
        settings.base_ref,
        settings.head,
        repo,
        include_uncommitted=settings.include_uncommitted,
        fallback_ref=settings.default_branch,
    )
    logger.debug("%d changed path(s), provenance %s", len(change_set), change_set.provenance)
    classification = classify(
        change_set,
        graph,
        protected_files=settings.manifests,
        global_ignores=settings.ignore,
    )
    force_build, force_skip = force_flags(settings, repo)

    if args.list_affected:
        print(json.dumps(build_output(graph, change_set, classification, run_all=force_build), indent=2))
        return EXIT_BUILD

    verdict = decide(
        args.target,
        change_set,
        classification,
        graph,
        DecideOptions(force_build=force_build, force_skip=force_skip, protected_files=settings.manifests),
    )
    code, message = report(verdict)
    if args.json:
        print(json.dumps(verdict_to_dict(verdict), indent=2))
    else:
        print(message)
    return code


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.target and not args.list_affected:
        parser.error("a target workspace is required unless --list-affected is given")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return run(args)
    except TurboIgnoreError as exc:
        code, message = report_error(exc)
    except Exception as exc:
        # a crash must never exit 1, which CI reads as "skip"
        logger.debug("unexpected failure", exc_info=True)
        code, message = report_error(exc)
    print(message, file=sys.stderr)
    return code


if __name__ == "__main__":
    sys.exit(main())
