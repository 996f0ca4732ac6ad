"""Exit codes and status lines for a verdict."""

from turbo_ignore.changes import Provenance
from turbo_ignore.decide import Outcome, Verdict
from turbo_ignore.errors import TurboIgnoreError

EXIT_BUILD = 0
EXIT_SKIP = 1
EXIT_ERROR = 2

MAX_LISTED_PATHS = 10


def _display(path: str) -> str:
    """Render undecodable filename bytes as \\x escapes so the line can be printed."""
    return path.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")


def _describe_paths(paths: tuple[str, ...]) -> str:
    shown = ", ".join(_display(p) for p in paths[:MAX_LISTED_PATHS])
    if len(paths) > MAX_LISTED_PATHS:
        shown += f" ... and {len(paths) - MAX_LISTED_PATHS} more"
    return shown


def report(verdict: Verdict) -> tuple[int, str]:
    if verdict.outcome is Outcome.BUILD:
        code, message = EXIT_BUILD, f"✅ Building '{verdict.target}' ({verdict.reason})"
    else:
        code, message = EXIT_SKIP, f"⏭️ Skipping '{verdict.target}' ({verdict.reason})"

    if verdict.sources:
        message += f" via {', '.join(verdict.sources)}"
    if verdict.paths:
        message += f": {_describe_paths(verdict.paths)}"
    if verdict.provenance is not Provenance.DIFF_RANGE:
        message += f" [changes: {verdict.provenance}]"
    return code, message


def report_error(exc: Exception) -> tuple[int, str]:
    """Every fatal error, expected or not, exits with EXIT_ERROR."""
    if isinstance(exc, TurboIgnoreError):
        return EXIT_ERROR, f"❌ {type(exc).__name__}: {exc}"
    return EXIT_ERROR, f"❌ unexpected {type(exc).__name__}: {exc}"


def verdict_to_dict(verdict: Verdict) -> dict:
    code, message = report(verdict)
    return {
        "target": verdict.target,
        "build": verdict.should_build,
        "outcome": str(verdict.outcome),
        "reason": str(verdict.reason),
        "paths": list(verdict.paths),
        "sources": list(verdict.sources),
        "provenance": str(verdict.provenance),
        "exit_code": code,
        "message": message,
    }
