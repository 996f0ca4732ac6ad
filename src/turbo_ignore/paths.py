import posixpath
import re

DRIVE_PATH = re.compile(r"[A-Za-z]:/")


def normalize_path(path: str) -> str:
    """Return *path* as a repository-relative POSIX path.

    Blank entries normalize to ``""``. Raises ValueError for absolute paths
    and paths that climb out of the repository root.
    """
    if not path.strip():
        return ""
    cleaned = path.replace("\\", "/")
    if cleaned.startswith("/") or DRIVE_PATH.match(cleaned):
        raise ValueError(f"absolute path not allowed: {path!r}")
    normalized = posixpath.normpath(cleaned)
    if normalized == ".." or normalized.startswith("../"):
        raise ValueError(f"path escapes the repository root: {path!r}")
    return "" if normalized == "." else normalized


def parent_dirs(path: str) -> list[str]:
    """Directories containing *path*, deepest first."""
    parts = path.split("/")[:-1]
    return ["/".join(parts[:i]) for i in range(len(parts), 0, -1)]
