"""git collaborator for the change set resolver.

Wraps the ``git`` executable. A ref that does not resolve is reported as
``None`` so the resolver can fall back; anything that means git cannot be
queried at all raises VersionControlError.
"""

import logging
import pathlib
import subprocess

from turbo_ignore.errors import VersionControlError

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 30


def _split_nul(output: str) -> list[str]:
    return [p for p in output.split("\0") if p]


class GitRepository:
    def __init__(self, path: pathlib.Path | str = ".") -> None:
        self.root = pathlib.Path(path)
        if not self.root.is_dir():
            raise VersionControlError(f"not a directory: {self.root}")
        toplevel = self._run("rev-parse", "--show-toplevel").stdout.strip()
        self.root = pathlib.Path(toplevel)

    def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        cmd = ["git", *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=self.root,
                capture_output=True,
                text=True,
                encoding="utf-8",
                # git paths are raw bytes; undecodable ones must still classify
                errors="surrogateescape",
                timeout=GIT_TIMEOUT,
            )
        except FileNotFoundError as exc:
            raise VersionControlError("git is not installed or not available in PATH") from exc
        except subprocess.TimeoutExpired as exc:
            raise VersionControlError(f"git {args[0]} timed out after {GIT_TIMEOUT}s") from exc

        if check and result.returncode != 0:
            stderr = result.stderr.strip()
            raise VersionControlError(f"git {' '.join(args)} failed: {stderr or f'exit {result.returncode}'}")
        return result

    def resolve_commit(self, ref: str) -> str | None:
        """Return the commit sha for *ref*, or None if it is not in local history."""
        result = self._run("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}", check=False)
        if result.returncode != 0:
            logger.debug("ref %s does not resolve", ref)
            return None
        return result.stdout.strip()

    def changed_paths(self, base: str, head: str) -> list[str]:
        # --no-renames reports a move as delete + add so both owners see it
        result = self._run("diff", "--name-only", "--no-renames", "-z", base, head)
        return _split_nul(result.stdout)

    def initial_commit(self, head: str = "HEAD") -> str:
        roots = self._run("rev-list", "--max-parents=0", head).stdout.split()
        if not roots:
            raise VersionControlError(f"no root commit reachable from {head}")
        return roots[-1]

    def uncommitted_paths(self, head: str = "HEAD") -> list[str]:
        """Working tree paths that differ from *head*, plus untracked files."""
        tracked = self._run("diff", "--name-only", "--no-renames", "-z", head).stdout
        untracked = self._run("ls-files", "--others", "--exclude-standard", "-z").stdout
        return _split_nul(tracked) + _split_nul(untracked)

    def head_message(self, head: str = "HEAD") -> str:
        return self._run("log", "-1", "--format=%B", head).stdout.strip()
