"""
Git adapter.

Thin wrapper over the ``git`` executable. Every call blocks until git exits;
a non-zero exit is raised as VcsError and never retried.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Set, Tuple, Union

from ..core.exceptions import VcsError


logger = logging.getLogger(__name__)


# Diff statuses that carry two paths (source, destination)
_TWO_PATH_STATUSES = ("R", "C")


class GitRepository:
    """
    A git working tree identified by its root directory.

    Example:
        >>> repo = GitRepository("/path/inside/a/checkout")
        >>> repo.root_dir
        PosixPath('/path/inside/a/checkout')
        >>> repo.commit_hash()
        '3f2c...'
    """

    def __init__(self, repository_path: Union[str, Path]):
        """
        Resolve the repository containing ``repository_path``.

        Raises:
            VcsError: If the path is not inside a git repository
        """
        output = _run_git(Path(repository_path), ["rev-parse", "--show-toplevel"])
        self.root_dir = Path(output.decode("utf-8", errors="replace").strip())

    def __repr__(self) -> str:
        return f"GitRepository({str(self.root_dir)!r})"

    def commit_hash(self) -> str:
        """Get the current commit hash (HEAD)."""
        output = _run_git(self.root_dir, ["rev-parse", "HEAD"])
        return output.decode("utf-8", errors="replace").strip()

    def files(self) -> List[str]:
        """Get all files tracked by git, relative to the root directory."""
        output = _run_git(self.root_dir, ["ls-files", "-z"])
        return [os.fsdecode(p) for p in output.split(b"\0") if p]

    def diff_files(self, old_commit_hash: str) -> Tuple[Set[str], Set[str]]:
        """
        List paths changed between ``old_commit_hash`` and HEAD.

        Added, modified, type-changed, renamed, copied, unmerged and unknown
        statuses count as updated; deleted as removed. For a rename the old
        path is removed as well.

        Returns:
            ``(updated, removed)`` sets of paths relative to the root directory
        """
        output = _run_git(
            self.root_dir,
            ["diff", "--name-status", "-z", old_commit_hash, "HEAD"],
        )
        return parse_name_status(output)


def parse_name_status(output: bytes) -> Tuple[Set[str], Set[str]]:
    """
    Parse ``git diff --name-status -z`` output.

    Records are NUL separated: a status, then one path, or two paths for
    renames and copies.
    """
    fields = [os.fsdecode(f) for f in output.split(b"\0")]
    updated: Set[str] = set()
    removed: Set[str] = set()

    i = 0
    while i < len(fields):
        status = fields[i]
        i += 1
        if not status:
            continue

        kind = status[0]
        if kind in _TWO_PATH_STATUSES:
            if i + 1 >= len(fields):
                break
            source, destination = fields[i], fields[i + 1]
            i += 2
            updated.add(destination)
            if kind == "R":
                removed.add(source)
            continue

        if i >= len(fields):
            break
        path = fields[i]
        i += 1

        if kind == "D":
            removed.add(path)
        else:
            updated.add(path)

    # a path both deleted and re-added (rename swap) is current
    removed -= updated
    return updated, removed


def _run_git(cwd: Path, args: List[str]) -> bytes:
    command = ["git", "-C", str(cwd), *args]
    logger.debug(f"Running: {' '.join(command)}")

    try:
        result = subprocess.run(command, capture_output=True, check=False)
    except OSError as e:
        raise VcsError(f"Failed to execute git {args[0]}: {e}") from e

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise VcsError(f"git {' '.join(args)} failed in {cwd}: {stderr}")

    return result.stdout
