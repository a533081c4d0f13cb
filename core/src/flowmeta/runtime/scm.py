from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from flowmeta.contracts import RepositoryInfo

logger = logging.getLogger("flowmeta.runtime.scm")


class GitProvenance:
    """
    VcsProvenance backed by the `git` executable.

    Best-effort: a missing binary, a directory outside any work tree or any
    failing query reports "not a repository".
    """

    def __init__(self, *, git_executable: str = "git", remote: str = "origin") -> None:
        self._git = git_executable
        self._remote = remote

    def lookup(self, directory: Path) -> RepositoryInfo | None:
        try:
            self._git_output(directory, "rev-parse", "--show-toplevel")
            commit_id = self._git_output(directory, "rev-parse", "HEAD")
            revision = self._git_output(directory, "rev-parse", "--abbrev-ref", "HEAD")
        except (OSError, subprocess.CalledProcessError):
            logger.debug("No git provenance for %s", directory)
            return None

        try:
            repository_url = self._git_output(
                directory, "config", "--get", f"remote.{self._remote}.url"
            )
        except (OSError, subprocess.CalledProcessError):
            repository_url = None

        return RepositoryInfo(
            repository_url=repository_url or None,
            commit_id=commit_id or None,
            revision=None if revision in ("", "HEAD") else revision,
        )

    def _git_output(self, directory: Path, *args: str) -> str:
        result = subprocess.run(
            [self._git, "-C", str(directory), *args],
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout.strip()
