from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ScriptFile:
    """
    Resolved main script of a run.

    `content` holds the raw bytes as read from disk.
    """

    absolute_path: Path
    name: str
    content: bytes

    @property
    def parent(self) -> Path:
        return self.absolute_path.parent


@dataclass(frozen=True, slots=True)
class RepositoryInfo:
    repository_url: str | None
    commit_id: str | None
    revision: str | None
