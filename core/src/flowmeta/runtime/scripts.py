from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from flowmeta.contracts import ScriptFile

logger = logging.getLogger("flowmeta.runtime.scripts")


class ScriptNotFoundError(FileNotFoundError):
    pass


class FileScriptLocator:
    """
    ScriptLocator reading the main script straight from the local filesystem.
    """

    def resolve(self, path: str | Path) -> ScriptFile:
        script_path = Path(path).expanduser().absolute()
        if not script_path.is_file():
            raise ScriptNotFoundError(f"Script file does not exist: {script_path}")
        try:
            content = script_path.read_bytes()
        except OSError as exc:
            raise ScriptNotFoundError(f"Cannot read script file {script_path}: {exc}") from exc
        logger.debug("Resolved script %s (%d bytes)", script_path, len(content))
        return ScriptFile(absolute_path=script_path, name=script_path.name, content=content)


def script_checksum(content: bytes) -> str:
    """Identity hash of a script's raw content, used for change detection only."""
    return hashlib.md5(content, usedforsecurity=False).hexdigest()
