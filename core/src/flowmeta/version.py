from __future__ import annotations

from dataclasses import dataclass

APP_VERSION = "0.3.0"
APP_BUILD = 3012
APP_TIMESTAMP_UTC = "2026-10-12T09:41:00+00:00"


@dataclass(frozen=True, slots=True)
class ToolVersion:
    """Version stamp of the toolchain that produced a run."""

    version: str
    build: int
    timestamp: str

    def __str__(self) -> str:
        return f"{self.version} build {self.build}"


_CURRENT = ToolVersion(version=APP_VERSION, build=APP_BUILD, timestamp=APP_TIMESTAMP_UTC)


def current_tool_version() -> ToolVersion:
    return _CURRENT
