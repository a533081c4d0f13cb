from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from flowmeta.contracts.run_contracts.run_config import RunConfig
from flowmeta.contracts.run_contracts.script_file import RepositoryInfo, ScriptFile


@runtime_checkable
class ScriptLocator(Protocol):
    def resolve(self, path: str | Path) -> ScriptFile:
        """Return the resolved script or raise ScriptNotFoundError."""
        ...


@runtime_checkable
class VcsProvenance(Protocol):
    def lookup(self, directory: Path) -> RepositoryInfo | None:
        """Return repository facts, or None when directory is not under version control."""
        ...


@runtime_checkable
class ContainerResolver(Protocol):
    def resolve(self, config: RunConfig) -> str | None:
        """Return the effective container image, if any."""
        ...


@runtime_checkable
class SharedNamespace(Protocol):
    """
    Run-wide variable bindings populated by the executing pipeline.
    """

    def get(self, name: str, default: Any = None) -> Any:
        """Return the current binding for name, or default when unbound."""
        ...

    def set(self, name: str, value: Any) -> None:
        """Bind name to value."""
        ...

    def __contains__(self, name: object) -> bool: ...
