from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from flowmeta.contracts import RepositoryInfo, RunConfig, ScriptFile
from flowmeta.orchestration.scope import HandlerScope
from flowmeta.runtime.scripts import ScriptNotFoundError


class FakeProvenance:
    """VcsProvenance returning a fixed answer and recording queried directories."""

    def __init__(self, info: RepositoryInfo | None = None) -> None:
        self._info = info
        self.lookups: list[Path] = []

    def lookup(self, directory: Path) -> RepositoryInfo | None:
        self.lookups.append(directory)
        return self._info


class FakeContainerResolver:
    def __init__(self, image: str | None = None) -> None:
        self._image = image

    def resolve(self, config: RunConfig) -> str | None:
        return self._image


class StaticScriptLocator:
    """ScriptLocator serving in-memory scripts keyed by path."""

    def __init__(self, scripts: dict[str, bytes]) -> None:
        self._scripts = {str(Path(path).absolute()): content for path, content in scripts.items()}

    def resolve(self, path: str | Path) -> ScriptFile:
        absolute = Path(path).absolute()
        try:
            content = self._scripts[str(absolute)]
        except KeyError as e:
            raise ScriptNotFoundError(f"Script file does not exist: {absolute}") from e
        return ScriptFile(absolute_path=absolute, name=absolute.name, content=content)


class RecordingHandler:
    """
    Callable handler that reads the given names from its scope on each call.
    """

    def __init__(
        self,
        names: Sequence[str] = (),
        *,
        action: Callable[[HandlerScope], Any] | None = None,
    ) -> None:
        self._names = tuple(names)
        self._action = action
        self.calls: list[dict[str, Any]] = []

    def __call__(self, scope: HandlerScope) -> None:
        self.calls.append({name: scope[name] for name in self._names})
        if self._action is not None:
            self._action(scope)

    @property
    def called(self) -> bool:
        return bool(self.calls)
