from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any


class DictNamespace:
    """
    In-memory SharedNamespace.

    One instance per run; nothing is shared between instances.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._bindings: dict[str, Any] = dict(initial or {})

    def get(self, name: str, default: Any = None) -> Any:
        return self._bindings.get(name, default)

    def set(self, name: str, value: Any) -> None:
        self._bindings[name] = value

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._bindings))

    def __len__(self) -> int:
        return len(self._bindings)
