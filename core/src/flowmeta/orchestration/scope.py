"""Name resolution for lifecycle handlers.

A free name used by a handler is looked up, at the moment it is read, in:

1. the descriptor's public properties,
2. the run's shared namespace (plus per-invocation bindings such as
   ``error_record``, which shadow it without writing to it),
3. the handler's lexical scope (snippet helpers and builtins; closures get
   this from Python itself),

and resolves to ``None`` when none of them binds it.
"""

from __future__ import annotations

import builtins
from collections import ChainMap
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from flowmeta.contracts import SharedNamespace

if TYPE_CHECKING:
    from flowmeta.orchestration.descriptor import RunDescriptor

ERROR_PAYLOAD_NAME = "error_record"

ResolutionSource = Literal["descriptor", "namespace", "lexical", "absent"]

_UNBOUND = object()
_EMPTY: Mapping[str, Any] = {}


@dataclass(frozen=True, slots=True)
class Resolution:
    source: ResolutionSource
    value: Any = None

    @property
    def found(self) -> bool:
        return self.source != "absent"


ABSENT = Resolution("absent")


class ScopeResolver:
    def __init__(
        self,
        descriptor: RunDescriptor,
        namespace: SharedNamespace,
        *,
        bindings: Mapping[str, Any] | None = None,
        lexical: Mapping[str, Any] | None = None,
    ) -> None:
        self._descriptor = descriptor
        self._namespace = namespace
        self._bindings = dict(bindings or {})
        self._lexical = lexical if lexical is not None else _EMPTY

    def resolve(self, name: str) -> Resolution:
        found, value = self._descriptor.lookup_property(name)
        if found:
            return Resolution("descriptor", value)

        if name in self._bindings:
            return Resolution("namespace", self._bindings[name])
        value = self._namespace.get(name, _UNBOUND)
        if value is not _UNBOUND:
            return Resolution("namespace", value)

        if name in self._lexical:
            return Resolution("lexical", self._lexical[name])

        return ABSENT

    def with_lexical(self, lexical: Mapping[str, Any]) -> ScopeResolver:
        return ScopeResolver(
            self._descriptor,
            self._namespace,
            bindings=self._bindings,
            lexical=lexical,
        )


class HandlerScope:
    """
    Attribute/item view over a ScopeResolver, passed to callable handlers.

    ``scope.command_line`` and ``scope["value_a"]`` both go through the
    resolution chain; unknown names read as None.
    """

    __slots__ = ("_resolver",)

    def __init__(self, resolver: ScopeResolver) -> None:
        object.__setattr__(self, "_resolver", resolver)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") and name.endswith("__"):
            raise AttributeError(name)
        return self._resolver.resolve(name).value

    def __getitem__(self, name: str) -> Any:
        return self._resolver.resolve(name).value

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._resolver.resolve(name).found

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("HandlerScope is read-only; bind results in the shared namespace")

    def __repr__(self) -> str:
        return "HandlerScope()"


class SnippetNamespace(dict[str, Any]):
    """
    Globals for exec-ing a source snippet handler.

    Names the snippet assigns itself are ordinary keys and win. Every other
    read, including those made from comprehensions, generator expressions and
    functions the snippet defines, reaches __missing__ and goes through the
    resolver with the helpers and builtins as its lexical scope.
    """

    def __init__(self, resolver: ScopeResolver, helpers: Mapping[str, Any]) -> None:
        super().__init__()
        self._resolver = resolver.with_lexical(ChainMap(helpers, vars(builtins)))

    def __missing__(self, name: str) -> Any:
        return self._resolver.resolve(name).value
