from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import CodeType
from typing import Any

from flowmeta.contracts import (
    DispatchResult,
    HandlerFailure,
    RunConfig,
    SharedNamespace,
)
from flowmeta.contracts.run_contracts.dispatch_result import EventKind
from flowmeta.orchestration.descriptor import DescriptorStateError, RunDescriptor
from flowmeta.orchestration.scope import (
    ERROR_PAYLOAD_NAME,
    HandlerScope,
    ScopeResolver,
    SnippetNamespace,
)

Handler = Callable[[HandlerScope], object] | str


class HandlerCompileError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class _RegisteredHandler:
    label: str
    invoke: Callable[[ScopeResolver], object]


class HandlerRegistry:
    """Append-only lists of completion and error handlers."""

    def __init__(self) -> None:
        self._handlers: dict[EventKind, list[_RegisteredHandler]] = {"complete": [], "error": []}

    def add(self, event: EventKind, handler: _RegisteredHandler) -> None:
        self._handlers[event].append(handler)

    def handlers(self, event: EventKind) -> tuple[_RegisteredHandler, ...]:
        return tuple(self._handlers[event])

    def count(self, event: EventKind) -> int:
        return len(self._handlers[event])


class EventDispatcher:
    """
    Registers and fires the run's lifecycle handlers.

    Not thread-safe: registration, completion and firing are expected on the
    thread that drives the run. Firing each event once is the caller's job.
    """

    def __init__(
        self,
        descriptor: RunDescriptor,
        namespace: SharedNamespace,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._descriptor = descriptor
        self._namespace = namespace
        self._registry = HandlerRegistry()
        self._logger = logger or logging.getLogger("flowmeta.events")

    @property
    def descriptor(self) -> RunDescriptor:
        return self._descriptor

    def on_complete(self, handler: Handler, *, helpers: Mapping[str, Any] | None = None) -> Handler:
        wrapped = _wrap_handler("complete", handler, helpers, self.count("complete"))
        self._registry.add("complete", wrapped)
        return handler

    def on_error(self, handler: Handler, *, helpers: Mapping[str, Any] | None = None) -> Handler:
        wrapped = _wrap_handler("error", handler, helpers, self.count("error"))
        self._registry.add("error", wrapped)
        return handler

    def count(self, event: EventKind) -> int:
        return self._registry.count(event)

    def register_from_config(
        self, config: RunConfig, *, helpers: Mapping[str, Any] | None = None
    ) -> None:
        for source in config.workflow.on_complete:
            self.on_complete(source, helpers=helpers)
        for source in config.workflow.on_error:
            self.on_error(source, helpers=helpers)

    def fire_complete(self) -> DispatchResult:
        if not self._descriptor.is_complete:
            raise DescriptorStateError(
                "Completion handlers fired before the run was marked complete"
            )
        return self._fire("complete", bindings=None)

    def fire_error(self, payload: Any) -> DispatchResult:
        self._descriptor.record_error(_error_message(payload), report=_error_report(payload))
        return self._fire("error", bindings={ERROR_PAYLOAD_NAME: payload})

    def _fire(self, event: EventKind, *, bindings: Mapping[str, Any] | None) -> DispatchResult:
        handlers = self._registry.handlers(event)
        if not handlers:
            return DispatchResult(event=event)

        resolver = ScopeResolver(self._descriptor, self._namespace, bindings=bindings)
        failures: list[HandlerFailure] = []
        for index, handler in enumerate(handlers):
            try:
                handler.invoke(resolver)
            except Exception as exc:
                self._logger.warning(
                    "%s handler #%d (%s) failed for run %s",
                    event,
                    index,
                    handler.label,
                    self._descriptor.run_name,
                    exc_info=True,
                )
                failures.append(
                    HandlerFailure(event=event, index=index, handler=handler.label, error=exc)
                )
        return DispatchResult(event=event, invoked=len(handlers), failures=failures)


def _wrap_handler(
    event: EventKind,
    handler: Handler,
    helpers: Mapping[str, Any] | None,
    index: int,
) -> _RegisteredHandler:
    if isinstance(handler, str):
        code = _compile_snippet(handler, filename=f"<{event} handler #{index}>")
        snippet_helpers = dict(helpers or {})
        return _RegisteredHandler(
            label=_snippet_label(handler),
            invoke=lambda resolver: _run_snippet(code, snippet_helpers, resolver),
        )
    if not callable(handler):
        raise TypeError(
            f"Handler must be callable or a source string, got {type(handler).__name__}"
        )
    return _RegisteredHandler(
        label=getattr(handler, "__qualname__", repr(handler)),
        invoke=lambda resolver: handler(HandlerScope(resolver)),
    )


def _compile_snippet(source: str, *, filename: str) -> CodeType:
    try:
        return compile(source, filename, "exec")
    except SyntaxError as exc:
        raise HandlerCompileError(f"Invalid handler snippet {filename}: {exc}") from exc


def _run_snippet(code: CodeType, helpers: Mapping[str, Any], resolver: ScopeResolver) -> None:
    exec(code, SnippetNamespace(resolver, helpers))


def _snippet_label(source: str) -> str:
    first_line = source.strip().splitlines()[0] if source.strip() else ""
    return first_line if len(first_line) <= 60 else first_line[:57] + "..."


def _error_message(payload: Any) -> str:
    if payload is None:
        return "Run failed"
    if isinstance(payload, BaseException):
        return str(payload) or type(payload).__name__
    message = getattr(payload, "message", None)
    return str(message) if message else str(payload)


def _error_report(payload: Any) -> str | None:
    report = getattr(payload, "report", None)
    return str(report) if report is not None else None
