from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

EventKind = Literal["complete", "error"]


@dataclass(frozen=True, slots=True)
class HandlerFailure:
    event: EventKind
    index: int
    handler: str
    error: BaseException

    def describe(self) -> str:
        return f"{self.event} handler #{self.index} ({self.handler}): {self.error!r}"


class HandlerExecutionError(RuntimeError):
    """Raised on demand when one or more handlers failed during a dispatch."""

    def __init__(self, failures: Sequence[HandlerFailure]) -> None:
        self.failures = list(failures)
        details = "; ".join(failure.describe() for failure in self.failures)
        super().__init__(f"{len(self.failures)} handler(s) failed: {details}")


@dataclass(frozen=True, slots=True)
class DispatchResult:
    event: EventKind
    invoked: int = 0
    failures: Sequence[HandlerFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        if self.failures:
            raise HandlerExecutionError(self.failures)
