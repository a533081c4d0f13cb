from __future__ import annotations

import logging
import traceback
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from flowmeta.configuration import load_run_config
from flowmeta.contracts import (
    ContainerResolver,
    DispatchResult,
    HandlerFailure,
    RunConfig,
    ScriptLocator,
    SharedNamespace,
    VcsProvenance,
)
from flowmeta.orchestration import EventDispatcher, RunDescriptor
from flowmeta.runtime.artifacts import (
    run_record_layout,
    write_resolved_config,
    write_run_summary,
)
from flowmeta.runtime.namespace import DictNamespace
from flowmeta.version import ToolVersion

WorkflowBody = Callable[[SharedNamespace, EventDispatcher], object]


@dataclass(frozen=True, slots=True)
class ErrorPayload:
    """Error record handed to error handlers as `error_record`."""

    message: str
    report: str
    exception: BaseException


@dataclass(frozen=True, slots=True)
class WorkflowRun:
    descriptor: RunDescriptor
    namespace: SharedNamespace
    on_complete: DispatchResult
    on_error: DispatchResult | None = None
    error: BaseException | None = None
    summary_path: Path | None = None
    resolved_config_path: Path | None = None

    @property
    def handler_failures(self) -> list[HandlerFailure]:
        failures: list[HandlerFailure] = list(self.on_error.failures) if self.on_error else []
        failures.extend(self.on_complete.failures)
        return failures


def run_workflow(
    script: str | Path,
    config: RunConfig,
    body: WorkflowBody,
    *,
    namespace: SharedNamespace | None = None,
    locator: ScriptLocator | None = None,
    vcs: VcsProvenance | None = None,
    containers: ContainerResolver | None = None,
    tool_version: ToolVersion | None = None,
    helpers: Mapping[str, Any] | None = None,
    artifact_root: Path | None = None,
) -> WorkflowRun:
    """
    Drive one run: describe it, execute `body`, then fire the lifecycle handlers.

    Construction faults (e.g. a missing script) propagate before `body` runs.
    Errors raised by `body` are recorded on the descriptor and returned in
    `WorkflowRun.error`; handler failures never stop the shutdown sequence.
    BaseExceptions such as KeyboardInterrupt propagate and leave the run
    incomplete. Records go under `artifact_root`, or the run's work dir.
    """
    descriptor = RunDescriptor(
        script,
        config,
        locator=locator,
        vcs=vcs,
        containers=containers,
        tool_version=tool_version,
    )
    run_namespace = namespace if namespace is not None else DictNamespace()
    descriptor.publish(run_namespace)
    logger = logging.getLogger(f"flowmeta.run.{descriptor.run_name}")
    dispatcher = EventDispatcher(descriptor, run_namespace, logger=logger)
    dispatcher.register_from_config(config, helpers=helpers)

    error: BaseException | None = None
    error_result: DispatchResult | None = None
    try:
        body(run_namespace, dispatcher)
    except Exception as exc:
        error = exc
        payload = ErrorPayload(message=str(exc), report=traceback.format_exc(), exception=exc)
        logger.error("Run %s failed: %s", descriptor.run_name, exc)
        error_result = dispatcher.fire_error(payload)
    descriptor.mark_complete()

    complete_result = dispatcher.fire_complete()
    failed = len(complete_result.failures) + (len(error_result.failures) if error_result else 0)
    if failed:
        logger.warning("%d lifecycle handler(s) failed for run %s", failed, descriptor.run_name)

    summary_path, config_path = _write_run_records_best_effort(
        descriptor, config, artifact_root=artifact_root
    )
    return WorkflowRun(
        descriptor=descriptor,
        namespace=run_namespace,
        on_complete=complete_result,
        on_error=error_result,
        error=error,
        summary_path=summary_path,
        resolved_config_path=config_path,
    )


def run_from_yaml(
    config_yaml: str | Path,
    script: str | Path,
    body: WorkflowBody,
    *,
    profile: str | None = None,
    **kwargs: Any,
) -> WorkflowRun:
    config = load_run_config(config_yaml, profile=profile)
    return run_workflow(script, config, body, **kwargs)


def _write_run_records_best_effort(
    descriptor: RunDescriptor, config: RunConfig, *, artifact_root: Path | None
) -> tuple[Path | None, Path | None]:
    layout = run_record_layout(descriptor, artifact_root=artifact_root)
    summary_path = _best_effort(
        "workflow summary", descriptor, lambda: write_run_summary(layout, descriptor)
    )
    config_path = _best_effort(
        "resolved config", descriptor, lambda: write_resolved_config(layout, config)
    )
    return summary_path, config_path


def _best_effort(
    what: str, descriptor: RunDescriptor, write: Callable[[], Path]
) -> Path | None:
    try:
        return write()
    except Exception:
        logging.getLogger("flowmeta.run_artifacts").warning(
            "Failed to write %s for %s",
            what,
            descriptor.run_name,
            exc_info=True,
        )
        return None
