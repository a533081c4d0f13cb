from __future__ import annotations

import getpass
import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from types import MappingProxyType
from typing import Any

from flowmeta.contracts import (
    ContainerResolver,
    RunConfig,
    ScriptLocator,
    SharedNamespace,
    VcsProvenance,
)
from flowmeta.runtime.containers import ConfigContainerResolver, select_container_engine
from flowmeta.runtime.scm import GitProvenance
from flowmeta.runtime.scripts import FileScriptLocator, script_checksum
from flowmeta.version import ToolVersion, current_tool_version

logger = logging.getLogger("flowmeta.descriptor")

WORKFLOW_NAME = "workflow"

# Names visible to handlers. Anything else on the descriptor is internal.
PUBLIC_PROPERTIES: frozenset[str] = frozenset(
    {
        "script_checksum",
        "script_path",
        "script_name",
        "repository_url",
        "commit_id",
        "revision",
        "container_image",
        "container_engine",
        "project_dir",
        "launch_dir",
        "work_dir",
        "home_dir",
        "user_name",
        "start_time",
        "complete_time",
        "duration",
        "command_line",
        "profile",
        "run_id",
        "run_name",
        "config_files",
        "resume",
        "success",
        "tool_version",
        "exit_status",
        "error_message",
        "error_report",
    }
)


class DescriptorStateError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class _ErrorRecord:
    message: str
    report: str | None
    exit_status: int | None


def _utc_now() -> datetime:
    return datetime.now(UTC)


class RunDescriptor:
    """
    Read-mostly record of one workflow run.

    Everything is captured at construction; afterwards only the completion
    marker and the error record change. Handlers see the properties listed in
    PUBLIC_PROPERTIES and nothing else.
    """

    def __init__(
        self,
        script: str | Path,
        config: RunConfig,
        *,
        locator: ScriptLocator | None = None,
        vcs: VcsProvenance | None = None,
        containers: ContainerResolver | None = None,
        tool_version: ToolVersion | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        locator = locator or FileScriptLocator()
        vcs = vcs or GitProvenance()
        containers = containers or ConfigContainerResolver()

        script_file = locator.resolve(script)
        self._clock = clock
        self._config = config
        self._script_path = script_file.absolute_path
        self._script_name = script_file.name
        self._script_checksum = script_checksum(script_file.content)
        self._project_dir = script_file.parent

        repository = vcs.lookup(self._project_dir)
        self._repository_url = repository.repository_url if repository else None
        self._commit_id = repository.commit_id if repository else None
        self._revision = repository.revision if repository else None

        self._container_image = containers.resolve(config)
        self._container_engine = select_container_engine(config)

        self._launch_dir = Path.cwd()
        self._work_dir = Path(config.run.work_dir).absolute()
        self._home_dir = Path.home()
        self._user_name = _current_user()

        self._command_line = config.run.command_line
        self._profile = config.run.profile
        self._run_id = config.run.session_id
        self._run_name = config.run.run_name
        self._resume = config.run.resume
        self._config_files = tuple(Path(item).absolute() for item in config.config_files)
        self._tool_version = tool_version or current_tool_version()

        self._complete_time: datetime | None = None
        self._success = False
        self._error: _ErrorRecord | None = None
        self._start_time = clock()

        cls = type(self)
        self._property_table: Mapping[str, property] = MappingProxyType(
            {name: getattr(cls, name) for name in PUBLIC_PROPERTIES}
        )
        logger.debug(
            "Created descriptor for run %s (script=%s, checksum=%s)",
            self._run_name,
            self._script_path,
            self._script_checksum,
        )

    # -- provenance -------------------------------------------------------

    @property
    def script_checksum(self) -> str:
        return self._script_checksum

    @property
    def script_path(self) -> Path:
        return self._script_path

    @property
    def script_name(self) -> str:
        return self._script_name

    @property
    def repository_url(self) -> str | None:
        return self._repository_url

    @property
    def commit_id(self) -> str | None:
        return self._commit_id

    @property
    def revision(self) -> str | None:
        return self._revision

    @property
    def project_dir(self) -> Path:
        return self._project_dir

    # -- environment ------------------------------------------------------

    @property
    def container_image(self) -> str | None:
        return self._container_image

    @property
    def container_engine(self) -> str | None:
        return self._container_engine

    @property
    def launch_dir(self) -> Path:
        return self._launch_dir

    @property
    def work_dir(self) -> Path:
        return self._work_dir

    @property
    def home_dir(self) -> Path:
        return self._home_dir

    @property
    def user_name(self) -> str:
        return self._user_name

    @property
    def tool_version(self) -> ToolVersion:
        return self._tool_version

    # -- session ----------------------------------------------------------

    @property
    def command_line(self) -> str:
        return self._command_line

    @property
    def profile(self) -> str:
        return self._profile

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def run_name(self) -> str:
        return self._run_name

    @property
    def config_files(self) -> tuple[Path, ...]:
        return self._config_files

    @property
    def resume(self) -> bool:
        return self._resume

    # -- timing and outcome -----------------------------------------------

    @property
    def start_time(self) -> datetime:
        return self._start_time

    @property
    def complete_time(self) -> datetime | None:
        return self._complete_time

    @property
    def duration(self) -> timedelta | None:
        if self._complete_time is None:
            return None
        return self._complete_time - self._start_time

    @property
    def success(self) -> bool:
        return self._success

    @property
    def exit_status(self) -> int | None:
        return self._error.exit_status if self._error else None

    @property
    def error_message(self) -> str | None:
        return self._error.message if self._error else None

    @property
    def error_report(self) -> str | None:
        return self._error.report if self._error else None

    @property
    def is_complete(self) -> bool:
        return self._complete_time is not None

    @property
    def has_error(self) -> bool:
        return self._error is not None

    # -- mutators ---------------------------------------------------------

    def mark_complete(self) -> None:
        """Stamp the completion time; success only when no error was recorded."""
        if self._complete_time is not None:
            raise DescriptorStateError(f"Run {self._run_name} is already complete")
        # complete_time >= start_time even if the clock steps backwards
        self._complete_time = max(self._clock(), self._start_time)
        self._success = self._error is None
        logger.debug("Run %s complete (success=%s)", self._run_name, self._success)

    def record_error(
        self,
        message: str,
        *,
        report: str | None = None,
        exit_status: int | None = None,
    ) -> bool:
        """
        Record the run's error. Only the first error is kept.

        The run is unsuccessful from here on, also when it was already marked
        complete. Returns True when this call stored the error.
        """
        self._success = False
        if self._error is not None:
            return False
        self._error = _ErrorRecord(message=message, report=report, exit_status=exit_status)
        if self._complete_time is not None:
            logger.debug("Run %s errored after completion", self._run_name)
        return True

    def publish(self, namespace: SharedNamespace) -> None:
        namespace.set(WORKFLOW_NAME, self)

    # -- handler-facing lookups -------------------------------------------

    def lookup_property(self, name: str) -> tuple[bool, Any]:
        """Return (found, value) for a whitelisted property name."""
        prop = self._property_table.get(name)
        if prop is None:
            return False, None
        return True, prop.__get__(self, type(self))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for name in sorted(PUBLIC_PROPERTIES):
            payload[name] = _jsonable(self.lookup_property(name)[1])
        return payload

    def __repr__(self) -> str:
        return (
            f"RunDescriptor(run_name={self._run_name!r}, script={str(self._script_path)!r}, "
            f"complete={self.is_complete}, success={self._success})"
        )


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return os.environ.get("USER", "unknown")


def _jsonable(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, ToolVersion):
        return {"version": value.version, "build": value.build, "timestamp": value.timestamp}
    if isinstance(value, tuple):
        return [_jsonable(item) for item in value]
    return value
