"""Default collaborator implementations and runtime helpers."""

from flowmeta.runtime.artifacts import (
    RunRecordLayout,
    run_record_layout,
    write_resolved_config,
    write_run_summary,
)
from flowmeta.runtime.containers import (
    ENGINE_PRECEDENCE,
    ConfigContainerResolver,
    select_container_engine,
)
from flowmeta.runtime.namespace import DictNamespace
from flowmeta.runtime.scm import GitProvenance
from flowmeta.runtime.scripts import FileScriptLocator, ScriptNotFoundError, script_checksum

__all__ = [
    "ENGINE_PRECEDENCE",
    "ConfigContainerResolver",
    "DictNamespace",
    "FileScriptLocator",
    "GitProvenance",
    "RunRecordLayout",
    "ScriptNotFoundError",
    "run_record_layout",
    "script_checksum",
    "select_container_engine",
    "write_resolved_config",
    "write_run_summary",
]
