from .dispatch_result import DispatchResult, EventKind, HandlerExecutionError, HandlerFailure
from .run_config import (
    DEFAULT_PROFILE,
    ContainerEngineConfig,
    ProcessConfig,
    RunConfig,
    RunConfigMeta,
    WorkflowHandlersConfig,
)
from .script_file import RepositoryInfo, ScriptFile

__all__ = [
    "DEFAULT_PROFILE",
    "ContainerEngineConfig",
    "DispatchResult",
    "EventKind",
    "HandlerExecutionError",
    "HandlerFailure",
    "ProcessConfig",
    "RepositoryInfo",
    "RunConfig",
    "RunConfigMeta",
    "ScriptFile",
    "WorkflowHandlersConfig",
]
