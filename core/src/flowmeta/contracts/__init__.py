from .collaborators import ContainerResolver, ScriptLocator, SharedNamespace, VcsProvenance
from .run_contracts import (
    DEFAULT_PROFILE,
    DispatchResult,
    HandlerExecutionError,
    HandlerFailure,
    RepositoryInfo,
    RunConfig,
    RunConfigMeta,
    ScriptFile,
)

__all__ = [
    "DEFAULT_PROFILE",
    "ContainerResolver",
    "DispatchResult",
    "HandlerExecutionError",
    "HandlerFailure",
    "RepositoryInfo",
    "RunConfig",
    "RunConfigMeta",
    "ScriptFile",
    "ScriptLocator",
    "SharedNamespace",
    "VcsProvenance",
]
