from flowmeta.orchestration.descriptor import (
    PUBLIC_PROPERTIES,
    WORKFLOW_NAME,
    DescriptorStateError,
    RunDescriptor,
)
from flowmeta.orchestration.dispatcher import (
    EventDispatcher,
    Handler,
    HandlerCompileError,
    HandlerRegistry,
)
from flowmeta.orchestration.scope import (
    ABSENT,
    ERROR_PAYLOAD_NAME,
    HandlerScope,
    Resolution,
    ScopeResolver,
)

__all__ = [
    "ABSENT",
    "ERROR_PAYLOAD_NAME",
    "PUBLIC_PROPERTIES",
    "WORKFLOW_NAME",
    "DescriptorStateError",
    "EventDispatcher",
    "Handler",
    "HandlerCompileError",
    "HandlerRegistry",
    "HandlerScope",
    "Resolution",
    "RunDescriptor",
    "ScopeResolver",
]
