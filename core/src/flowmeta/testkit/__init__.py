from .fakes import FakeContainerResolver, FakeProvenance, RecordingHandler, StaticScriptLocator

__all__ = [
    "FakeContainerResolver",
    "FakeProvenance",
    "RecordingHandler",
    "StaticScriptLocator",
]
