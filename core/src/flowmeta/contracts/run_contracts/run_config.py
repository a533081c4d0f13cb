from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PROFILE = "standard"


def _generate_run_name() -> str:
    return f"run-{uuid.uuid4().hex[:8]}"


def _generate_session_id() -> str:
    return str(uuid.uuid4())


class RunConfigMeta(BaseModel):
    model_config = ConfigDict(extra="forbid")

    profile: str = Field(default=DEFAULT_PROFILE, min_length=1)
    run_name: str = Field(default_factory=_generate_run_name, min_length=1)
    session_id: str = Field(default_factory=_generate_session_id, min_length=1)
    resume: bool = False
    command_line: str = ""
    work_dir: str = "work"


class ProcessConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    container: str | None = None


class ContainerEngineConfig(BaseModel):
    # engines carry their own options (runOptions, cacheDir, ...), only `enabled` matters here
    model_config = ConfigDict(extra="allow")

    enabled: bool = False


class WorkflowHandlersConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    on_complete: list[str] = Field(default_factory=list)
    on_error: list[str] = Field(default_factory=list)

    @field_validator("on_complete", "on_error", mode="before")
    @classmethod
    def _coerce_handler_list(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class RunConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    run: RunConfigMeta = Field(default_factory=RunConfigMeta)
    process: ProcessConfig = Field(default_factory=ProcessConfig)
    docker: ContainerEngineConfig = Field(default_factory=ContainerEngineConfig)
    singularity: ContainerEngineConfig = Field(default_factory=ContainerEngineConfig)
    podman: ContainerEngineConfig = Field(default_factory=ContainerEngineConfig)
    shifter: ContainerEngineConfig = Field(default_factory=ContainerEngineConfig)
    charliecloud: ContainerEngineConfig = Field(default_factory=ContainerEngineConfig)
    config_files: list[str] = Field(default_factory=list)
    workflow: WorkflowHandlersConfig = Field(default_factory=WorkflowHandlersConfig)

    @field_validator("config_files", mode="before")
    @classmethod
    def _coerce_config_files(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, (str, bytes)):
            raise ValueError("config_files must be a list of paths")
        return [str(item) for item in value]

    def engine_enabled(self, engine: str) -> bool:
        section = getattr(self, engine, None)
        return isinstance(section, ContainerEngineConfig) and section.enabled
