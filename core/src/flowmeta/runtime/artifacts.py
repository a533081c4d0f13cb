"""On-disk records of a finished run: the descriptor summary and the resolved config."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from flowmeta.configuration import dump_yaml
from flowmeta.contracts import RunConfig

if TYPE_CHECKING:
    from flowmeta.orchestration.descriptor import RunDescriptor

RUNS_DIRNAME = "runs"


@dataclass(frozen=True, slots=True)
class RunRecordLayout:
    run_dir: Path

    @property
    def summary_path(self) -> Path:
        return self.run_dir / "summary" / "workflow.json"

    @property
    def resolved_config_path(self) -> Path:
        return self.run_dir / "resolved" / "run_config.yaml"


def run_record_layout(
    descriptor: RunDescriptor, *, artifact_root: Path | None = None
) -> RunRecordLayout:
    """Records live under `<root>/runs/<run_name>`; the root defaults to the run's work dir."""
    root = Path(artifact_root) if artifact_root is not None else descriptor.work_dir
    return RunRecordLayout(run_dir=root / RUNS_DIRNAME / descriptor.run_name)


def write_run_summary(layout: RunRecordLayout, descriptor: RunDescriptor) -> Path:
    path = layout.summary_path
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(descriptor.to_dict(), handle, indent=2, sort_keys=True, default=str)
    return path


def write_resolved_config(layout: RunRecordLayout, config: RunConfig) -> Path:
    path = layout.resolved_config_path
    dump_yaml(path, config.model_dump(mode="json"))
    return path
