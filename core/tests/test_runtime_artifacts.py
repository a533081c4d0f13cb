from __future__ import annotations

import json
from pathlib import Path

import yaml

from flowmeta.configuration import load_run_config_dict
from flowmeta.orchestration import RunDescriptor
from flowmeta.runtime.artifacts import (
    run_record_layout,
    write_resolved_config,
    write_run_summary,
)
from flowmeta.testkit import FakeContainerResolver, FakeProvenance


def _descriptor(tmp_path: Path, payload: dict) -> RunDescriptor:
    script = tmp_path / "main.nf"
    script.write_text("println 'Hello world'", encoding="utf-8")
    return RunDescriptor(
        script,
        load_run_config_dict(payload),
        vcs=FakeProvenance(),
        containers=FakeContainerResolver("busybox/latest"),
    )


def test_layout_defaults_to_the_run_work_dir(tmp_path):
    descriptor = _descriptor(
        tmp_path, {"run": {"run_name": "tiny_turing", "work_dir": str(tmp_path / "work")}}
    )

    layout = run_record_layout(descriptor)

    assert layout.run_dir == tmp_path / "work" / "runs" / "tiny_turing"
    assert layout.summary_path == layout.run_dir / "summary" / "workflow.json"
    assert layout.resolved_config_path == layout.run_dir / "resolved" / "run_config.yaml"
    assert not layout.run_dir.exists()


def test_explicit_root_overrides_work_dir(tmp_path):
    descriptor = _descriptor(tmp_path, {"run": {"run_name": "tiny_turing"}})

    layout = run_record_layout(descriptor, artifact_root=tmp_path / "records")

    assert layout.run_dir == tmp_path / "records" / "runs" / "tiny_turing"


def test_write_run_summary_serialises_public_properties(tmp_path):
    descriptor = _descriptor(tmp_path, {"run": {"run_name": "tiny_turing"}})
    descriptor.mark_complete()
    layout = run_record_layout(descriptor, artifact_root=tmp_path)

    path = write_run_summary(layout, descriptor)

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["run_name"] == "tiny_turing"
    assert payload["success"] is True
    assert payload["script_checksum"] == "daadc5203aef1d0775ff5316640f5d3d"
    assert "_config" not in payload


def test_write_resolved_config_dumps_validated_config(tmp_path):
    config_payload = {
        "run": {"run_name": "tiny_turing", "profile": "cluster"},
        "docker": {"enabled": True},
        "workflow": {"on_complete": "print(run_name)"},
    }
    descriptor = _descriptor(tmp_path, config_payload)
    config = load_run_config_dict(config_payload)
    layout = run_record_layout(descriptor, artifact_root=tmp_path)

    path = write_resolved_config(layout, config)

    dumped = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert dumped["run"]["run_name"] == "tiny_turing"
    assert dumped["run"]["profile"] == "cluster"
    assert dumped["docker"]["enabled"] is True
    assert dumped["workflow"]["on_complete"] == ["print(run_name)"]
    assert load_run_config_dict(dumped) == config
