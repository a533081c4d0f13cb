from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from flowmeta.api import ErrorPayload, run_from_yaml, run_workflow
from flowmeta.configuration import load_run_config_dict
from flowmeta.runtime import DictNamespace, ScriptNotFoundError
from flowmeta.testkit import FakeContainerResolver, FakeProvenance, RecordingHandler


def _script(tmp_path: Path) -> Path:
    script = tmp_path / "main.nf"
    script.write_text("println 'Hello world'", encoding="utf-8")
    return script


def _collaborators() -> dict[str, Any]:
    return {"vcs": FakeProvenance(), "containers": FakeContainerResolver("busybox/latest")}


def test_run_workflow_success_fires_completion_and_writes_summary(tmp_path):
    config = load_run_config_dict(
        {
            "run": {"run_name": "tiny_turing", "command_line": "flow run main.nf"},
            "workflow": {"on_complete": "summary['done'] = (run_name, success, total)"},
        }
    )
    summary: dict[str, Any] = {}
    namespace = DictNamespace({"summary": summary})

    def body(ns, dispatcher):
        ns.set("total", 42)

    run = run_workflow(
        _script(tmp_path),
        config,
        body,
        namespace=namespace,
        artifact_root=tmp_path / "artifacts",
        **_collaborators(),
    )

    assert run.error is None
    assert run.on_error is None
    assert run.on_complete.ok
    assert run.descriptor.success is True
    assert run.descriptor.complete_time is not None
    assert namespace.get("workflow") is run.descriptor
    assert summary["done"] == ("tiny_turing", True, 42)
    expected_dir = tmp_path / "artifacts" / "runs" / "tiny_turing"
    assert run.summary_path == expected_dir / "summary" / "workflow.json"
    payload = json.loads(run.summary_path.read_text(encoding="utf-8"))
    assert payload["run_name"] == "tiny_turing"
    assert payload["success"] is True
    assert payload["container_image"] == "busybox/latest"
    assert run.resolved_config_path == expected_dir / "resolved" / "run_config.yaml"
    resolved = yaml.safe_load(run.resolved_config_path.read_text(encoding="utf-8"))
    assert resolved["run"]["run_name"] == "tiny_turing"
    assert resolved["workflow"]["on_complete"] == ["summary['done'] = (run_name, success, total)"]


def test_run_workflow_failure_fires_error_then_completion(tmp_path):
    config = load_run_config_dict({"run": {"run_name": "failing_run"}})
    seen_error = RecordingHandler(["error_record", "success"])
    seen_complete = RecordingHandler(["success", "error_message"])

    def body(ns, dispatcher):
        dispatcher.on_error(seen_error)
        dispatcher.on_complete(seen_complete)
        raise RuntimeError("task failed")

    run = run_workflow(
        _script(tmp_path), config, body, artifact_root=tmp_path / "artifacts", **_collaborators()
    )

    assert isinstance(run.error, RuntimeError)
    assert run.descriptor.success is False
    assert run.descriptor.error_message == "task failed"
    assert "RuntimeError: task failed" in run.descriptor.error_report
    payload = seen_error.calls[0]["error_record"]
    assert isinstance(payload, ErrorPayload)
    assert payload.exception is run.error
    assert seen_error.calls[0]["success"] is False
    assert seen_complete.calls == [{"success": False, "error_message": "task failed"}]


def test_run_workflow_collects_handler_failures_without_aborting(tmp_path):
    config = load_run_config_dict(
        {"workflow": {"on_complete": ["missing_helper()", "marker.append(1)"]}}
    )
    marker: list[int] = []

    run = run_workflow(
        _script(tmp_path),
        config,
        lambda ns, dispatcher: None,
        namespace=DictNamespace({"marker": marker}),
        artifact_root=tmp_path / "artifacts",
        **_collaborators(),
    )

    assert marker == [1]
    assert len(run.handler_failures) == 1
    assert isinstance(run.handler_failures[0].error, TypeError)
    assert run.descriptor.success is True
    assert run.summary_path is not None


def test_run_workflow_missing_script_stops_before_body(tmp_path):
    called = []

    with pytest.raises(ScriptNotFoundError):
        run_workflow(
            tmp_path / "missing.nf",
            load_run_config_dict({}),
            lambda ns, dispatcher: called.append(True),
            **_collaborators(),
        )
    assert called == []


def test_run_workflow_summary_failure_is_best_effort(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    run = run_workflow(
        _script(tmp_path),
        load_run_config_dict({}),
        lambda ns, dispatcher: None,
        artifact_root=blocker,
        **_collaborators(),
    )

    assert run.summary_path is None
    assert run.resolved_config_path is None
    assert run.descriptor.success is True


def test_run_from_yaml_applies_profile(tmp_path):
    config_path = tmp_path / "flow.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "run": {"run_name": "yaml_run"},
                "profiles": {"cluster": {"podman": {"enabled": True}}},
            }
        ),
        encoding="utf-8",
    )

    run = run_from_yaml(
        config_path,
        _script(tmp_path),
        lambda ns, dispatcher: None,
        profile="cluster",
        artifact_root=tmp_path / "artifacts",
        **_collaborators(),
    )

    assert run.descriptor.profile == "cluster"
    assert run.descriptor.container_engine == "podman"
    assert run.descriptor.config_files == (config_path.absolute(),)


def test_run_records_default_to_the_work_dir(tmp_path):
    work_dir = tmp_path / "work"
    config = load_run_config_dict({"run": {"run_name": "local_run", "work_dir": str(work_dir)}})

    run = run_workflow(_script(tmp_path), config, lambda ns, dispatcher: None, **_collaborators())

    run_dir = work_dir / "runs" / "local_run"
    assert run.summary_path == run_dir / "summary" / "workflow.json"
    assert run.resolved_config_path == run_dir / "resolved" / "run_config.yaml"
    assert run.summary_path.exists()
    assert run.resolved_config_path.exists()


def test_interrupt_propagates_without_completing_the_run(tmp_path):
    config = load_run_config_dict({"run": {"run_name": "interrupted"}})
    completed = RecordingHandler()
    errored = RecordingHandler()
    seen = {}

    def body(ns, dispatcher):
        dispatcher.on_complete(completed)
        dispatcher.on_error(errored)
        seen["descriptor"] = ns.get("workflow")
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        run_workflow(
            _script(tmp_path),
            config,
            body,
            artifact_root=tmp_path / "artifacts",
            **_collaborators(),
        )

    assert seen["descriptor"].is_complete is False
    assert completed.called is False
    assert errored.called is False
    assert not (tmp_path / "artifacts" / "runs" / "interrupted").exists()
