from __future__ import annotations

import json
from pathlib import Path
import subprocess

import pytest

from msbroker.kube_adapter import KubeAdapter
from msbroker.proc import AdapterCommandError, classify_error, run_command, timed_runner
from tests.fakes import completed


def test_ensure_namespace_creates_when_missing() -> None:
    calls: list[list[str]] = []

    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        calls.append(cmd)
        if cmd[:3] == ["kubectl", "get", "namespace"]:
            return completed(cmd, returncode=1, stderr='Error from server (NotFound): namespaces "fuse-i1" not found')
        if cmd[:3] == ["kubectl", "create", "namespace"]:
            return completed(cmd, stdout="namespace/fuse-i1 created")
        raise AssertionError(f"unexpected command: {cmd}")

    out = KubeAdapter(runner=runner).ensure_namespace("fuse-i1")

    assert out.changed is True
    assert calls == [
        ["kubectl", "get", "namespace", "fuse-i1", "-o", "name"],
        ["kubectl", "create", "namespace", "fuse-i1"],
    ]


def test_ensure_namespace_is_noop_when_present() -> None:
    calls: list[list[str]] = []

    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        calls.append(cmd)
        return completed(cmd, stdout="namespace/fuse-i1")

    out = KubeAdapter(runner=runner).ensure_namespace("fuse-i1")
    assert out.changed is False
    assert len(calls) == 1


def test_namespace_check_bubbles_connection_errors_as_retryable() -> None:
    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        return completed(cmd, returncode=1, stderr="Unable to connect to the server: dial tcp: connection refused")

    with pytest.raises(AdapterCommandError) as exc_info:
        KubeAdapter(runner=runner).namespace_exists("fuse-i1")
    assert exc_info.value.retryable is True


def test_apply_writes_manifest_and_parses_result() -> None:
    seen: dict = {}
    manifest = {"apiVersion": "v1", "kind": "ServiceAccount", "metadata": {"name": "syndesis-operator"}}

    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        path = Path(cmd[cmd.index("-f") + 1])
        seen["manifest"] = json.loads(path.read_text())
        seen["path"] = path
        seen["cmd"] = cmd
        return completed(cmd, stdout=json.dumps({**manifest, "metadata": {"name": "syndesis-operator", "uid": "u1"}}))

    out = KubeAdapter(runner=runner).apply(manifest, namespace="fuse-i1")

    assert seen["manifest"] == manifest
    assert seen["cmd"][:4] == ["kubectl", "apply", "--namespace", "fuse-i1"]
    assert seen["cmd"][-2:] == ["-o", "json"]
    assert out["metadata"]["uid"] == "u1"
    assert not seen["path"].exists()


def test_apply_failure_raises_fatal_command_error() -> None:
    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        return completed(cmd, returncode=1, stderr='roles.rbac.authorization.k8s.io is forbidden')

    with pytest.raises(AdapterCommandError) as exc_info:
        KubeAdapter(runner=runner).apply({"kind": "Role", "metadata": {"name": "r"}}, namespace="ns")
    assert exc_info.value.category == "fatal"
    assert "forbidden" in str(exc_info.value)


def test_get_object_returns_none_when_not_found() -> None:
    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        return completed(cmd, returncode=1, stderr='Error from server (NotFound): routes "x" not found')

    assert KubeAdapter(runner=runner).get_object("route", "x", namespace="default") is None


def test_get_object_rejects_invalid_json() -> None:
    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        return completed(cmd, stdout="not json")

    with pytest.raises(ValueError):
        KubeAdapter(runner=runner).get_object("route", "x", namespace="default")


def test_workload_conditions_reports_first_unready() -> None:
    payload = {
        "status": {
            "conditions": [
                {"type": "Available", "status": "True"},
                {"type": "Progressing", "status": "False", "message": "replication controller timed out"},
            ]
        }
    }

    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        assert cmd[:4] == ["kubectl", "get", "deploymentconfig", "syndesis-server"]
        return completed(cmd, stdout=json.dumps(payload))

    report = KubeAdapter(runner=runner).workload_conditions("deploymentconfig", "syndesis-server", namespace="ns")
    assert report.exists is True
    assert report.first_unready()["message"] == "replication controller timed out"
    assert report.is_true("Available") is True


def test_workload_conditions_for_missing_object() -> None:
    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        return completed(cmd, returncode=1, stderr="Error from server (NotFound): not found")

    report = KubeAdapter(runner=runner).workload_conditions("deployment", "x", namespace="ns")
    assert report.exists is False
    assert report.first_unready() is None


def test_classify_error() -> None:
    assert classify_error(returncode=-1, output="") == "retryable"
    assert classify_error(returncode=1, output="context deadline exceeded") == "retryable"
    assert classify_error(returncode=1, output="forbidden") == "fatal"


def test_run_command_truncates_long_detail() -> None:
    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        return completed(cmd, returncode=1, stderr="x" * 1000)

    with pytest.raises(AdapterCommandError) as exc_info:
        run_command(["kubectl", "version"], runner=runner, error_message="Failed")
    assert "..." in str(exc_info.value)
    assert len(str(exc_info.value)) < 600


def test_timed_runner_reports_timeout_as_failed_command(monkeypatch) -> None:
    def fake_run(command, **kwargs):
        raise subprocess.TimeoutExpired(cmd=command, timeout=kwargs["timeout"])

    monkeypatch.setattr(subprocess, "run", fake_run)
    out = timed_runner(3)(["kubectl", "get", "pods"])
    assert out.returncode == -1
    assert "timed out" in out.stderr


def test_timed_runner_reports_missing_binary_as_failed_command(monkeypatch) -> None:
    def fake_run(command, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", command[0])

    monkeypatch.setattr(subprocess, "run", fake_run)
    out = timed_runner(3)(["kubectl", "get", "pods"])
    assert out.returncode == 127
    assert "cannot execute kubectl" in out.stderr


def test_missing_kubectl_raises_command_error(tmp_path) -> None:
    kube = KubeAdapter(kubectl=str(tmp_path / "kubectl"), timeout=5)
    with pytest.raises(AdapterCommandError) as exc_info:
        kube.get_object("deployment", "web", namespace="ns")
    assert exc_info.value.result.returncode == 127
    assert exc_info.value.category == "fatal"
