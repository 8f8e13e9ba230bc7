from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import json
import logging
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Iterator

from msbroker.proc import AdapterCommandError, CommandResult, CommandRunner, run_command, timed_runner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NamespaceResult:
    name: str
    exists: bool
    changed: bool


@dataclass(frozen=True)
class ConditionReport:
    """Readiness conditions of a workload object."""

    name: str
    exists: bool
    conditions: tuple[dict[str, Any], ...] = ()

    def first_unready(self) -> dict[str, Any] | None:
        return next((c for c in self.conditions if str(c.get("status")) == "False"), None)

    def is_true(self, condition_type: str) -> bool:
        return any(
            c.get("type") == condition_type and str(c.get("status")) == "True" for c in self.conditions
        )


@contextmanager
def _manifest_file(manifest: dict[str, Any]) -> Iterator[Path]:
    tmp = NamedTemporaryFile(mode="w", encoding="utf-8", suffix=".json", delete=False)
    path = Path(tmp.name)
    try:
        with tmp:
            json.dump(manifest, tmp)
        logger.debug("Wrote temporary manifest file: %s", path)
        yield path
    finally:
        path.unlink(missing_ok=True)


def _parse_json(result_stdout: str, *, what: str) -> dict[str, Any]:
    try:
        payload = json.loads(result_stdout)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON from kubectl for {what}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object from kubectl for {what}")
    return payload


class KubeAdapter:
    """Cluster operations used by deployers, shelling out to ``kubectl``."""

    def __init__(self, *, runner: CommandRunner | None = None, timeout: int = 60, kubectl: str = "kubectl") -> None:
        self._runner = runner or timed_runner(timeout)
        self._kubectl = kubectl

    def _run(self, *args: str, error_message: str) -> CommandResult:
        return run_command([self._kubectl, *args], runner=self._runner, error_message=error_message)

    def ensure_namespace(self, name: str) -> NamespaceResult:
        logger.info("Ensuring namespace exists: %s", name)
        if self.namespace_exists(name):
            return NamespaceResult(name=name, exists=True, changed=False)
        self._run("create", "namespace", name, error_message=f"Failed to create namespace {name}")
        logger.info("Created namespace: %s", name)
        return NamespaceResult(name=name, exists=True, changed=True)

    def namespace_exists(self, name: str) -> bool:
        try:
            self._run("get", "namespace", name, "-o", "name", error_message=f"Failed to check namespace {name}")
            return True
        except AdapterCommandError as exc:
            if exc.not_found:
                return False
            raise

    def apply(self, manifest: dict[str, Any], *, namespace: str) -> dict[str, Any]:
        kind = manifest.get("kind", "object")
        name = manifest.get("metadata", {}).get("name", "")
        logger.info("Applying %s/%s in namespace %s", kind, name, namespace)
        with _manifest_file(manifest) as path:
            result = self._run(
                "apply",
                "--namespace",
                namespace,
                "-f",
                str(path),
                "-o",
                "json",
                error_message=f"Failed to apply {kind} {name} in namespace {namespace}",
            )
        return _parse_json(result.stdout, what=f"{kind}/{name}")

    def get_object(self, kind: str, name: str, *, namespace: str) -> dict[str, Any] | None:
        try:
            result = self._run(
                "get",
                kind,
                name,
                "--namespace",
                namespace,
                "-o",
                "json",
                error_message=f"Failed to get {kind} {name} in namespace {namespace}",
            )
        except AdapterCommandError as exc:
            if exc.not_found:
                logger.debug("%s %s not found in namespace %s", kind, name, namespace)
                return None
            raise
        return _parse_json(result.stdout, what=f"{kind}/{name}")

    def workload_conditions(self, kind: str, name: str, *, namespace: str) -> ConditionReport:
        payload = self.get_object(kind, name, namespace=namespace)
        if payload is None:
            return ConditionReport(name=name, exists=False)
        status = payload.get("status") or {}
        conditions = status.get("conditions") or []
        return ConditionReport(
            name=name,
            exists=True,
            conditions=tuple(c for c in conditions if isinstance(c, dict)),
        )
