from __future__ import annotations

from dataclasses import dataclass
import logging
import subprocess
from typing import Callable, Literal

logger = logging.getLogger(__name__)

ErrorCategory = Literal["retryable", "fatal"]
CommandRunner = Callable[[list[str]], subprocess.CompletedProcess[str]]

_DETAIL_LIMIT = 400
_RETRYABLE_MARKERS = (
    "timed out",
    "timeout",
    "connection refused",
    "connection reset",
    "context deadline exceeded",
    "unable to connect",
    "service unavailable",
    "too many requests",
    "the object has been modified",
)


@dataclass(frozen=True)
class CommandResult:
    command: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        return f"{self.stderr}\n{self.stdout}"


class AdapterCommandError(RuntimeError):
    """A cluster command exited non-zero."""

    def __init__(self, *, message: str, result: CommandResult, category: ErrorCategory) -> None:
        self.result = result
        self.category = category
        detail = (result.stderr or result.stdout).strip()
        if len(detail) > _DETAIL_LIMIT:
            detail = f"{detail[:_DETAIL_LIMIT - 3]}..."
        super().__init__(f"{message} (category={category}, returncode={result.returncode}, detail={detail!r})")

    @property
    def retryable(self) -> bool:
        return self.category == "retryable"

    @property
    def not_found(self) -> bool:
        lowered = self.result.output.lower()
        return "not found" in lowered or "notfound" in lowered


def timed_runner(timeout: int | None) -> CommandRunner:
    """Build a subprocess runner that reports a timeout or a missing binary as a failed command."""

    def run(command: list[str]) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(command, capture_output=True, text=True, check=False, timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Command timed out after %ss: %s", timeout, command[:3])
            return subprocess.CompletedProcess(command, -1, stdout="", stderr=f"command timed out after {timeout}s")
        except OSError as exc:
            logger.warning("Command could not be started: %s: %s", command[0], exc)
            return subprocess.CompletedProcess(command, 127, stdout="", stderr=f"cannot execute {command[0]}: {exc}")

    return run


def classify_error(*, returncode: int, output: str) -> ErrorCategory:
    if returncode < 0:
        return "retryable"
    lowered = output.lower()
    return "retryable" if any(marker in lowered for marker in _RETRYABLE_MARKERS) else "fatal"


def run_command(command: list[str], *, runner: CommandRunner, error_message: str) -> CommandResult:
    logger.debug("Running command: %s", " ".join(command))
    completed = runner(command)
    result = CommandResult(
        command=command,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
    if result.returncode != 0:
        raise AdapterCommandError(
            message=error_message,
            result=result,
            category=classify_error(returncode=result.returncode, output=result.output),
        )
    return result
