"""Aggregation of ordered readiness probes into one async operation status.

Probes run in the order given. The first probe that is not ``succeeded``
decides the aggregate and later probes are skipped, so a caller polling an
operation sees readiness as of the first dependency that is not ready yet.
A probe that cannot reach its resource at all reports ``failed`` with the
cause attached rather than ``in progress``.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Iterable

from msbroker.errors import DeployerException
from msbroker.models import LastOperationResponse, OperationState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeResult:
    state: OperationState
    description: str = ""
    error: Exception | None = None

    @classmethod
    def succeeded(cls, description: str = "") -> ProbeResult:
        return cls(state=OperationState.SUCCEEDED, description=description)

    @classmethod
    def in_progress(cls, description: str = "") -> ProbeResult:
        return cls(state=OperationState.IN_PROGRESS, description=description)

    @classmethod
    def failed(cls, description: str, error: Exception | None = None) -> ProbeResult:
        return cls(state=OperationState.FAILED, description=description, error=error)

    def to_response(self) -> LastOperationResponse:
        return LastOperationResponse(state=self.state, description=self.description)


@dataclass(frozen=True)
class Probe:
    name: str
    check: Callable[[], ProbeResult]

    def run(self) -> ProbeResult:
        try:
            return self.check()
        except Exception as exc:
            logger.warning("Probe '%s' could not query its resource: %s", self.name, exc)
            error = DeployerException(f"failed to get status of {self.name}: {exc}", step=self.name)
            error.__cause__ = exc
            return ProbeResult.failed(str(error), error=error)


def aggregate_probes(probes: Iterable[Probe], *, success_description: str = "") -> ProbeResult:
    for probe in probes:
        result = probe.run()
        logger.debug("Probe '%s' reported state=%s", probe.name, result.state.value)
        if result.state is not OperationState.SUCCEEDED:
            return result
    return ProbeResult.succeeded(success_description)
