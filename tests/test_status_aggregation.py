from __future__ import annotations

from msbroker.errors import DeployerException
from msbroker.models import OperationState
from msbroker.services.status import Probe, ProbeResult, aggregate_probes


class CountingCheck:
    def __init__(self, result: ProbeResult | Exception) -> None:
        self.result = result
        self.calls = 0

    def __call__(self) -> ProbeResult:
        self.calls += 1
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def _probes(*checks: CountingCheck) -> list[Probe]:
    return [Probe(name=f"p{i}", check=check) for i, check in enumerate(checks)]


def test_all_succeeded_yields_succeeded() -> None:
    checks = [CountingCheck(ProbeResult.succeeded()) for _ in range(3)]
    result = aggregate_probes(_probes(*checks), success_description="all good")

    assert result.state is OperationState.SUCCEEDED
    assert result.description == "all good"
    assert [c.calls for c in checks] == [1, 1, 1]


def test_first_in_progress_probe_decides_result() -> None:
    checks = [
        CountingCheck(ProbeResult.succeeded()),
        CountingCheck(ProbeResult.in_progress("server rolling out")),
        CountingCheck(ProbeResult.succeeded()),
    ]
    result = aggregate_probes(_probes(*checks))

    assert result.state is OperationState.IN_PROGRESS
    assert result.description == "server rolling out"
    assert checks[2].calls == 0


def test_failed_probe_short_circuits_and_carries_error() -> None:
    err = RuntimeError("boom")
    third = CountingCheck(ProbeResult.succeeded())
    checks = [CountingCheck(ProbeResult.succeeded()), CountingCheck(ProbeResult.failed("broken", error=err)), third]

    result = aggregate_probes(_probes(*checks))

    assert result.state is OperationState.FAILED
    assert result.error is err
    assert third.calls == 0


def test_probe_lookup_failure_is_failed_not_in_progress() -> None:
    cause = ConnectionError("cluster unreachable")
    third = CountingCheck(ProbeResult.succeeded())
    result = aggregate_probes(_probes(CountingCheck(ProbeResult.succeeded()), CountingCheck(cause), third))

    assert result.state is OperationState.FAILED
    assert isinstance(result.error, DeployerException)
    assert result.error.step == "p1"
    assert result.error.__cause__ is cause
    assert "cluster unreachable" in result.description
    assert third.calls == 0


def test_order_decides_which_unready_probe_is_reported() -> None:
    a = ProbeResult.in_progress("a pending")
    b = ProbeResult.failed("b failed")
    assert aggregate_probes(_probes(CountingCheck(a), CountingCheck(b))).description == "a pending"
    assert aggregate_probes(_probes(CountingCheck(b), CountingCheck(a))).description == "b failed"


def test_repeated_polling_of_terminal_state_is_stable() -> None:
    checks = [CountingCheck(ProbeResult.succeeded()), CountingCheck(ProbeResult.failed("gone"))]
    first = aggregate_probes(_probes(*checks))
    second = aggregate_probes(_probes(*checks))
    assert first == second
    assert first.state.terminal


def test_empty_probe_list_succeeds() -> None:
    assert aggregate_probes([]).state is OperationState.SUCCEEDED


def test_to_response_keeps_state_and_description() -> None:
    response = ProbeResult.in_progress("waiting").to_response()
    assert response.state is OperationState.IN_PROGRESS
    assert response.description == "waiting"
