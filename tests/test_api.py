from __future__ import annotations

from starlette.testclient import TestClient

from msbroker.api.utils import status_for
from msbroker.errors import DeployerException, InvalidParametersException, NoSuchInstanceException
from msbroker.main import create_app
from msbroker.models import LastOperationResponse, OperationState
from msbroker.services.controller import ProvisioningController
from tests.fakes import FakeDeployer


def test_catalog(client) -> None:
    resp = client.get("/v2/catalog")
    assert resp.status_code == 200
    assert sorted(s["id"] for s in resp.json()["services"]) == ["svc-a", "svc-b", "svc-c"]


def test_provision_accepted_with_dashboard_url(client) -> None:
    resp = client.put(
        "/v2/service_instances/i-1?accepts_incomplete=true",
        json={"service_id": "svc-a", "plan_id": "default", "context": {"namespace": "user-ns"}},
    )
    assert resp.status_code == 202
    assert resp.json() == {"code": 202, "dashboard_url": "https://d1.example"}


def test_provision_unknown_service_is_internal_error_response(client) -> None:
    resp = client.put("/v2/service_instances/i-1", json={"service_id": "nope", "plan_id": "default"})
    assert resp.status_code == 500
    assert resp.json()["operation"] == "provision"


def test_provision_deployer_failure_is_structured_500() -> None:
    controller = ProvisioningController()
    controller.register_deployer(
        FakeDeployer("d1", ("svc-a",), error=DeployerException("failed to create role for fuse service", step="role"))
    )
    with TestClient(create_app(controller)) as client:
        resp = client.put("/v2/service_instances/i-1", json={"service_id": "svc-a", "plan_id": "default"})
    assert resp.status_code == 500
    assert resp.json() == {"description": "failed to create role for fuse service"}


def test_last_operation_without_service_id_is_unimplemented(client) -> None:
    resp = client.get("/v2/service_instances/i-1/last_operation", params={"operation": "provision"})
    assert resp.status_code == 501


def test_last_operation_polls_responsible_deployer() -> None:
    controller = ProvisioningController()
    status = LastOperationResponse(state=OperationState.IN_PROGRESS, description="syndesis-server pending")
    controller.register_deployer(FakeDeployer("d1", ("svc-a",), status=status))
    with TestClient(create_app(controller)) as client:
        resp = client.get("/v2/service_instances/i-1/last_operation", params={"service_id": "svc-a"})
    assert resp.status_code == 200
    assert resp.json() == {"state": "in progress", "description": "syndesis-server pending"}


def test_bind_unknown_instance_is_not_found(client) -> None:
    resp = client.put("/v2/service_instances/missing/service_bindings/b-1", json={"service_id": "svc-a"})
    assert resp.status_code == 404
    assert "missing" in resp.json()["description"]


def test_bind_returns_registered_credential(client, populated_controller) -> None:
    populated_controller.register_instance("i-1", name="fuse", credential={"url": "https://fuse.example"})
    resp = client.put("/v2/service_instances/i-1/service_bindings/b-1", json={"service_id": "svc-a"})
    assert resp.status_code == 201
    assert resp.json() == {"credentials": {"url": "https://fuse.example"}}


def test_unbind_and_deprovision_always_succeed(client) -> None:
    unbind = client.delete("/v2/service_instances/unknown/service_bindings/b-1")
    assert unbind.status_code == 200
    assert unbind.json() == {}

    remove = client.delete("/v2/service_instances/unknown", params={"service_id": "svc-a", "plan_id": "default"})
    assert remove.status_code == 200
    assert remove.json() == {}


class MissingGithubCredentials(InvalidParametersException):
    pass


def test_status_uses_nearest_mapped_exception_class() -> None:
    assert status_for(MissingGithubCredentials("GITHUB_CLIENT_ID is required")) == 400
    assert status_for(NoSuchInstanceException("i-1")) == 404
    assert status_for(RuntimeError("boom")) == 500


def test_provision_subclassed_parameter_error_is_bad_request() -> None:
    controller = ProvisioningController()
    controller.register_deployer(
        FakeDeployer("d1", ("svc-a",), error=MissingGithubCredentials("GITHUB_CLIENT_ID is required"))
    )
    with TestClient(create_app(controller)) as client:
        resp = client.put("/v2/service_instances/i-1", json={"service_id": "svc-a", "plan_id": "default"})
    assert resp.status_code == 400
    assert resp.json() == {"description": "GITHUB_CLIENT_ID is required"}
