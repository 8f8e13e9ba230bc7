import pytest
from starlette.testclient import TestClient
from typer.testing import CliRunner

from msbroker.main import create_app
from msbroker.services.controller import ProvisioningController
from tests.fakes import FakeDeployer, FakeKube


@pytest.fixture
def controller():
    return ProvisioningController()


@pytest.fixture
def fake_kube():
    return FakeKube()


@pytest.fixture
def populated_controller(controller):
    controller.register_deployer(FakeDeployer("d1", ("svc-a", "svc-b")))
    controller.register_deployer(FakeDeployer("d2", ("svc-c",)))
    return controller


@pytest.fixture
def client(populated_controller):
    with TestClient(create_app(populated_controller)) as client:
        yield client


@pytest.fixture
def cli_runner(monkeypatch, populated_controller):
    import msbroker.cli as cli

    monkeypatch.setattr(cli, "build_controller", lambda: populated_controller)
    return CliRunner(), cli.app
