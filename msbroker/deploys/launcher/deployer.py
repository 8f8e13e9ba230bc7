from __future__ import annotations

import logging

from msbroker.deploys.launcher import objects
from msbroker.deploys.steps import provisioning_step
from msbroker.errors import InvalidParametersException
from msbroker.kube_adapter import KubeAdapter
from msbroker.models import (
    ContextProfile,
    CreateServiceInstanceRequest,
    CreateServiceInstanceResponse,
    LastOperationResponse,
    Service,
)
from msbroker.services.deployer import Deployer, validate_parameters
from msbroker.services.status import Probe, ProbeResult, aggregate_probes

logger = logging.getLogger(__name__)

HTTP_ACCEPTED = 202


class LauncherDeployer(Deployer):
    def __init__(self, id: str = "launcher", *, kube: KubeAdapter | None = None) -> None:
        self._id = id
        self._kube = kube or KubeAdapter()

    def identity(self) -> str:
        return self._id

    def responsible(self, service_id: str) -> bool:
        return service_id == objects.LAUNCHER_SERVICE_ID

    def catalog_entries(self) -> list[Service]:
        return objects.catalog_services()

    def provision(self, instance_id: str, request: CreateServiceInstanceRequest) -> CreateServiceInstanceResponse:
        logger.info("Deploying launcher for instance id=%s", instance_id)
        service = self.find_service(request.service_id)
        if service is None:
            raise InvalidParametersException(f"service {request.service_id} is not offered by {self._id}")
        validate_parameters(service, request)

        namespace = objects.namespace_for(instance_id)
        with provisioning_step("namespace", "failed to create namespace for launcher service"):
            self._kube.ensure_namespace(namespace)
        with provisioning_step("oauth-secret", "failed to create github oauth secret for launcher service"):
            self._kube.apply(
                objects.oauth_secret(
                    request.parameters["GITHUB_CLIENT_ID"],
                    request.parameters["GITHUB_CLIENT_SECRET"],
                ),
                namespace=namespace,
            )
        for name, image in objects.COMPONENTS.items():
            with provisioning_step(name, f"failed to create {name} deployment for launcher service"):
                self._kube.apply(objects.component_deployment(name, image), namespace=namespace)

        return CreateServiceInstanceResponse(code=HTTP_ACCEPTED)

    def poll_status(self, instance_id: str, context: ContextProfile | None = None) -> LastOperationResponse:
        namespace = objects.namespace_for(instance_id)
        probes = [
            Probe(name=name, check=lambda name=name: self._deployment_ready(name, namespace))
            for name in objects.COMPONENTS
        ]
        return aggregate_probes(probes, success_description="launcher deployed successfully").to_response()

    def _deployment_ready(self, name: str, namespace: str) -> ProbeResult:
        report = self._kube.workload_conditions("deployment", name, namespace=namespace)
        if not report.exists:
            return ProbeResult.in_progress(f"{name} has not been created yet")
        if (unready := report.first_unready()) is not None:
            return ProbeResult.in_progress(str(unready.get("message") or f"{name} is not ready"))
        if not report.is_true("Available"):
            return ProbeResult.in_progress(f"waiting for {name} to become available")
        return ProbeResult.succeeded()
