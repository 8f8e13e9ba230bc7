from __future__ import annotations

import logging

from msbroker.deploys.fuse import objects
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
REGISTRY_ROUTE = "registry-console"
REGISTRY_ROUTE_NAMESPACE = "default"


class FuseDeployer(Deployer):
    """Provisions a Fuse (Syndesis) environment in its own namespace."""

    def __init__(self, id: str = "fuse", *, kube: KubeAdapter | None = None, route_suffix: str | None = None) -> None:
        self._id = id
        self._kube = kube or KubeAdapter()
        self._route_suffix = route_suffix

    def identity(self) -> str:
        return self._id

    def responsible(self, service_id: str) -> bool:
        return service_id == objects.FUSE_SERVICE_ID

    def catalog_entries(self) -> list[Service]:
        logger.debug("Getting fuse catalog entries")
        return objects.catalog_services()

    def provision(self, instance_id: str, request: CreateServiceInstanceRequest) -> CreateServiceInstanceResponse:
        logger.info("Deploying fuse for instance id=%s", instance_id)
        service = self.find_service(request.service_id)
        if service is None:
            raise InvalidParametersException(f"service {request.service_id} is not offered by {self._id}")
        validate_parameters(service, request)

        namespace = objects.namespace_for(instance_id)
        with provisioning_step("namespace", "failed to create namespace for fuse service"):
            self._kube.ensure_namespace(namespace)
        with provisioning_step("service-account", "failed to create service account for fuse service"):
            self._kube.apply(objects.service_account(), namespace=namespace)
        with provisioning_step("role", "failed to create role for fuse service"):
            self._kube.apply(objects.operator_role(), namespace=namespace)
        with provisioning_step("role-bindings", "failed to create role bindings for fuse service"):
            for binding in [*objects.system_role_bindings(namespace), *objects.operator_role_bindings(namespace)]:
                self._kube.apply(binding, namespace=namespace)
        with provisioning_step("image-stream", "failed to create image stream for fuse service"):
            self._kube.apply(objects.image_stream(), namespace=namespace)
        with provisioning_step("operator", "failed to create deployment config for fuse service"):
            self._kube.apply(objects.operator_deployment_config(), namespace=namespace)
        with provisioning_step("route-hostname", "failed to get fuse dashboard url"):
            hostname = self._route_hostname(namespace)
        with provisioning_step("custom-resource", "failed to create a fuse custom resource"):
            self._kube.apply(
                objects.syndesis_resource(route_hostname=hostname, user_namespace=request.context.namespace),
                namespace=namespace,
            )

        logger.info("Fuse provisioning accepted for instance id=%s namespace=%s", instance_id, namespace)
        return CreateServiceInstanceResponse(code=HTTP_ACCEPTED, dashboard_url=f"https://{hostname}")

    def poll_status(self, instance_id: str, context: ContextProfile | None = None) -> LastOperationResponse:
        logger.info("Getting last operation for fuse instance id=%s", instance_id)
        namespace = objects.namespace_for(instance_id)
        probes = [
            Probe(name=name, check=lambda name=name: self._deployment_ready(name, namespace))
            for name in objects.WATCHED_DEPLOYMENTS
        ]
        result = aggregate_probes(probes, success_description="fuse deployed successfully")
        if result.error is not None:
            logger.warning("Fuse status check failed for instance id=%s: %s", instance_id, result.error)
        return result.to_response()

    def _deployment_ready(self, name: str, namespace: str) -> ProbeResult:
        report = self._kube.workload_conditions("deploymentconfig", name, namespace=namespace)
        if not report.exists:
            return ProbeResult.in_progress(f"{name} has not been created yet")
        unready = report.first_unready()
        if unready is not None:
            logger.debug("%s not yet ready in namespace %s", name, namespace)
            return ProbeResult.in_progress(str(unready.get("message") or f"{name} is not ready"))
        return ProbeResult.succeeded()

    def _route_hostname(self, namespace: str) -> str:
        if self._route_suffix:
            return f"fuse-{namespace}{self._route_suffix}"
        route = self._kube.get_object("route", REGISTRY_ROUTE, namespace=REGISTRY_ROUTE_NAMESPACE)
        if route is None:
            raise ValueError(f"route {REGISTRY_ROUTE} not found in namespace {REGISTRY_ROUTE_NAMESPACE}")
        host = route.get("spec", {}).get("host", "")
        prefix = f"{REGISTRY_ROUTE}-{REGISTRY_ROUTE_NAMESPACE}"
        if not host.startswith(prefix):
            raise ValueError(f"unexpected host {host!r} on route {REGISTRY_ROUTE}")
        return f"fuse-{namespace}{host[len(prefix):]}"
