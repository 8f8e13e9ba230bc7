from __future__ import annotations

import logging
from typing import Any

from msbroker.config import Settings
from msbroker.errors import NoMatchingDeployerException, UnimplementedException
from msbroker.models import (
    BindingRequest,
    Catalog,
    ContextProfile,
    CreateServiceBindingResponse,
    CreateServiceInstanceRequest,
    CreateServiceInstanceResponse,
    DeleteServiceInstanceResponse,
    LastOperationResponse,
)
from msbroker.services.deployer import Deployer
from msbroker.services.registry import DeployerRegistry
from msbroker.services.store import InstanceStore, ServiceInstanceRecord

logger = logging.getLogger(__name__)

OPERATION_PROVISION = "provision"
HTTP_INTERNAL_SERVER_ERROR = 500


class ProvisioningController:
    """Lifecycle operations of the broker.

    Dispatches to registered deployers and owns the instance store. Safe to
    call from multiple threads once deployer registration is complete.
    """

    def __init__(
        self,
        *,
        registry: DeployerRegistry | None = None,
        store: InstanceStore | None = None,
        delete_on_remove: bool = False,
    ) -> None:
        self.registry = registry if registry is not None else DeployerRegistry()
        self.store = store if store is not None else InstanceStore()
        self._delete_on_remove = delete_on_remove

    @classmethod
    def from_settings(cls, settings: Settings) -> ProvisioningController:
        return cls(
            registry=DeployerRegistry(reject_duplicates=settings.reject_duplicate_deployers),
            delete_on_remove=settings.delete_on_remove,
        )

    def register_deployer(self, deployer: Deployer) -> None:
        self.registry.register(deployer)

    def catalog(self) -> Catalog:
        logger.info("Building catalog from %s registered deployer(s)", len(self.registry))
        return self.registry.catalog()

    def create_service_instance(
        self,
        instance_id: str,
        request: CreateServiceInstanceRequest,
    ) -> CreateServiceInstanceResponse:
        logger.info("Create service instance id=%s service_id=%s plan_id=%s", instance_id, request.service_id, request.plan_id)
        try:
            deployer = self.registry.dispatch(request.service_id)
        except NoMatchingDeployerException as exc:
            logger.warning("Cannot provision instance id=%s: %s", instance_id, exc)
            return CreateServiceInstanceResponse(code=HTTP_INTERNAL_SERVER_ERROR, operation=OPERATION_PROVISION)
        return deployer.provision(instance_id, request)

    def get_service_instance_last_operation(
        self,
        instance_id: str,
        service_id: str,
        plan_id: str,
        operation: str,
    ) -> LastOperationResponse:
        logger.info(
            "Last operation requested id=%s service_id=%s operation=%s",
            instance_id,
            service_id,
            operation,
        )
        raise UnimplementedException("last operation is not implemented by the controller")

    def poll_service_instance(
        self,
        instance_id: str,
        service_id: str,
        context: ContextProfile | None = None,
    ) -> LastOperationResponse:
        """Ask the deployer responsible for ``service_id`` how provisioning is going."""
        deployer = self.registry.dispatch(service_id)
        status = deployer.poll_status(instance_id, context)
        logger.info("Instance id=%s state=%s (%s)", instance_id, status.state.value, status.description)
        return status

    def remove_service_instance(
        self,
        instance_id: str,
        service_id: str,
        plan_id: str,
        accepts_incomplete: bool = False,
    ) -> DeleteServiceInstanceResponse:
        logger.info("Remove service instance id=%s", instance_id)
        if self._delete_on_remove:
            self.store.delete(instance_id)
        return DeleteServiceInstanceResponse()

    def register_instance(self, instance_id: str, *, name: str, credential: dict[str, Any]) -> None:
        self.store.put(instance_id, ServiceInstanceRecord(name=name, credential=dict(credential)))
        logger.info("Registered credential for instance id=%s name=%s", instance_id, name)

    def bind(
        self,
        instance_id: str,
        binding_id: str,
        request: BindingRequest | None = None,
    ) -> CreateServiceBindingResponse:
        logger.info("Bind instance id=%s binding_id=%s", instance_id, binding_id)
        record = self.store.get(instance_id)
        return CreateServiceBindingResponse(credentials=record.credential)

    def unbind(self, instance_id: str, binding_id: str, service_id: str, plan_id: str) -> None:
        # Bindings are not persisted, so there is nothing to release.
        logger.info("Unbind instance id=%s binding_id=%s", instance_id, binding_id)
