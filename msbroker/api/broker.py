from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from msbroker.api.utils import get_controller
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
from msbroker.services.controller import ProvisioningController

router = APIRouter(prefix="/v2", tags=["broker"])


@router.get("/catalog", response_model=Catalog, response_model_exclude_none=True)
def get_catalog(controller: ProvisioningController = Depends(get_controller)) -> Catalog:
    return controller.catalog()


@router.put(
    "/service_instances/{instance_id}",
    response_model=CreateServiceInstanceResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_202_ACCEPTED,
)
def create_service_instance(
    instance_id: str,
    payload: CreateServiceInstanceRequest,
    response: Response,
    accepts_incomplete: bool = False,
    controller: ProvisioningController = Depends(get_controller),
) -> CreateServiceInstanceResponse:
    if accepts_incomplete:
        payload.accepts_incomplete = True
    result = controller.create_service_instance(instance_id, payload)
    response.status_code = result.code
    return result


@router.get("/service_instances/{instance_id}/last_operation", response_model=LastOperationResponse)
def get_last_operation(
    instance_id: str,
    service_id: str | None = None,
    plan_id: str = "",
    operation: str = "",
    namespace: str | None = None,
    controller: ProvisioningController = Depends(get_controller),
) -> LastOperationResponse:
    if service_id:
        return controller.poll_service_instance(instance_id, service_id, ContextProfile(namespace=namespace))
    return controller.get_service_instance_last_operation(instance_id, "", plan_id, operation)


@router.delete(
    "/service_instances/{instance_id}",
    response_model=DeleteServiceInstanceResponse,
    response_model_exclude_none=True,
)
def remove_service_instance(
    instance_id: str,
    service_id: str = "",
    plan_id: str = "",
    accepts_incomplete: bool = False,
    controller: ProvisioningController = Depends(get_controller),
) -> DeleteServiceInstanceResponse:
    return controller.remove_service_instance(instance_id, service_id, plan_id, accepts_incomplete)


@router.put(
    "/service_instances/{instance_id}/service_bindings/{binding_id}",
    response_model=CreateServiceBindingResponse,
    status_code=status.HTTP_201_CREATED,
)
def bind(
    instance_id: str,
    binding_id: str,
    payload: BindingRequest,
    controller: ProvisioningController = Depends(get_controller),
) -> CreateServiceBindingResponse:
    return controller.bind(instance_id, binding_id, payload)


@router.delete("/service_instances/{instance_id}/service_bindings/{binding_id}")
def unbind(
    instance_id: str,
    binding_id: str,
    service_id: str = "",
    plan_id: str = "",
    controller: ProvisioningController = Depends(get_controller),
) -> dict:
    controller.unbind(instance_id, binding_id, service_id, plan_id)
    return {}
