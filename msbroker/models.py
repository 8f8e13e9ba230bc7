from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class OperationState(str, Enum):
    IN_PROGRESS = "in progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self is not OperationState.IN_PROGRESS


class InputParametersSchema(BaseModel):
    parameters: Optional[dict[str, Any]] = None


class ServiceInstanceSchema(BaseModel):
    create: Optional[InputParametersSchema] = None


class ServiceBindingSchema(BaseModel):
    create: Optional[InputParametersSchema] = None


class Schemas(BaseModel):
    service_instance: Optional[ServiceInstanceSchema] = None
    service_binding: Optional[ServiceBindingSchema] = None


class ServicePlan(BaseModel):
    id: str
    name: str
    description: str = ""
    free: bool = True
    schemas: Optional[Schemas] = None

    def create_parameters_schema(self) -> dict[str, Any] | None:
        if self.schemas is None or self.schemas.service_instance is None:
            return None
        create = self.schemas.service_instance.create
        return create.parameters if create is not None else None


class Service(BaseModel):
    id: str
    name: str
    description: str = ""
    bindable: bool = False
    metadata: dict[str, str] = Field(default_factory=dict)
    plans: list[ServicePlan] = Field(default_factory=list)

    def get_plan(self, plan_id: str) -> ServicePlan | None:
        return next((plan for plan in self.plans if plan.id == plan_id), None)


class Catalog(BaseModel):
    services: list[Service] = Field(default_factory=list)


class ContextProfile(BaseModel):
    platform: Optional[str] = None
    namespace: Optional[str] = None


class CreateServiceInstanceRequest(BaseModel):
    service_id: str
    plan_id: str = ""
    organization_guid: Optional[str] = None
    space_guid: Optional[str] = None
    context: ContextProfile = Field(default_factory=ContextProfile)
    parameters: dict[str, Any] = Field(default_factory=dict)
    accepts_incomplete: bool = False


class CreateServiceInstanceResponse(BaseModel):
    code: int
    dashboard_url: Optional[str] = None
    operation: Optional[str] = None


class LastOperationResponse(BaseModel):
    state: OperationState
    description: str = ""


class DeleteServiceInstanceResponse(BaseModel):
    operation: Optional[str] = None


class BindingRequest(BaseModel):
    service_id: str = ""
    plan_id: str = ""
    app_guid: Optional[str] = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class CreateServiceBindingResponse(BaseModel):
    credentials: dict[str, Any] = Field(default_factory=dict)
