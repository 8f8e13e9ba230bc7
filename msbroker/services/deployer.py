from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import Any

from jsonschema import SchemaError, ValidationError
from jsonschema import validate as jsonschema_validate

from msbroker.errors import InvalidParametersException, UnimplementedException
from msbroker.models import (
    ContextProfile,
    CreateServiceInstanceRequest,
    CreateServiceInstanceResponse,
    LastOperationResponse,
    Service,
)

logger = logging.getLogger(__name__)


class Deployer(ABC):
    """Provisioning logic for one family of managed services.

    Subclasses are registered with a ``DeployerRegistry``; the controller only
    talks to them through this interface.
    """

    @abstractmethod
    def identity(self) -> str:
        """Stable key the deployer is registered under."""

    @abstractmethod
    def responsible(self, service_id: str) -> bool:
        """Whether this deployer provisions ``service_id``. Must be side-effect free."""

    @abstractmethod
    def catalog_entries(self) -> list[Service]:
        ...

    @abstractmethod
    def provision(
        self,
        instance_id: str,
        request: CreateServiceInstanceRequest,
    ) -> CreateServiceInstanceResponse:
        ...

    def poll_status(self, instance_id: str, context: ContextProfile | None = None) -> LastOperationResponse:
        raise UnimplementedException(f"deployer {self.identity()} does not report operation status")

    def find_service(self, service_id: str) -> Service | None:
        return next((svc for svc in self.catalog_entries() if svc.id == service_id), None)


def validate_parameters(service: Service, request: CreateServiceInstanceRequest) -> None:
    """Validate request parameters against the selected plan's create schema."""
    plan = service.get_plan(request.plan_id)
    if plan is None:
        raise InvalidParametersException(f"plan {request.plan_id!r} is not offered by service {service.id}")
    schema: dict[str, Any] | None = plan.create_parameters_schema()
    if not schema:
        return
    try:
        jsonschema_validate(instance=request.parameters, schema=schema)
    except ValidationError as exc:
        raise InvalidParametersException(f"parameters are invalid: {exc.message}") from exc
    except SchemaError as exc:
        logger.error("Plan %s of service %s carries an invalid schema", plan.id, service.id)
        raise InvalidParametersException(f"plan {plan.id} has an invalid parameter schema") from exc
