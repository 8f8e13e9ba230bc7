from __future__ import annotations

from typing import Any

from msbroker.models import (
    InputParametersSchema,
    Schemas,
    Service,
    ServiceBindingSchema,
    ServiceInstanceSchema,
    ServicePlan,
)

LAUNCHER_SERVICE_ID = "launcher-service-id"
OAUTH_SECRET_NAME = "launcher-oauth-github"
COMPONENTS = {
    "launcher-backend": "fabric8/launcher-backend:latest",
    "launcher-frontend": "fabric8/launcher-frontend:latest",
}

PARAMETERS_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-04/schema#",
    "type": "object",
    "properties": {
        "GITHUB_CLIENT_ID": {"description": "Github oauth app client id", "type": "string"},
        "GITHUB_CLIENT_SECRET": {"description": "Github oauth app client secret", "type": "string"},
    },
    "required": ["GITHUB_CLIENT_ID", "GITHUB_CLIENT_SECRET"],
}


def catalog_services() -> list[Service]:
    return [
        Service(
            id=LAUNCHER_SERVICE_ID,
            name="launcher",
            description="launcher",
            metadata={"serviceName": "launcher", "serviceType": "launcher"},
            plans=[
                ServicePlan(
                    id="default-launcher",
                    name="default-launcher",
                    description="default launcher plan",
                    free=True,
                    schemas=Schemas(
                        service_binding=ServiceBindingSchema(create=InputParametersSchema()),
                        service_instance=ServiceInstanceSchema(
                            create=InputParametersSchema(parameters=PARAMETERS_SCHEMA),
                        ),
                    ),
                )
            ],
        )
    ]


def namespace_for(instance_id: str) -> str:
    return f"launcher-{instance_id}"


def oauth_secret(client_id: str, client_secret: str) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {"name": OAUTH_SECRET_NAME, "labels": {"app": "launcher"}},
        "type": "Opaque",
        "stringData": {"clientId": client_id, "clientSecret": client_secret},
    }


def component_deployment(name: str, image: str) -> dict[str, Any]:
    labels = {"app": "launcher", "component": name}
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "labels": labels},
        "spec": {
            "replicas": 1,
            "selector": {"matchLabels": labels},
            "template": {
                "metadata": {"labels": labels},
                "spec": {
                    "containers": [
                        {
                            "name": name,
                            "image": image,
                            "envFrom": [{"secretRef": {"name": OAUTH_SECRET_NAME}}],
                        }
                    ]
                },
            },
        },
    }
