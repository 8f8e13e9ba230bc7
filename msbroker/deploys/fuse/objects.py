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

FUSE_SERVICE_ID = "fuse-service-id"
OPERATOR_NAME = "syndesis-operator"
OPERATOR_IMAGE = "docker.io/syndesis/syndesis-operator"
OPERATOR_TAG = "1.3"
WATCHED_DEPLOYMENTS = ("syndesis-oauthproxy", "syndesis-server", "syndesis-ui")


def catalog_services() -> list[Service]:
    return [
        Service(
            id=FUSE_SERVICE_ID,
            name="fuse",
            description="Integration platform for connecting applications and services",
            metadata={"serviceName": "fuse", "serviceType": "fuse"},
            plans=[
                ServicePlan(
                    id="default-fuse",
                    name="default-fuse",
                    description="default fuse plan",
                    free=True,
                    schemas=Schemas(
                        service_instance=ServiceInstanceSchema(create=InputParametersSchema(parameters={})),
                        service_binding=ServiceBindingSchema(create=InputParametersSchema(parameters={})),
                    ),
                )
            ],
        )
    ]


def namespace_for(instance_id: str) -> str:
    return f"fuse-{instance_id}"


def service_account() -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "ServiceAccount",
        "metadata": {
            "name": OPERATOR_NAME,
            "labels": {"app": "syndesis", "syndesis.io/app": "syndesis", "syndesis.io/component": OPERATOR_NAME},
        },
    }


def operator_role() -> dict[str, Any]:
    return {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": "Role",
        "metadata": {"name": OPERATOR_NAME, "labels": {"app": "syndesis"}},
        "rules": [
            {"apiGroups": ["syndesis.io"], "resources": ["*"], "verbs": ["*"]},
            {
                "apiGroups": [""],
                "resources": [
                    "pods",
                    "services",
                    "endpoints",
                    "persistentvolumeclaims",
                    "configmaps",
                    "secrets",
                    "serviceaccounts",
                ],
                "verbs": ["*"],
            },
            {"apiGroups": [""], "resources": ["events"], "verbs": ["get", "list"]},
            {"apiGroups": ["rbac.authorization.k8s.io"], "resources": ["roles", "rolebindings"], "verbs": ["*"]},
            {
                "apiGroups": ["template.openshift.io"],
                "resources": ["processedtemplates"],
                "verbs": ["*"],
            },
            {
                "apiGroups": ["image.openshift.io"],
                "resources": ["imagestreams"],
                "verbs": ["create", "delete", "deletecollection", "get", "list", "patch", "update", "watch"],
            },
            {
                "apiGroups": ["apps.openshift.io"],
                "resources": ["deploymentconfigs"],
                "verbs": ["create", "delete", "deletecollection", "get", "list", "patch", "update", "watch"],
            },
            {"apiGroups": ["route.openshift.io"], "resources": ["routes", "routes/custom-host"], "verbs": ["*"]},
        ],
    }


def _role_binding(name: str, role_kind: str, role_name: str, subjects: list[dict[str, str]]) -> dict[str, Any]:
    return {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": "RoleBinding",
        "metadata": {"name": name, "labels": {"app": "syndesis"}},
        "roleRef": {"apiGroup": "rbac.authorization.k8s.io", "kind": role_kind, "name": role_name},
        "subjects": subjects,
    }


def system_role_bindings(namespace: str) -> list[dict[str, Any]]:
    service_accounts = f"system:serviceaccounts:{namespace}"
    return [
        _role_binding(
            "system:image-pullers",
            "ClusterRole",
            "system:image-puller",
            [{"kind": "Group", "name": service_accounts, "apiGroup": "rbac.authorization.k8s.io"}],
        ),
        _role_binding(
            "system:image-builders",
            "ClusterRole",
            "system:image-builder",
            [{"kind": "ServiceAccount", "name": "builder", "namespace": namespace}],
        ),
        _role_binding(
            "system:deployers",
            "ClusterRole",
            "system:deployer",
            [{"kind": "ServiceAccount", "name": "deployer", "namespace": namespace}],
        ),
    ]


def operator_role_bindings(namespace: str) -> list[dict[str, Any]]:
    subject = [{"kind": "ServiceAccount", "name": OPERATOR_NAME, "namespace": namespace}]
    return [
        _role_binding("syndesis-operator:install", "Role", OPERATOR_NAME, subject),
        _role_binding("syndesis-operator:view", "ClusterRole", "view", subject),
        _role_binding("syndesis-operator:edit", "ClusterRole", "edit", subject),
    ]


def image_stream() -> dict[str, Any]:
    return {
        "apiVersion": "image.openshift.io/v1",
        "kind": "ImageStream",
        "metadata": {"name": OPERATOR_NAME, "labels": {"app": "syndesis"}},
        "spec": {
            "tags": [
                {
                    "name": OPERATOR_TAG,
                    "from": {"kind": "DockerImage", "name": f"{OPERATOR_IMAGE}:{OPERATOR_TAG}"},
                    "importPolicy": {"scheduled": True},
                }
            ]
        },
    }


def operator_deployment_config() -> dict[str, Any]:
    labels = {"app": "syndesis", "syndesis.io/app": "syndesis", "syndesis.io/component": OPERATOR_NAME}
    return {
        "apiVersion": "apps.openshift.io/v1",
        "kind": "DeploymentConfig",
        "metadata": {"name": OPERATOR_NAME, "labels": labels},
        "spec": {
            "replicas": 1,
            "selector": {"syndesis.io/app": "syndesis", "syndesis.io/component": OPERATOR_NAME},
            "strategy": {"type": "Recreate"},
            "template": {
                "metadata": {"labels": labels},
                "spec": {
                    "serviceAccountName": OPERATOR_NAME,
                    "containers": [
                        {
                            "name": OPERATOR_NAME,
                            "image": " ",
                            "imagePullPolicy": "IfNotPresent",
                            "ports": [{"containerPort": 60000, "name": "metrics"}],
                            "env": [
                                {
                                    "name": "WATCH_NAMESPACE",
                                    "valueFrom": {"fieldRef": {"fieldPath": "metadata.namespace"}},
                                },
                                {
                                    "name": "POD_NAME",
                                    "valueFrom": {"fieldRef": {"fieldPath": "metadata.name"}},
                                },
                            ],
                        }
                    ],
                },
            },
            "triggers": [
                {
                    "type": "ImageChange",
                    "imageChangeParams": {
                        "automatic": True,
                        "containerNames": [OPERATOR_NAME],
                        "from": {"kind": "ImageStreamTag", "name": f"{OPERATOR_NAME}:{OPERATOR_TAG}"},
                    },
                },
                {"type": "ConfigChange"},
            ],
        },
    }


def syndesis_resource(*, route_hostname: str, user_namespace: str | None) -> dict[str, Any]:
    spec: dict[str, Any] = {
        "routeHostName": route_hostname,
        "demoData": False,
        "deployIntegrations": True,
        "integration": {"limit": 5},
    }
    if user_namespace:
        spec["sarNamespace"] = user_namespace
    return {
        "apiVersion": "syndesis.io/v1alpha1",
        "kind": "Syndesis",
        "metadata": {"name": "fuse"},
        "spec": spec,
    }
