"""Generating deployment, service, route and kustomization manifests for a component."""

from __future__ import annotations

import os
from typing import Any

from appservice.ioutils import Filesystem
from appservice.kustomization import Kustomization
from appservice.models import Component
from appservice.yaml_resources import write_resources

__all__ = [
    "DEPLOYMENT_FILE_NAME",
    "SERVICE_FILE_NAME",
    "ROUTE_FILE_NAME",
    "KUSTOMIZATION_FILE_NAME",
    "generate",
    "generate_deployment",
    "generate_service",
    "generate_route",
    "get_replicas",
]

DEPLOYMENT_FILE_NAME = "deployment.yaml"
SERVICE_FILE_NAME = "service.yaml"
ROUTE_FILE_NAME = "route.yaml"
KUSTOMIZATION_FILE_NAME = "kustomization.yaml"


def _labels(component: Component) -> dict[str, str]:
    return {"component": component.name}


def _metadata(component: Component, labels: dict[str, str] | None = None) -> dict[str, Any]:
    metadata: dict[str, Any] = {}
    if component.name:
        metadata["name"] = component.name
    if component.namespace:
        metadata["namespace"] = component.namespace
    if labels:
        metadata["labels"] = labels
    return metadata


def generate(fs: Filesystem, output_folder: str | os.PathLike[str], component: Component) -> None:
    """Write the manifests for a component, plus a kustomization, into ``output_folder``.

    A service and a route are only written when the component has a target port.
    """
    kustomization = Kustomization()
    kustomization.add_resources(DEPLOYMENT_FILE_NAME)
    resources: dict[str, Any] = {DEPLOYMENT_FILE_NAME: generate_deployment(component)}

    if component.spec.target_port != 0:
        resources[SERVICE_FILE_NAME] = generate_service(component)
        resources[ROUTE_FILE_NAME] = generate_route(component)
        kustomization.add_resources(DEPLOYMENT_FILE_NAME, SERVICE_FILE_NAME, ROUTE_FILE_NAME)
    resources[KUSTOMIZATION_FILE_NAME] = kustomization

    write_resources(fs, output_folder, resources)


def generate_deployment(component: Component) -> dict[str, Any]:
    """Return the Deployment manifest for a component."""
    spec = component.spec
    container: dict[str, Any] = {
        "name": "container-image",
        "imagePullPolicy": "Always",
        "resources": spec.resources.to_dict(),
    }
    if spec.container_image:
        container["image"] = spec.container_image
    if spec.env:
        container["env"] = [env.to_dict() for env in spec.env]

    if spec.target_port != 0:
        port = spec.target_port
        container["ports"] = [{"containerPort": port}]
        container["readinessProbe"] = {
            "initialDelaySeconds": 10,
            "periodSeconds": 10,
            "tcpSocket": {"port": port},
        }
        container["livenessProbe"] = {
            "initialDelaySeconds": 10,
            "periodSeconds": 10,
            "httpGet": {"port": port, "path": "/"},
        }

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": _metadata(component),
        "spec": {
            "replicas": get_replicas(component),
            "selector": {"matchLabels": _labels(component)},
            "template": {
                "metadata": {"labels": _labels(component)},
                "spec": {"containers": [container]},
            },
        },
    }


def generate_service(component: Component) -> dict[str, Any]:
    """Return the Service manifest exposing the component's target port."""
    port = component.spec.target_port
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": _metadata(component),
        "spec": {
            "selector": _labels(component),
            "ports": [{"port": port, "targetPort": port}],
        },
    }


def generate_route(component: Component) -> dict[str, Any]:
    """Return the edge-terminated Route manifest for the component's service."""
    spec: dict[str, Any] = {
        "port": {"targetPort": component.spec.target_port},
        "tls": {
            "insecureEdgeTerminationPolicy": "Redirect",
            "termination": "edge",
        },
        "to": {"kind": "Service", "name": component.name, "weight": 100},
    }
    if component.spec.route:
        spec["host"] = component.spec.route
    return {
        "apiVersion": "v1",
        "kind": "Route",
        "metadata": _metadata(component, _labels(component)),
        "spec": spec,
    }


def get_replicas(component: Component) -> int:
    """Return the component's replica count, defaulting to 1 when it is not positive."""
    if component.spec.replicas > 0:
        return component.spec.replicas
    return 1