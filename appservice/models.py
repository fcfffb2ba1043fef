"""Application, component and detection-query resources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from appservice.quantity import Quantity

__all__ = [
    "RESOURCE_CPU",
    "RESOURCE_MEMORY",
    "RESOURCE_STORAGE",
    "RESOURCE_EPHEMERAL_STORAGE",
    "EnvVar",
    "GitSource",
    "ResourceRequirements",
    "ComponentSpec",
    "Component",
    "ApplicationGitRepository",
    "ApplicationSpec",
    "Application",
    "ComponentDetectionDescription",
    "ComponentDetectionQuery",
]

RESOURCE_CPU = "cpu"
RESOURCE_MEMORY = "memory"
RESOURCE_STORAGE = "storage"
RESOURCE_EPHEMERAL_STORAGE = "ephemeral-storage"


@dataclass
class EnvVar:
    """An environment variable given to a container."""

    name: str
    value: str = ""
    value_from: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the variable in manifest form, leaving out empty fields."""
        result: dict[str, Any] = {"name": self.name}
        if self.value:
            result["value"] = self.value
        if self.value_from is not None:
            result["valueFrom"] = self.value_from
        return result


@dataclass
class GitSource:
    """Location of a component's source repository."""

    url: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the source in manifest form."""
        return {"url": self.url}


@dataclass
class ResourceRequirements:
    """Resource limits and requests, keyed by resource name."""

    limits: dict[str, Quantity] = field(default_factory=dict)
    requests: dict[str, Quantity] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the requirements with quantities as strings, leaving out empty maps."""
        result: dict[str, Any] = {}
        if self.limits:
            result["limits"] = {name: str(q) for name, q in self.limits.items()}
        if self.requests:
            result["requests"] = {name: str(q) for name, q in self.requests.items()}
        return result


@dataclass
class ComponentSpec:
    """The desired state of a component."""

    component_name: str = ""
    application: str = ""
    context: str = ""
    git_source: GitSource | None = None
    route: str = ""
    replicas: int = 0
    target_port: int = 0
    env: list[EnvVar] = field(default_factory=list)
    resources: ResourceRequirements = field(default_factory=ResourceRequirements)
    container_image: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the spec in manifest form, leaving out empty fields."""
        result: dict[str, Any] = {}
        if self.component_name:
            result["componentName"] = self.component_name
        if self.application:
            result["application"] = self.application
        if self.context:
            result["context"] = self.context
        if self.git_source is not None:
            result["source"] = {"git": self.git_source.to_dict()}
        if self.route:
            result["route"] = self.route
        if self.replicas:
            result["replicas"] = self.replicas
        if self.target_port:
            result["targetPort"] = self.target_port
        if self.env:
            result["env"] = [env.to_dict() for env in self.env]
        resources = self.resources.to_dict()
        if resources:
            result["resources"] = resources
        if self.container_image:
            result["build"] = {"containerImage": self.container_image}
        return result


@dataclass
class Component:
    """A named component within a namespace."""

    name: str = ""
    namespace: str = ""
    spec: ComponentSpec = field(default_factory=ComponentSpec)


@dataclass
class ApplicationGitRepository:
    """A repository used by an application, with optional branch and context."""

    url: str = ""
    branch: str = ""
    context: str = ""


@dataclass
class ApplicationSpec:
    """The desired state of an application."""

    display_name: str = ""
    description: str = ""
    app_model_repository: ApplicationGitRepository = field(
        default_factory=ApplicationGitRepository
    )
    git_ops_repository: ApplicationGitRepository = field(
        default_factory=ApplicationGitRepository
    )


@dataclass
class Application:
    """A named application within a namespace."""

    name: str = ""
    namespace: str = ""
    spec: ApplicationSpec = field(default_factory=ApplicationSpec)


@dataclass
class ComponentDetectionDescription:
    """What was detected for one devfile in a repository."""

    devfile_found: bool = False
    language: str = ""
    project_type: str = ""
    component_stub: ComponentSpec = field(default_factory=ComponentSpec)


@dataclass
class ComponentDetectionQuery:
    """A request to detect components in a repository, and its results."""

    name: str = ""
    namespace: str = ""
    git_source: GitSource = field(default_factory=GitSource)
    component_detected: dict[str, ComponentDetectionDescription] = field(
        default_factory=dict
    )