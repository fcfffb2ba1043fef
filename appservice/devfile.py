"""A devfile data model with parsing, serialization and conversion from applications."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Iterable

import yaml

from appservice.models import Application

__all__ = [
    "DEVFILE_NAME",
    "HIDDEN_DEVFILE_NAME",
    "HIDDEN_DEVFILE_DIR",
    "DEVFILE",
    "HIDDEN_DEVFILE",
    "HIDDEN_DIR_DEVFILE",
    "HIDDEN_DIR_HIDDEN_DEVFILE",
    "SCHEMA_VERSION_210",
    "SCHEMA_VERSION_220",
    "Attributes",
    "AttributeKeyNotFound",
    "DevfileError",
    "DevfileMetadata",
    "DevfileEnvVar",
    "Endpoint",
    "Container",
    "DevfileComponent",
    "Project",
    "DevfileData",
    "parse_devfile_model",
    "convert_application_to_devfile",
]

DEVFILE_NAME = "devfile.yaml"
HIDDEN_DEVFILE_NAME = ".devfile.yaml"
HIDDEN_DEVFILE_DIR = ".devfile"

DEVFILE = DEVFILE_NAME
HIDDEN_DEVFILE = HIDDEN_DEVFILE_NAME
HIDDEN_DIR_DEVFILE = f"{HIDDEN_DEVFILE_DIR}/{DEVFILE_NAME}"
HIDDEN_DIR_HIDDEN_DEVFILE = f"{HIDDEN_DEVFILE_DIR}/{HIDDEN_DEVFILE_NAME}"

SCHEMA_VERSION_210 = "2.1.0"
SCHEMA_VERSION_220 = "2.2.0"


class DevfileError(ValueError):
    """Raised when a devfile is invalid or an operation on it fails."""


class AttributeKeyNotFound(KeyError):
    """Raised when an attribute key is absent."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return f"Attribute with key {self.key!r} does not exist"


class Attributes(dict):
    """Free-form attributes attached to devfile metadata or components."""

    def put_string(self, key: str, value: str) -> "Attributes":
        """Set a string attribute and return the attributes."""
        self[key] = str(value)
        return self

    def put_integer(self, key: str, value: int) -> "Attributes":
        """Set an integer attribute and return the attributes."""
        self[key] = int(value)
        return self

    def get_string(self, key: str) -> str:
        """Return a string attribute; raise if absent or not a string."""
        if key not in self:
            raise AttributeKeyNotFound(key)
        value = self[key]
        if not isinstance(value, str):
            raise DevfileError(f"attribute {key!r} is not a string: {value!r}")
        return value

    def get_number(self, key: str) -> float:
        """Return a numeric attribute; raise if absent or not a number."""
        if key not in self:
            raise AttributeKeyNotFound(key)
        value = self[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise DevfileError(f"attribute {key!r} is not a number: {value!r}")
        return float(value)


@dataclass
class DevfileMetadata:
    """The metadata block of a devfile."""

    name: str = ""
    description: str = ""
    language: str = ""
    project_type: str = ""
    attributes: Attributes = field(default_factory=Attributes)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.attributes:
            result["attributes"] = dict(self.attributes)
        if self.description:
            result["description"] = self.description
        if self.language:
            result["language"] = self.language
        if self.name:
            result["name"] = self.name
        if self.project_type:
            result["projectType"] = self.project_type
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DevfileMetadata":
        return cls(
            name=str(data.get("name", "") or ""),
            description=str(data.get("description", "") or ""),
            language=str(data.get("language", "") or ""),
            project_type=str(data.get("projectType", "") or ""),
            attributes=Attributes(data.get("attributes") or {}),
        )


@dataclass
class DevfileEnvVar:
    """An environment variable of a devfile container."""

    name: str
    value: str = ""


@dataclass
class Endpoint:
    """A network endpoint exposed by a devfile container."""

    name: str
    target_port: int = 0


@dataclass
class Container:
    """The container part of a devfile component."""

    image: str = ""
    env: list[DevfileEnvVar] = field(default_factory=list)
    endpoints: list[Endpoint] = field(default_factory=list)
    cpu_limit: str = ""
    cpu_request: str = ""
    memory_limit: str = ""
    memory_request: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.cpu_limit:
            result["cpuLimit"] = self.cpu_limit
        if self.cpu_request:
            result["cpuRequest"] = self.cpu_request
        if self.endpoints:
            result["endpoints"] = [
                {"name": e.name, "targetPort": e.target_port} for e in self.endpoints
            ]
        if self.env:
            result["env"] = [{"name": e.name, "value": e.value} for e in self.env]
        if self.image:
            result["image"] = self.image
        if self.memory_limit:
            result["memoryLimit"] = self.memory_limit
        if self.memory_request:
            result["memoryRequest"] = self.memory_request
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Container":
        return cls(
            image=str(data.get("image", "") or ""),
            env=[
                DevfileEnvVar(str(e["name"]), str(e.get("value", "") or ""))
                for e in data.get("env") or []
            ],
            endpoints=[
                Endpoint(str(e["name"]), int(e.get("targetPort", 0) or 0))
                for e in data.get("endpoints") or []
            ],
            cpu_limit=str(data.get("cpuLimit", "") or ""),
            cpu_request=str(data.get("cpuRequest", "") or ""),
            memory_limit=str(data.get("memoryLimit", "") or ""),
            memory_request=str(data.get("memoryRequest", "") or ""),
        )


@dataclass
class DevfileComponent:
    """A devfile component; a container component when ``container`` is set."""

    name: str
    container: Container | None = None
    kubernetes: dict[str, Any] | None = None
    attributes: Attributes = field(default_factory=Attributes)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.attributes:
            result["attributes"] = dict(self.attributes)
        if self.container is not None:
            result["container"] = self.container.to_dict()
        if self.kubernetes is not None:
            result["kubernetes"] = dict(self.kubernetes)
        result["name"] = self.name
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DevfileComponent":
        name = data.get("name")
        if not name:
            raise DevfileError("devfile component is missing a name")
        container = data.get("container")
        return cls(
            name=str(name),
            container=Container.from_dict(container) if container is not None else None,
            kubernetes=data.get("kubernetes"),
            attributes=Attributes(data.get("attributes") or {}),
        )


@dataclass
class Project:
    """A project in a devfile, with its git remotes."""

    name: str
    git_remotes: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.git_remotes is not None:
            result["git"] = {"remotes": dict(self.git_remotes)}
        result["name"] = self.name
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        name = data.get("name")
        if not name:
            raise DevfileError("devfile project is missing a name")
        git = data.get("git")
        remotes = None
        if git is not None:
            remotes = {str(k): str(v) for k, v in (git.get("remotes") or {}).items()}
        return cls(name=str(name), git_remotes=remotes)


@dataclass
class DevfileData:
    """A whole devfile: schema version, metadata, components and projects."""

    schema_version: str = ""
    metadata: DevfileMetadata = field(default_factory=DevfileMetadata)
    components: list[DevfileComponent] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)

    def get_components(self, container_only: bool = False) -> list[DevfileComponent]:
        """Return copies of the components, optionally only the container ones."""
        return [
            copy.deepcopy(c)
            for c in self.components
            if not container_only or c.container is not None
        ]

    def update_component(self, component: DevfileComponent) -> None:
        """Replace the component with the same name."""
        for index, existing in enumerate(self.components):
            if existing.name == component.name:
                self.components[index] = copy.deepcopy(component)
                return
        raise DevfileError(f"update component failed: component {component.name} not found")

    def get_projects(self) -> list[Project]:
        """Return copies of the projects."""
        return copy.deepcopy(self.projects)

    def add_projects(self, projects: Iterable[Project]) -> None:
        """Append projects; raise if one has a name already present."""
        names = {p.name for p in self.projects}
        for project in projects:
            if project.name in names:
                raise DevfileError(f"project {project.name} already exists in devfile")
            names.add(project.name)
            self.projects.append(copy.deepcopy(project))

    def to_dict(self) -> dict[str, Any]:
        """Return the devfile in document form, leaving out empty fields."""
        result: dict[str, Any] = {}
        if self.components:
            result["components"] = [c.to_dict() for c in self.components]
        metadata = self.metadata.to_dict()
        if metadata:
            result["metadata"] = metadata
        if self.projects:
            result["projects"] = [p.to_dict() for p in self.projects]
        result["schemaVersion"] = self.schema_version
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DevfileData":
        """Build a devfile from its document form."""
        if not isinstance(data, dict):
            raise DevfileError("devfile content must be a mapping")
        try:
            return cls(
                schema_version=str(data.get("schemaVersion", "") or ""),
                metadata=DevfileMetadata.from_dict(data.get("metadata") or {}),
                components=[DevfileComponent.from_dict(c) for c in data.get("components") or []],
                projects=[Project.from_dict(p) for p in data.get("projects") or []],
            )
        except (KeyError, TypeError, AttributeError, ValueError) as exc:
            if isinstance(exc, DevfileError):
                raise
            raise DevfileError(f"invalid devfile: {exc}") from exc


def parse_devfile_model(devfile_model: str) -> DevfileData:
    """Parse and validate a devfile given as YAML text."""
    try:
        content = yaml.safe_load(devfile_model)
    except yaml.YAMLError as exc:
        raise DevfileError(f"failed to parse devfile: {exc}") from exc
    devfile = DevfileData.from_dict(content)
    if not devfile.schema_version:
        raise DevfileError("schemaVersion not present in devfile")
    for kind, names in (
        ("component", [c.name for c in devfile.components]),
        ("project", [p.name for p in devfile.projects]),
    ):
        if len(set(names)) != len(names):
            raise DevfileError(f"duplicate {kind} names in devfile")
    return devfile


def convert_application_to_devfile(
    application: Application, git_ops_repo: str, app_model_repo: str
) -> DevfileData:
    """Describe an application as a devfile holding its repositories as attributes."""
    spec = application.spec
    attributes = (
        Attributes()
        .put_string("gitOpsRepository.url", git_ops_repo)
        .put_string("appModelRepository.url", app_model_repo)
    )
    if spec.app_model_repository.branch:
        attributes.put_string("appModelRepository.branch", spec.app_model_repository.branch)
    if spec.app_model_repository.context:
        attributes.put_string("appModelRepository.context", spec.app_model_repository.context)
    if spec.git_ops_repository.branch:
        attributes.put_string("gitOpsRepository.branch", spec.git_ops_repository.branch)
    if spec.git_ops_repository.context:
        attributes.put_string("gitOpsRepository.context", spec.git_ops_repository.context)
    return DevfileData(
        schema_version=SCHEMA_VERSION_210,
        metadata=DevfileMetadata(
            name=spec.display_name,
            description=spec.description,
            attributes=attributes,
        ),
    )