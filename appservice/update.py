"""Keeping devfiles and components in step with each other."""

from __future__ import annotations

import logging
from typing import Mapping

from appservice.devfile import (
    AttributeKeyNotFound,
    Attributes,
    DevfileComponent,
    DevfileData,
    DevfileEnvVar,
    DevfileError,
    Project,
    parse_devfile_model,
)
from appservice.models import (
    RESOURCE_CPU,
    RESOURCE_EPHEMERAL_STORAGE,
    RESOURCE_MEMORY,
    RESOURCE_STORAGE,
    Component,
    ComponentDetectionDescription,
    ComponentDetectionQuery,
    ComponentSpec,
    EnvVar,
)
from appservice.quantity import Quantity, QuantityError, parse_quantity

__all__ = [
    "ROUTE_KEY",
    "REPLICA_KEY",
    "STORAGE_LIMIT_KEY",
    "STORAGE_REQUEST_KEY",
    "EPHEMERAL_STORAGE_LIMIT_KEY",
    "EPHEMERAL_STORAGE_REQUEST_KEY",
    "PLACEHOLDER_APPLICATION",
    "UpdateError",
    "update_component_devfile_model",
    "update_application_devfile_model",
    "update_component_stub",
]

ROUTE_KEY = "appstudio.has/route"
REPLICA_KEY = "appstudio.has/replicas"
STORAGE_LIMIT_KEY = "appstudio.has/storageLimit"
STORAGE_REQUEST_KEY = "appstudio.has/storageRequest"
EPHEMERAL_STORAGE_LIMIT_KEY = "appstudio.has/ephemeralStorageLimit"
EPHEMERAL_STORAGE_REQUEST_KEY = "appstudio.has/ephemeralStorageRequest"

PLACEHOLDER_APPLICATION = "insert-application-name"

_log = logging.getLogger(__name__)


class UpdateError(Exception):
    """Raised when a devfile or component cannot be brought up to date."""


def _optional_string(attributes: Attributes, key: str) -> str:
    try:
        return attributes.get_string(key)
    except AttributeKeyNotFound:
        return ""
    except DevfileError as exc:
        raise UpdateError(str(exc)) from exc


def _optional_number(attributes: Attributes, key: str) -> int:
    try:
        return int(attributes.get_number(key))
    except AttributeKeyNotFound:
        return 0
    except DevfileError as exc:
        raise UpdateError(str(exc)) from exc


def _parse(text: str) -> Quantity:
    try:
        return parse_quantity(text)
    except QuantityError as exc:
        raise UpdateError(str(exc)) from exc


def _apply_resources(
    component: DevfileComponent,
    resources: Mapping[str, Quantity],
    cpu_field: str,
    memory_field: str,
    storage_key: str,
    ephemeral_key: str,
) -> bool:
    """Copy one resource list onto a devfile component; return True if anything changed."""
    if not resources:
        return False
    container = component.container
    cpu = str(resources.get(RESOURCE_CPU, Quantity()))
    memory = str(resources.get(RESOURCE_MEMORY, Quantity()))
    _log.info("setting devfile component %s %s to %s", component.name, cpu_field, cpu)
    setattr(container, cpu_field, cpu)
    _log.info("setting devfile component %s %s to %s", component.name, memory_field, memory)
    setattr(container, memory_field, memory)

    for key, resource in ((storage_key, RESOURCE_STORAGE), (ephemeral_key, RESOURCE_EPHEMERAL_STORAGE)):
        amount = resources.get(resource, Quantity())
        if not amount.is_zero():
            _log.info("setting devfile component %s attribute %s to %s", component.name, key, amount)
            component.attributes.put_string(key, str(amount))
    return True


def update_component_devfile_model(devfile_data: DevfileData, component: Component) -> None:
    """Write a component's route, replicas, port, env and resources into its devfile."""
    spec = component.spec
    for index, devfile_component in enumerate(devfile_data.get_components(container_only=True)):
        changed = False
        attributes = devfile_component.attributes
        container = devfile_component.container

        if spec.route:
            _log.info("setting devfile component %s route %s", devfile_component.name, spec.route)
            attributes.put_string(ROUTE_KEY, spec.route)
            changed = True

        current_replicas = _optional_number(attributes, REPLICA_KEY) if attributes else 0
        if current_replicas != spec.replicas:
            _log.info("setting devfile component %s replicas to %s", devfile_component.name, spec.replicas)
            attributes.put_integer(REPLICA_KEY, spec.replicas)
            changed = True

        if index == 0 and spec.target_port > 0:
            for endpoint in container.endpoints:
                endpoint.target_port = spec.target_port
                changed = True

        for env in spec.env:
            if env.value_from is not None:
                raise UpdateError("env.ValueFrom is not supported at the moment, use env.value")
            matches = [e for e in container.env if e.name == env.name]
            for existing in matches:
                existing.value = env.value
            if not matches:
                container.env.append(DevfileEnvVar(env.name, env.value))
            changed = True

        if _apply_resources(
            devfile_component,
            spec.resources.limits,
            "cpu_limit",
            "memory_limit",
            STORAGE_LIMIT_KEY,
            EPHEMERAL_STORAGE_LIMIT_KEY,
        ):
            changed = True
        if _apply_resources(
            devfile_component,
            spec.resources.requests,
            "cpu_request",
            "memory_request",
            STORAGE_REQUEST_KEY,
            EPHEMERAL_STORAGE_REQUEST_KEY,
        ):
            changed = True

        if changed:
            _log.info("updating devfile component %s", devfile_component.name)
            try:
                devfile_data.update_component(devfile_component)
            except DevfileError as exc:
                raise UpdateError(str(exc)) from exc


def update_application_devfile_model(devfile_data: DevfileData, component: Component) -> None:
    """Add the component to the application devfile as a project pointing at its git source."""
    git_source = component.spec.git_source
    if git_source is None:
        raise UpdateError("component git source is nil")
    project = Project(name=component.spec.component_name, git_remotes={"origin": git_source.url})
    if any(existing.name == project.name for existing in devfile_data.get_projects()):
        raise UpdateError(f"application already has a project with name {project.name}")
    try:
        devfile_data.add_projects([project])
    except DevfileError as exc:
        raise UpdateError(str(exc)) from exc


def _stub_from_container(stub: ComponentSpec, first: DevfileComponent) -> None:
    container = first.container
    attributes = first.attributes
    stub.env = [EnvVar(name=e.name, value=e.value) for e in container.env]
    if container.endpoints:
        stub.target_port = container.endpoints[0].target_port
    stub.route = _optional_string(attributes, ROUTE_KEY)
    stub.replicas = _optional_number(attributes, REPLICA_KEY)

    for target, cpu, memory, storage_key, ephemeral_key in (
        (
            stub.resources.limits,
            container.cpu_limit,
            container.memory_limit,
            STORAGE_LIMIT_KEY,
            EPHEMERAL_STORAGE_LIMIT_KEY,
        ),
        (
            stub.resources.requests,
            container.cpu_request,
            container.memory_request,
            STORAGE_REQUEST_KEY,
            EPHEMERAL_STORAGE_REQUEST_KEY,
        ),
    ):
        if cpu:
            target[RESOURCE_CPU] = _parse(cpu)
        if memory:
            target[RESOURCE_MEMORY] = _parse(memory)
        storage = _optional_string(attributes, storage_key)
        if storage:
            target[RESOURCE_STORAGE] = _parse(storage)
        ephemeral = _optional_string(attributes, ephemeral_key)
        if ephemeral:
            target[RESOURCE_EPHEMERAL_STORAGE] = _parse(ephemeral)


def update_component_stub(
    query: ComponentDetectionQuery | None, devfiles_map: Mapping[str, bytes | str]
) -> None:
    """Record a component stub in the query for each devfile, keyed by devfile name."""
    if query is None:
        raise UpdateError("componentDetectionQuery is nil")

    _log.info("Devfiles detected: %d", len(devfiles_map))
    for context, content in devfiles_map.items():
        text = content.decode("utf-8") if isinstance(content, (bytes, bytearray)) else content
        try:
            devfile = parse_devfile_model(text)
        except DevfileError as exc:
            raise UpdateError(str(exc)) from exc

        metadata = devfile.metadata
        stub = ComponentSpec(
            component_name=metadata.name,
            application=PLACEHOLDER_APPLICATION,
            context=context,
            git_source=query.git_source,
        )
        containers = devfile.get_components(container_only=True)
        if containers:
            _stub_from_container(stub, containers[0])

        query.component_detected[metadata.name] = ComponentDetectionDescription(
            devfile_found=True,
            language=metadata.language,
            project_type=metadata.project_type,
            component_stub=stub,
        )