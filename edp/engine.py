from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import docker
from docker.errors import DockerException, NotFound
from docker.types import Mount
from requests.exceptions import RequestException

from .events import log_event
from .models import ContainerSpec


CONTAINER_NAME_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.\-]{0,127}$")


class EngineError(Exception):
    """A container engine call failed. Always fatal."""


@dataclass(frozen=True)
class ContainerState:
    id: str
    health: str


def _health_of(attrs: dict[str, Any]) -> str:
    state = attrs.get("State") or {}
    health = state.get("Health") or {}
    return health.get("Status") or ""


def validate_container_name(name: str) -> None:
    if not CONTAINER_NAME_RE.match(name):
        raise ValueError(
            "Invalid container name. Use letters/numbers and _.-, starting with a letter or number (max 128 chars)."
        )


def connect(base_url: str) -> "EngineClient":
    """Open a client on the engine control socket and make sure it answers."""
    try:
        client = docker.DockerClient(base_url=base_url)
        client.ping()
    except (DockerException, RequestException) as e:
        raise EngineError(f"Cannot reach container engine at {base_url}: {e}") from e
    return EngineClient(client)


class EngineClient:
    """Thin wrapper over the Docker SDK.

    Works against Podman through its Docker-compatible socket. Every SDK
    failure surfaces as EngineError except the NotFound cases that answer an
    existence question.
    """

    def __init__(self, client: docker.DockerClient):
        self.client = client

    def image_exists(self, ref: str) -> bool:
        try:
            self.client.images.get(ref)
            return True
        except NotFound:
            return False
        except (DockerException, RequestException) as e:
            raise EngineError(f"Checking image {ref} failed: {e}") from e

    def pull_image(self, ref: str) -> None:
        try:
            self.client.images.pull(ref)
        except (DockerException, RequestException) as e:
            raise EngineError(f"Pulling image {ref} failed: {e}") from e

    def container_exists(self, name: str) -> bool:
        try:
            self.client.containers.get(name)
            return True
        except NotFound:
            return False
        except (DockerException, RequestException) as e:
            raise EngineError(f"Checking container {name} failed: {e}") from e

    def inspect(self, name_or_id: str) -> dict[str, Any]:
        try:
            return self.client.api.inspect_container(name_or_id)
        except (DockerException, RequestException) as e:
            raise EngineError(f"Inspecting container {name_or_id} failed: {e}") from e

    def health_status(self, name_or_id: str) -> str:
        """Raw engine health string; '' when the container has no health block."""
        return _health_of(self.inspect(name_or_id))

    def describe(self, name_or_id: str) -> ContainerState:
        """Engine id and raw health string from a single inspect."""
        attrs = self.inspect(name_or_id)
        return ContainerState(id=attrs.get("Id") or "", health=_health_of(attrs))

    def create_container(self, spec: ContainerSpec) -> str:
        validate_container_name(spec.name)
        mounts = [Mount(target=m.target, source=m.source, type="bind", read_only=m.read_only) for m in spec.mounts]
        try:
            container = self.client.containers.create(
                spec.image,
                name=spec.name,
                hostname=spec.hostname,
                environment=dict(spec.env),
                ports=spec.port_bindings(),
                mounts=mounts,
                detach=True,
            )
        except (DockerException, RequestException) as e:
            raise EngineError(f"Creating container {spec.name} failed: {e}") from e
        log_event("INFO", f"Container created from image {spec.image}", container=spec.name)
        return container.id

    def start_container(self, container_id: str) -> None:
        try:
            self.client.api.start(container_id)
        except (DockerException, RequestException) as e:
            raise EngineError(f"Starting container {container_id} failed: {e}") from e

    def remove_container(self, name_or_id: str, force: bool = True) -> None:
        """Best-effort forced removal. Never raises."""
        try:
            self.client.api.remove_container(name_or_id, force=force)
        except NotFound:
            return
        except (DockerException, RequestException) as e:
            log_event("WARN", f"Ignoring failed removal: {e}", container=name_or_id)
