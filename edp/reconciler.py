from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .engine import ContainerState, EngineClient
from .events import log_event
from .health import Clock, HealthPoller, HealthStatus, PollOutcome, PollResult
from .models import ContainerSpec, Mount, PortMapping


class Action(str, Enum):
    REUSED = "reused"
    CREATED = "created"


@dataclass(frozen=True)
class ReconcileResult:
    action: Action
    container_id: str
    poll: PollResult | None = None

    @property
    def healthy(self) -> bool:
        return self.poll is None or self.poll.outcome is PollOutcome.HEALTHY


def make_data_dir(prefix: str = "oradata") -> str:
    """Fresh host directory for the bind mount.

    Opened to everyone since the database runs as an arbitrary user inside the
    container. Never reused and never removed here.
    """
    path = tempfile.mkdtemp(prefix=prefix)
    os.chmod(path, 0o777)
    log_event("WARN", f"Created world-writable data directory {path}")
    return path


class Reconciler:
    """Drives the engine toward: image present, named container running and healthy.

    A healthy container is reused untouched. Anything else under the same
    name is force-removed and replaced. The caller decides what a timed-out
    health wait means; engine failures propagate as EngineError.
    """

    def __init__(
        self,
        engine: EngineClient,
        image: str,
        container_name: str,
        password: str,
        *,
        data_path: str = "/opt/oracle/oradata",
        port: int = 1521,
        password_env: str = "ORACLE_PWD",
        poll_interval_s: float = 10,
        health_timeout_s: float = 0,
        clock: Clock | None = None,
        make_dir: Callable[[], str] = make_data_dir,
    ):
        self.engine = engine
        self.image = image
        self.container_name = container_name
        self.password = password
        self.data_path = data_path
        self.port = int(port)
        self.password_env = password_env
        self.poll_interval_s = poll_interval_s
        self.health_timeout_s = health_timeout_s
        self.clock = clock
        self.make_dir = make_dir

    def reconcile(self) -> ReconcileResult:
        self.ensure_image()
        existing = self._reusable()
        if existing is not None:
            log_event("INFO", "Using existing database...", container=self.container_name)
            return ReconcileResult(Action.REUSED, existing.id)

        container_id = self._replace()
        poll = self.wait_healthy(container_id)
        return ReconcileResult(Action.CREATED, container_id, poll)

    def ensure_image(self) -> None:
        if self.engine.image_exists(self.image):
            log_event("INFO", f"Using existing image {self.image}")
            return
        log_event("INFO", f"Pulling image {self.image}...")
        self.engine.pull_image(self.image)
        log_event("INFO", f"Pulled image {self.image}")

    def _reusable(self) -> ContainerState | None:
        """State of the existing container when it can be reused as is."""
        if not self.engine.container_exists(self.container_name):
            return None
        state = self.engine.describe(self.container_name)
        status = HealthStatus.parse(state.health)
        if status is HealthStatus.HEALTHY:
            return state
        # Recreated on any non-healthy status, 'starting' included.
        log_event("WARN", f"Existing container is {status.value}; recreating", container=self.container_name)
        return None

    def build_spec(self, data_dir: str) -> ContainerSpec:
        return ContainerSpec(
            name=self.container_name,
            image=self.image,
            hostname=self.container_name,
            mounts=[Mount(source=data_dir, target=self.data_path)],
            ports=[PortMapping(container_port=self.port, host_port=self.port, protocol="tcp", host_ip="0.0.0.0")],
            env={self.password_env: self.password},
        )

    def _replace(self) -> str:
        spec = self.build_spec(self.make_dir())
        self.engine.remove_container(self.container_name, force=True)
        container_id = self.engine.create_container(spec)
        self.engine.start_container(container_id)
        log_event("INFO", "Container started.", container=self.container_name)
        return container_id

    def wait_healthy(self, container_id: str) -> PollResult:
        poller = HealthPoller(
            probe=lambda: self.engine.health_status(container_id),
            interval_s=self.poll_interval_s,
            max_wait_s=self.health_timeout_s,
            clock=self.clock,
            label=self.container_name,
        )
        return poller.wait()
