import sys
import os as _os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

# Ensure project root is importable (so `import edp` / `import cli` work without installing)
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from edp.engine import ContainerState  # noqa: E402


class FakeEngine:
    """In-memory stand-in for EngineClient that records every call.

    health: list of statuses returned by successive health_status() calls;
    the last one repeats once the list is exhausted.
    fail: method name -> exception to raise from that method.
    """

    def __init__(self, image_present=True, container_present=False, health=None, fail=None):
        self.image_present = image_present
        self.container_present = container_present
        self.health = list(health or ["healthy"])
        self.fail = dict(fail or {})
        self.calls = []
        self.created_specs = []

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail:
            raise self.fail[name]

    def names(self):
        return [c[0] for c in self.calls]

    def image_exists(self, ref):
        self._record("image_exists", ref)
        return self.image_present

    def pull_image(self, ref):
        self._record("pull_image", ref)
        self.image_present = True

    def container_exists(self, name):
        self._record("container_exists", name)
        return self.container_present

    def _next_health(self):
        if len(self.health) > 1:
            return self.health.pop(0)
        return self.health[0]

    def health_status(self, name_or_id):
        self._record("health_status", name_or_id)
        return self._next_health()

    def describe(self, name_or_id):
        self._record("describe", name_or_id)
        return ContainerState(id=f"id-of-{name_or_id}", health=self._next_health())

    def create_container(self, spec):
        self._record("create_container", spec.name)
        self.created_specs.append(spec)
        self.container_present = True
        return "cid-123"

    def start_container(self, container_id):
        self._record("start_container", container_id)

    def remove_container(self, name_or_id, force=True):
        # Removal errors are swallowed by the real client as well.
        self.calls.append(("remove_container", name_or_id))
        self.container_present = False


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def monotonic(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def make_fake_engine():
    return FakeEngine


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sqlite_engine():
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield eng
    eng.dispose()
