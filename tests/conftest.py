"""Shared fixtures: an in-memory Tyk Dashboard and deck-style dumps."""

import copy
import json
from typing import Dict, List, Optional, Set

import pytest

from kong2tyk.errors import TransportFailure
from kong2tyk.models import TargetDefinition
from kong2tyk.tyk.client import CreateOutcome


class FakeDashboard:
    """Stands in for TykDashboardClient, keyed by listen path like the real API."""

    def __init__(self, existing: Optional[Dict[str, str]] = None,
                 reject_titles: Optional[Set[str]] = None,
                 unreachable: bool = False) -> None:
        self.apis: Dict[str, str] = dict(existing or {})
        self.reject_titles = set(reject_titles or ())
        self.unreachable = unreachable
        self.exists_calls: List[Optional[str]] = []
        self.created: List[TargetDefinition] = []

    def exists(self, routing_key: Optional[str]) -> bool:
        self.exists_calls.append(routing_key)
        if self.unreachable:
            raise TransportFailure("connection refused")
        return bool(routing_key) and routing_key in self.apis

    def create(self, definition: TargetDefinition) -> CreateOutcome:
        if self.unreachable:
            raise TransportFailure("connection refused")
        self.created.append(definition)
        if definition.listen_path is None:
            return CreateOutcome(False, 400, '{"Status":"Error","Message":"listen path is empty"}')
        if definition.title in self.reject_titles:
            return CreateOutcome(False, 400, '{"Status":"Error","Message":"invalid"}')
        self.apis[definition.listen_path] = definition.title
        return CreateOutcome(True, 200, '{"Status":"OK","Message":"API created","Meta":"1"}')

    def close(self) -> None:
        pass


def _service(name, protocol="http", host="svc.internal", path="/", paths=("/x",)):
    routes = [{"paths": list(paths)}] if paths is not None else []
    return {"name": name, "protocol": protocol, "host": host, "path": path, "routes": routes}


_TWO_SERVICES = [
    {"name": "svc-a", "protocol": "http", "host": "a.internal", "path": "/v1",
     "routes": [{"paths": ["/a"]}]},
    {"name": "svc-b", "protocol": "https", "host": "b.internal", "path": "/v2",
     "routes": [{"paths": ["/b"]}]},
]


@pytest.fixture
def make_dashboard():
    """Factory for FakeDashboard instances with per-test existing/rejected/unreachable state."""
    return FakeDashboard


@pytest.fixture
def dashboard(make_dashboard):
    return make_dashboard()


@pytest.fixture
def make_service():
    """Factory for one deck-style service record."""
    return _service


@pytest.fixture
def two_services():
    return copy.deepcopy(_TWO_SERVICES)


@pytest.fixture
def write_dump(tmp_path):
    def _write(services, name="kong-dump.json"):
        path = tmp_path / name
        path.write_text(json.dumps({"_format_version": "3.0", "services": services}))
        return path
    return _write
