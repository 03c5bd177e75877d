import json
import logging

import pytest

from konnect_dp.docker.errors import DockerError
from konnect_dp.konnect.client import KonnectAPIError


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    def json(self):
        if self._payload is not None:
            return self._payload
        return json.loads(self.text)  # ValueError on junk, like requests


class FakeKonnect:
    """In-memory stand-in for KonnectClient; records every call."""

    def __init__(
        self,
        *,
        control_planes=None,
        control_plane=None,
        create_response=None,
        certificates=None,
        fail=(),
    ):
        self.control_planes = control_planes if control_planes is not None else []
        self.control_plane = control_plane if control_plane is not None else {}
        self.create_response = create_response or FakeResponse(201, {"id": "cert-9"})
        self.certificates = certificates if certificates is not None else []
        self.fail = set(fail)
        self.calls = []

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail:
            raise KonnectAPIError(f"{name} failed", status=500)

    def called(self, name):
        return [c for c in self.calls if c[0] == name]

    def list_control_planes(self, *, page_size=100):
        self._record("list_control_planes", page_size)
        return list(self.control_planes)

    def get_control_plane(self, cp_id):
        self._record("get_control_plane", cp_id)
        return self.control_plane

    def create_dp_client_certificate(self, cp_id, cert):
        self._record("create_dp_client_certificate", cp_id, cert)
        return self.create_response

    def list_dp_client_certificates(self, cp_id):
        self._record("list_dp_client_certificates", cp_id)
        return list(self.certificates)

    def delete_dp_client_certificate(self, cp_id, cert_id):
        self._record("delete_dp_client_certificate", cp_id, cert_id)


class FakeDocker:
    """Stand-in for DockerCliRunner keeping a name -> container map."""

    def __init__(self, *, run_error=None, logs_error=None, log_lines=("kong started",)):
        self.containers = {}
        self.run_error = run_error
        self.logs_error = logs_error
        self.log_lines = list(log_lines)
        self.calls = []

    def remove(self, name):
        self.calls.append(("remove", name))
        return self.containers.pop(name, None) is not None

    def run_detached(self, *, name, image, env, ports):
        self.calls.append(("run", name, image, dict(env), tuple(ports)))
        if self.run_error:
            raise DockerError(self.run_error)
        self.containers[name] = {"image": image, "env": dict(env)}
        return f"id-{name}"

    def state(self, name):
        return "running" if name in self.containers else ""

    def exists(self, name):
        return name in self.containers

    def follow_logs(self, name, *, window_s=30, max_lines=200, sink=print):
        self.calls.append(("logs", name, window_s, max_lines))
        if self.logs_error:
            raise DockerError(self.logs_error)
        for line in self.log_lines[:max_lines]:
            sink(line)
        return min(len(self.log_lines), max_lines)


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)

    def kinds(self):
        return [e.__class__.__name__ for e in self.events]


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def konnect_factory():
    return FakeKonnect


@pytest.fixture
def docker_factory():
    return FakeDocker


@pytest.fixture
def capture():
    return Capture()


@pytest.fixture(autouse=True)
def _reset_konnect_dp_logger():
    # init_logging() detaches the logger from root; put it back for caplog
    yield
    logger = logging.getLogger("konnect_dp")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
