import base64
import importlib
import json
from datetime import datetime

import pytest

from centerledger.client import ApiResponse
from centerledger.ops import StructuredLogger
from centerledger.storage import CookieJar


class RecordingTransport:
    """Answers queued responses and records every request made."""

    def __init__(self, default=None):
        self.calls = []
        self.queue = []
        self.default = default or ApiResponse(200, [])

    def respond(self, status, payload=None):
        self.queue.append(ApiResponse(status, payload))
        return self

    def request(self, method, url, headers, json=None):
        self.calls.append({"method": method, "url": url, "headers": dict(headers), "json": json})
        if self.queue:
            return self.queue.pop(0)
        return self.default


class TestClientTransport:
    """Send record-store requests to the FastAPI app in-process."""

    __test__ = False

    def __init__(self, client):
        self.client = client
        self.calls = []

    def request(self, method, url, headers, json=None):
        self.calls.append((method, url))
        response = self.client.request(method, url, headers=dict(headers), json=json)
        try:
            payload = response.json()
        except ValueError:
            payload = None
        return ApiResponse(response.status_code, payload)


def _segment(data):
    return base64.urlsafe_b64encode(json.dumps(data).encode("utf-8")).decode("ascii").rstrip("=")


@pytest.fixture()
def make_token():
    def _make(**claims):
        return f"{_segment({'alg': 'none'})}.{_segment(claims)}.signature"

    return _make


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def logger():
    return StructuredLogger()


@pytest.fixture()
def fixed_clock():
    return lambda: datetime(2024, 5, 10, 12, 0, 0)


@pytest.fixture()
def cookie_jar(fixed_clock, logger):
    return CookieJar(clock=fixed_clock, logger=logger)


@pytest.fixture()
def backend(tmp_path, monkeypatch):
    monkeypatch.setenv("CENTERLEDGER_SQLITE", str(tmp_path / "ledger.db"))
    monkeypatch.setenv("CENTERLEDGER_SECRET", "test-secret")
    monkeypatch.setenv("CENTERLEDGER_USERS", json.dumps({"factory5": ["gaza123", "factory5"]}))
    config = importlib.import_module("centerledger.webapp.config")
    persistence = importlib.import_module("centerledger.webapp.persistence")
    application = importlib.import_module("centerledger.webapp.application")
    importlib.reload(config)
    importlib.reload(persistence)
    importlib.reload(application)
    yield application


@pytest.fixture()
def api(backend):
    from fastapi.testclient import TestClient

    with TestClient(backend.app) as client:
        yield client


@pytest.fixture()
def api_transport(api):
    return TestClientTransport(api)
