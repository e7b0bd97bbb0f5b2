"""Pytest shared fixtures."""
import copy
import json
import pathlib
import sys
import threading
import time

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from okta_provider.core.mutex import MutexKV
from okta_provider.core.okta.exceptions import NotFoundError
from okta_provider.resources import RESOURCE_TYPES, CollectionMemberResource, RemoteCollection


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from hitting a real Okta org.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _refuse(*args, **kwargs):
        raise AssertionError(f"Unexpected HTTP call in unit test: {args} {kwargs}")

    monkeypatch.setattr(requests, "request", _refuse)
    monkeypatch.setattr(requests, "post", _refuse)


class StubResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload=None, status_code: int = 200, url: str = "https://dev-1.okta.com", text=None):
        self._payload = payload
        self.status_code = status_code
        self.url = url
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


@pytest.fixture
def stub_response():
    return StubResponse


# ─────────────────────────────────────────────────────────────────────────────
# In-memory Okta
# ─────────────────────────────────────────────────────────────────────────────
class FakeOkta:
    """In-memory parent objects with call counters and optional latency.

    Every fetch-then-write sequence of a thread is recorded as a
    (start, end) window per parent so tests can assert that guarded
    sections never overlap.
    """

    def __init__(self, delay: float = 0.0):
        self.objects = {}
        self.delay = delay
        self.fetches = 0
        self.writes = 0
        self.fail_write_with = None
        self.windows = {}
        self._lock = threading.Lock()
        self._local = threading.local()

    def add_app(self, app_id, post_logout_uris=(), redirect_uris=()):
        self.objects[app_id] = {
            "id": app_id,
            "name": "oidc_client",
            "label": f"App {app_id}",
            "settings": {
                "oauthClient": {
                    "redirect_uris": list(redirect_uris),
                    "post_logout_redirect_uris": list(post_logout_uris),
                }
            },
        }

    def add_auth_server(self, auth_server_id, audiences=()):
        self.objects[auth_server_id] = {
            "id": auth_server_id,
            "name": "default",
            "audiences": list(audiences),
        }

    def get(self, parent_id):
        self._local.started = time.monotonic()
        with self._lock:
            self.fetches += 1
            body = copy.deepcopy(self.objects.get(parent_id))
        if self.delay:
            time.sleep(self.delay)
        if body is None:
            raise NotFoundError(404, f"Not found: Resource not found: {parent_id}", f"/api/v1/apps/{parent_id}")
        return body

    def put(self, parent_id, body):
        if self.delay:
            time.sleep(self.delay)
        if self.fail_write_with is not None:
            raise self.fail_write_with
        with self._lock:
            self.writes += 1
            self.objects[parent_id] = copy.deepcopy(body)
            self.windows.setdefault(parent_id, []).append((self._local.started, time.monotonic()))
        return body

    def post_logout_uris(self, app_id):
        return self.objects[app_id]["settings"]["oauthClient"]["post_logout_redirect_uris"]


@pytest.fixture
def fake_okta():
    return FakeOkta()


@pytest.fixture
def slow_okta():
    """FakeOkta whose fetch and write each take 20ms."""
    return FakeOkta(delay=0.02)


@pytest.fixture
def mutex():
    return MutexKV()


@pytest.fixture
def make_resource(mutex):
    """Build an adapter for a registered type on top of a FakeOkta."""
    def _make(okta, type_name="okta_app_oauth_post_logout_redirect_uri", audit_hook=None, lock_timeout=None):
        resource_type = RESOURCE_TYPES[type_name]
        base_remote = resource_type.build_remote(None)
        remote = RemoteCollection(base_remote.kind, base_remote.path, okta.get, okta.put)
        return CollectionMemberResource(
            resource_type.schema,
            remote,
            mutex,
            lock_timeout=lock_timeout,
            audit_hook=audit_hook,
        )
    return _make
