"""Pytest shared fixtures for TTLock gateway tests."""
import json
import pathlib
import sys
from types import SimpleNamespace

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from app.config import AppConfig
from app.core.access_service import AccessControlService
from app.core.ttlock import SessionManager, TokenPair, TTLockClient

BASE_URL = "https://ttlock.test"
NOW_MS = 1700000000000
TOKEN_RESPONSE = {
    "access_token": "access-1",
    "refresh_token": "refresh-1",
    "uid": 42,
    "expires_in": 7776000,
    "scope": "user,key,room",
}


class _StubResponse:
    def __init__(self, payload=None, status_code: int = 200, text=None):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeTTLock:
    """Stands in for requests.post: records each call and answers per path.

    A path answers from its queue of replies; the last reply repeats. A reply
    is a JSON payload, a _StubResponse or an exception to raise.
    """

    def __init__(self):
        self.calls = []
        self._replies = {}

    def reply(self, path, payload, status_code=200):
        self._replies.setdefault(path, []).append(_StubResponse(payload, status_code))

    def reply_text(self, path, text, status_code=200):
        self._replies.setdefault(path, []).append(_StubResponse(None, status_code, text=text))

    def fail(self, path, error):
        self._replies.setdefault(path, []).append(error)

    def handle(self, path, handler):
        """Answer with handler(form) -> payload for every call to path."""
        self._replies[path] = handler

    @property
    def paths(self):
        return [call.path for call in self.calls]

    def forms(self, path):
        return [call.form for call in self.calls if call.path == path]

    def __call__(self, url, data=None, headers=None, timeout=None, **kwargs):
        path = url[len(BASE_URL):] if url.startswith(BASE_URL) else url
        form = dict(data or {})
        self.calls.append(SimpleNamespace(url=url, path=path, form=form, headers=headers, timeout=timeout))

        replies = self._replies.get(path)
        if callable(replies):
            return _StubResponse(replies(form))
        if not replies:
            raise AssertionError(f"Unexpected TTLock call in test: {url}")
        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Prevent unit tests from reaching the real TTLock API."""
    def _unexpected_post(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP POST in unit test: {url}")

    monkeypatch.setattr(requests, "post", _unexpected_post)


@pytest.fixture()
def ttlock(_block_network, monkeypatch):
    """Fake TTLock endpoint installed in place of requests.post."""
    fake = FakeTTLock()
    monkeypatch.setattr(requests, "post", fake)
    return fake


# ─────────────────────────────────────────────────────────────────────────────
# Clients and services
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def client():
    return TTLockClient(BASE_URL, "client-id", "client-secret", timeout=5, clock=lambda: NOW_MS)


@pytest.fixture()
def authed_client(client):
    client.tokens.replace(TokenPair("access-1", "refresh-1", uid=42))
    return client


@pytest.fixture()
def service(authed_client):
    return AccessControlService(authed_client, SessionManager(authed_client), audit_enabled=False)


@pytest.fixture()
def app_config():
    return AppConfig(
        client_id="client-id",
        client_secret="client-secret",
        api_base=BASE_URL,
        request_timeout=5,
    )


@pytest.fixture()
def token_response():
    return dict(TOKEN_RESPONSE)


@pytest.fixture()
def throttle(service, ttlock):
    """Record service sleeps as (seconds, TTLock calls issued so far)."""
    sleeps = []
    service.sleep = lambda seconds: sleeps.append((seconds, len(ttlock.calls)))
    return sleeps
