"""Shared fakes: an in-memory REST backend and a scripted socket.io client."""

import httpx
import pytest

from bloghouse.api import ApiClient
from bloghouse.auth import SessionContext
from bloghouse.context import AppContext


class FakeBackend:
    """Routes (method, path) to canned JSON answers and records requests."""

    def __init__(self):
        self.routes = {}
        self.requests: list[httpx.Request] = []

    def add(self, method, path, json=None, status=200, error=None):
        self.routes[(method, path)] = (status, json, error)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"success": False, "message": "Not found"})
        status, body, error = route
        if error is not None:
            raise error(f"{request.method} {request.url.path} failed", request=request)
        return httpx.Response(status, json=body)

    def paths(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.requests]


class FakeSocketClient:
    """Stands in for socketio.AsyncClient; the test plays the server."""

    def __init__(self, fail_with=None):
        self.handlers = {}
        self.connected = False
        self.created_with = None
        self.connect_calls = []
        self.fail_with = fail_with

    def factory(self, **kwargs):
        self.created_with = kwargs
        self.handlers = {}
        return self

    def on(self, event, handler=None, namespace=None):
        self.handlers[event] = handler

    async def connect(self, url, **kwargs):
        self.connect_calls.append((url, kwargs))
        if self.fail_with is not None:
            raise self.fail_with
        self.connected = True
        await self.handlers["connect"]()

    async def disconnect(self):
        if self.connected:
            self.connected = False
            await self.handlers["disconnect"]()

    async def server_emit(self, event_name, payload=None):
        await self.handlers["*"](event_name, payload)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def session_context():
    return SessionContext(token="test-token", user_id="u1", user_email="dev@example.com")


@pytest.fixture
def ctx(backend, session_context):
    api = ApiClient(
        "http://api.test",
        session_context,
        transport=httpx.MockTransport(backend.handler),
    )
    return AppContext(api, locale="en")


@pytest.fixture
def socket_client():
    return FakeSocketClient()
