"""Pytest configuration and fixtures."""

import asyncio
import json
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI, HTTPException, Request, Response

from foundersnet.client.session import Session
from foundersnet.config import ClientConfig

SESSION_COOKIE = "connect.sid"
TEST_USER = {
    "id": 7,
    "name": "Priya Singh",
    "username": "priya",
    "email": "priya@example.com",
    "role": "founder",
}
TEST_PASSWORD = "founder123"


def raw_notification(
    id: int,
    content: str,
    type: str = "connection",
    read: bool = False,
    minutes_ago: int = 5,
    related_id: int | None = None,
) -> dict[str, Any]:
    """Build a notification record the way the backend serves it."""
    created = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
    return {
        "id": id,
        "userId": TEST_USER["id"],
        "type": type,
        "content": content,
        "read": read,
        "createdAt": created.isoformat().replace("+00:00", "Z"),
        "relatedId": related_id if related_id is not None else 100 + id,
    }


class FakeBackend:
    """In-process stand-in for the web app's notification endpoints."""

    def __init__(self) -> None:
        self.notifications: list[dict[str, Any]] = []
        self.list_calls = 0
        self.read_calls: list[str] = []
        self.read_all_calls = 0
        self.reject_reads = False
        self.reject_logout = False
        self.app = self._build_app()

    def _require_auth(self, request: Request) -> None:
        if request.cookies.get(SESSION_COOKIE) != "valid":
            raise HTTPException(status_code=401, detail="Unauthorized")

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.get("/api/user")
        async def current_user(request: Request):
            self._require_auth(request)
            return TEST_USER

        @app.post("/api/login")
        async def login(request: Request, response: Response):
            body = await request.json()
            credentials = (body.get("username"), body.get("password"))
            if credentials != (TEST_USER["username"], TEST_PASSWORD):
                raise HTTPException(status_code=401, detail="Invalid username or password")
            response.set_cookie(SESSION_COOKIE, "valid")
            return TEST_USER

        @app.post("/api/logout")
        async def logout(response: Response):
            if self.reject_logout:
                raise HTTPException(status_code=500, detail="Failed to logout")
            response.delete_cookie(SESSION_COOKIE)
            return {"message": "Logged out"}

        @app.get("/api/notifications")
        async def list_notifications(request: Request):
            self._require_auth(request)
            self.list_calls += 1
            return self.notifications

        @app.patch("/api/notifications/read-all")
        async def mark_all_read(request: Request):
            self._require_auth(request)
            self.read_all_calls += 1
            if self.reject_reads:
                raise HTTPException(status_code=500, detail="Failed to mark all notifications")
            for record in self.notifications:
                record["read"] = True
            return {"message": "All notifications marked as read"}

        @app.patch("/api/notifications/{notification_id}/read")
        async def mark_read(notification_id: str, request: Request):
            self._require_auth(request)
            self.read_calls.append(notification_id)
            if self.reject_reads:
                raise HTTPException(status_code=500, detail="Failed to mark notification as read")
            for record in self.notifications:
                if str(record["id"]) == notification_id:
                    record["read"] = True
                    return record
            raise HTTPException(status_code=404, detail="Notification not found")

        return app


_CLOSE = object()


class FakeWebSocket:
    """Scriptable stand-in for a websockets client connection."""

    def __init__(self) -> None:
        self.sent: list[Any] = []
        self.closed = False
        self._incoming: asyncio.Queue = asyncio.Queue()

    async def send(self, data: str) -> None:
        self.sent.append(json.loads(data))

    def push(self, message: Any) -> None:
        """Queue a frame from the server; dicts are JSON-encoded."""
        self._incoming.put_nowait(message if isinstance(message, str) else json.dumps(message))

    def fail(self, error: Exception) -> None:
        """Make the next receive raise error."""
        self._incoming.put_nowait(error)

    def drop(self) -> None:
        """Server closes the connection cleanly."""
        self._incoming.put_nowait(_CLOSE)

    async def close(self) -> None:
        self.closed = True
        self._incoming.put_nowait(_CLOSE)

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        item = await self._incoming.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def backend() -> FakeBackend:
    """Fresh fake backend."""
    return FakeBackend()


@pytest.fixture
def config(tmp_path) -> ClientConfig:
    """Client configuration with fast polling for tests."""
    return ClientConfig(
        base_url="http://testserver",
        poll_interval=0.05,
        fallback_interval=0.1,
        request_timeout=5,
        storage_path=tmp_path / "storage.json",
    )


@pytest_asyncio.fixture
async def anonymous_session(
    backend: FakeBackend, config: ClientConfig
) -> AsyncGenerator[Session, None]:
    """Session wired to the fake backend, not signed in."""
    transport = httpx.ASGITransport(app=backend.app)
    async with Session(config, transport=transport) as session:
        yield session


@pytest_asyncio.fixture
async def session(anonymous_session: Session) -> Session:
    """Signed-in session."""
    await anonymous_session.login(TEST_USER["username"], TEST_PASSWORD)
    return anonymous_session


@pytest.fixture
def fake_socket() -> FakeWebSocket:
    return FakeWebSocket()


@pytest.fixture
def socket_connect(fake_socket: FakeWebSocket) -> Callable[..., Any]:
    """Connect function that hands out fake_socket and records URLs."""
    calls: list[str] = []

    async def connect(url: str, **kwargs):
        calls.append(url)
        return fake_socket

    connect.calls = calls
    return connect


@pytest.fixture
def wait_until() -> Callable[..., Any]:
    """Await a condition, failing after a timeout."""

    async def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("Condition not met before timeout")
            await asyncio.sleep(0.01)

    return _wait


@pytest.fixture
def make_record() -> Callable[..., dict[str, Any]]:
    """Factory for backend notification records."""
    return raw_notification
