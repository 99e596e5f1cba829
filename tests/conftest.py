from __future__ import annotations

import os
import tempfile

import pytest

# Log files must not land in the source tree during test runs.
os.environ.setdefault("WATCHPARTY_LOG_DIR", tempfile.mkdtemp(prefix="watchparty-logs-"))

from flask import Flask  # noqa: E402
from flask_socketio import SocketIO  # noqa: E402

import watchparty.state as state  # noqa: E402
from watchparty.coordinator import SessionCoordinator  # noqa: E402
from watchparty.routes import register_http_routes  # noqa: E402
from watchparty.sockets import register_socket_handlers  # noqa: E402


class RecordingConnection:
    """Connection handle that keeps every emitted event in order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def emit(self, event: str, payload: object) -> None:
        self.events.append((event, payload))

    def named(self, event: str) -> list:
        return [payload for name, payload in self.events if name == event]

    def clear(self) -> None:
        self.events.clear()


class BrokenConnection(RecordingConnection):
    def emit(self, event: str, payload: object) -> None:
        raise ConnectionResetError("peer went away")


@pytest.fixture(autouse=True)
def fresh_state(monkeypatch: pytest.MonkeyPatch) -> SessionCoordinator:
    """Every test starts from an empty global registry."""

    coordinator = SessionCoordinator()
    monkeypatch.setattr(state, "coordinator", coordinator)
    monkeypatch.setattr(state, "connections", {})
    return coordinator


@pytest.fixture
def coordinator() -> SessionCoordinator:
    return SessionCoordinator()


@pytest.fixture
def app() -> Flask:
    app = Flask(__name__)
    app.config["TESTING"] = True
    register_http_routes(app)
    return app


@pytest.fixture
def socketio(app: Flask) -> SocketIO:
    socketio = SocketIO(app, async_mode="threading")
    register_socket_handlers(socketio)
    return socketio


def received(client, event: str) -> list:
    """Drain a Socket.IO test client and keep the first arg of each `event`."""

    return [item["args"][0] for item in client.get_received() if item["name"] == event]
