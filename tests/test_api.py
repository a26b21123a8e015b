"""
API endpoint tests.

Tests cover:
- GET /hooks - Hook listing
- GET /hooks/{hook_id} - Trigger
- GET /tail/{hook_id} - Output tail

These tests use FastAPI TestClient against create_app() with a real
HookService running quick shell commands.
"""

import logging

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import wait_for, wait_idle
from hooktail.logging_config import TailPollFilter, get_logging_config
from hooktail.main import create_app


@pytest.fixture
def client(app_config):
    app = create_app(app_config)
    with TestClient(app) as test_client:
        yield test_client
    service = app.state.hook_service
    for hook_id in service.hooks:
        wait_idle(service, hook_id)


def test_list_hooks(client, tmp_path):
    response = client.get("/hooks")

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Webhook server is running"
    assert data["hooks"][0] == {
        "id": "test-hook",
        "execute-command": "echo 'test'",
        "command-working-directory": str(tmp_path),
    }


def test_trigger_hook(client):
    response = client.get("/hooks/test-hook")

    assert response.status_code == 200
    assert response.json() == {"status": "started", "hook_id": "test-hook"}


def test_trigger_invalid_method(client):
    response = client.post("/hooks/test-hook")
    assert response.status_code == 405


def test_trigger_unknown_hook(client):
    response = client.get("/hooks/invalid-hook")
    assert response.status_code == 404


def test_trigger_busy(client):
    assert client.get("/hooks/slow-hook").status_code == 200

    response = client.get("/hooks/slow-hook")

    assert response.status_code == 409
    assert response.json()["detail"] == "Command is already running"


def test_tail_after_run(client):
    client.get("/hooks/test-hook")

    assert wait_for(lambda: client.get("/tail/test-hook").json()["status"] == "stopped"
                    and client.get("/tail/test-hook").json()["output"])

    data = client.get("/tail/test-hook").json()
    assert data["status"] == "stopped"
    assert "test" in data["output"]
    assert data["output"][-1] == "Command finished successfully"
    assert data["last_exec"].endswith("Z")


def test_tail_while_running(client):
    client.get("/hooks/slow-hook")

    data = client.get("/tail/slow-hook").json()

    assert data["status"] == "running"


def test_tail_never_run(client):
    data = client.get("/tail/test-hook").json()

    assert data == {"status": "stopped", "output": [], "last_exec": None}


def test_tail_unknown_hook(client):
    response = client.get("/tail/invalid-hook")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_tail_async_client(app_config):
    """Endpoints work when served through an async ASGI transport"""
    app = create_app(app_config)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/tail/test-hook")

    assert response.status_code == 200
    assert response.json()["status"] == "stopped"


class TestTailPollFilter:
    """Test access log filtering of tail polling."""

    def _access(self, method, path, status):
        return logging.LogRecord(
            "uvicorn.access", logging.INFO, __file__, 1,
            '%s - "%s %s HTTP/%s" %d', ("127.0.0.1:5000", method, path, "1.1", status), None,
        )

    def test_suppresses_successful_tail_polls(self):
        assert TailPollFilter().filter(self._access("GET", "/tail/deploy", 200)) is False

    def test_keeps_failed_polls_and_other_routes(self):
        assert TailPollFilter().filter(self._access("GET", "/tail/missing", 404))
        assert TailPollFilter().filter(self._access("GET", "/hooks/deploy", 200))
        assert TailPollFilter().filter(self._access("POST", "/tail/deploy", 405))

    def test_ignores_other_loggers(self):
        record = logging.LogRecord(
            "hooktail.main", logging.INFO, __file__, 1, "GET /tail/deploy 200", None, None
        )
        assert TailPollFilter().filter(record)

    def test_filter_attached_to_access_handler(self, monkeypatch):
        monkeypatch.delenv("HOOKTAIL_LOG_TAIL_POLLS", raising=False)
        config = get_logging_config("debug")

        assert config["handlers"]["access"]["filters"] == ["tail_poll_filter"]
        assert config["loggers"]["hooktail"]["level"] == "DEBUG"

    def test_tail_polls_can_be_logged(self, monkeypatch):
        monkeypatch.setenv("HOOKTAIL_LOG_TAIL_POLLS", "true")

        assert "filters" not in get_logging_config()["handlers"]["access"]
