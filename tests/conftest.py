"""
Shared pytest fixtures for Hooktail tests.

This module provides common fixtures including:
- RecordingSink: Collects lines emitted by the command runner
- LokiRecorder: httpx.MockTransport handler that records push requests
- Hook and config builders
"""

import json
import os
import sys
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import httpx
import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hooktail.config import AppConfig, HookDefinition, LokiConfig, ServerConfig
from hooktail.modules.registry import ExecutionRegistry


def wait_for(condition: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll condition until it is true or timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(interval)
    return condition()


def wait_idle(service, hook_id: str, timeout: float = 5.0) -> bool:
    """Wait until hook_id has no worker thread and its running flag is clear."""
    return wait_for(
        lambda: hook_id not in service.running_workers() and not service.tail(hook_id).running,
        timeout=timeout,
    )


def run_hook(service, hook_id: str) -> int:
    """Run hook_id in the calling thread, inside its registry handle."""
    hook = service.get_hook(hook_id)
    with service.registry.try_start(hook_id):
        return service.runner.run(hook, service.sink)


# =============================================================================
# Runner Infrastructure
# =============================================================================

@dataclass
class RecordedLine:
    hook_id: str
    line: str
    at: float


class RecordingSink:
    """Line sink that keeps every recorded line with its arrival time."""

    def __init__(self):
        self.records: List[RecordedLine] = []
        self._lock = threading.Lock()

    def record(self, hook_id: str, line: str) -> None:
        with self._lock:
            self.records.append(RecordedLine(hook_id, line, time.monotonic()))

    @property
    def lines(self) -> List[str]:
        with self._lock:
            return [r.line for r in self.records]


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def make_hook(tmp_path):
    """Build a HookDefinition running in a temporary directory."""

    def _make(command: str, hook_id: str = "test-hook", cwd: Optional[str] = None):
        return HookDefinition(
            id=hook_id,
            execute_command=command,
            command_working_directory=cwd or str(tmp_path),
        )

    return _make


@pytest.fixture
def registry():
    return ExecutionRegistry(tail_lines=10)


# =============================================================================
# Loki Mocking Infrastructure
# =============================================================================

@dataclass
class LokiRecorder:
    """
    Mock Loki push endpoint.

    Responses are taken from ``statuses`` in order; once exhausted every
    request gets ``default_status``.
    """

    statuses: List[int] = field(default_factory=list)
    default_status: int = 204
    requests: List[httpx.Request] = field(default_factory=list)

    def __post_init__(self):
        self._lock = threading.Lock()

    def handler(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
            status = self.statuses.pop(0) if self.statuses else self.default_status
        if status >= 400:
            return httpx.Response(status, text="server error")
        return httpx.Response(status)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    @property
    def bodies(self) -> List[dict]:
        with self._lock:
            return [json.loads(r.content) for r in self.requests]

    @property
    def count(self) -> int:
        with self._lock:
            return len(self.requests)


@pytest.fixture
def loki():
    return LokiRecorder()


@pytest.fixture
def app_config(tmp_path):
    """Configuration with a quick successful hook and shipping disabled."""
    return AppConfig(
        server=ServerConfig(port=9000, tail_lines=10),
        loki=LokiConfig(enabled=False),
        hooks=[
            HookDefinition(
                id="test-hook",
                execute_command="echo 'test'",
                command_working_directory=str(tmp_path),
            ),
            HookDefinition(
                id="slow-hook",
                execute_command="sleep 0.5; echo done",
                command_working_directory=str(tmp_path),
            ),
        ],
    )


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
