import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Deque, Dict, Optional, Tuple

logger = logging.getLogger("hooktail.registry")


class HookError(Exception):
    """Base class for hook execution errors surfaced to callers."""


class HookBusyError(HookError):
    """A run for this hook is already in progress."""

    def __init__(self, hook_id: str):
        super().__init__(f"Command is already running: {hook_id}")
        self.hook_id = hook_id


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time copy of an ExecutionState."""

    running: bool
    last_started: Optional[datetime]
    lines: Tuple[str, ...]


class ExecutionState:
    """
    Mutable state for one hook.

    All fields are guarded by ``lock``. The output deque is bounded, so
    appending past capacity evicts the oldest line.
    """

    def __init__(self, capacity: int):
        self.lock = threading.Lock()
        self.running = False
        self.last_started: Optional[datetime] = None
        self.output: Deque[str] = deque(maxlen=capacity)

    def append(self, line: str) -> None:
        with self.lock:
            self.output.append(line)

    def snapshot(self) -> Snapshot:
        with self.lock:
            return Snapshot(
                running=self.running,
                last_started=self.last_started,
                lines=tuple(self.output),
            )


class ExecutionHandle:
    """
    Proof of a successful try_start.

    Use as a context manager so the running flag is released on every exit
    path. Releasing twice is a no-op.
    """

    def __init__(self, registry: "ExecutionRegistry", hook_id: str, state: ExecutionState):
        self.registry = registry
        self.hook_id = hook_id
        self.state = state
        self._released = False
        self._release_lock = threading.Lock()

    def release(self) -> bool:
        """Mark the handle released. Returns False if it already was."""
        with self._release_lock:
            if self._released:
                return False
            self._released = True
            return True

    def __enter__(self) -> "ExecutionHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.registry.finish(self)


class ExecutionRegistry:
    def __init__(self, tail_lines: int = 100):
        """
        Initialize execution registry.

        Args:
            tail_lines: Capacity of each hook's output ring buffer
        """
        self.tail_lines = tail_lines
        self._states: Dict[str, ExecutionState] = {}
        self._lock = threading.Lock()

    def get(self, hook_id: str) -> Optional[ExecutionState]:
        """Return the state for hook_id, or None if it was never referenced."""
        return self._states.get(hook_id)

    def get_or_create(self, hook_id: str) -> ExecutionState:
        """
        Return the state for hook_id, creating it on first access.

        Lookups take no lock; creation is double-checked under the map lock
        so concurrent callers always share one state per id.
        """
        state = self._states.get(hook_id)
        if state is not None:
            return state

        with self._lock:
            state = self._states.get(hook_id)
            if state is None:
                state = ExecutionState(self.tail_lines)
                self._states[hook_id] = state
                logger.debug(f"Created execution state for {hook_id}")
            return state

    def try_start(self, hook_id: str) -> ExecutionHandle:
        """
        Atomically claim the running flag for hook_id.

        Returns:
            ExecutionHandle that must be finished exactly once

        Raises:
            HookBusyError: If a run is already in progress (state unchanged)
        """
        state = self.get_or_create(hook_id)
        with state.lock:
            if state.running:
                raise HookBusyError(hook_id)
            state.running = True
            state.last_started = datetime.now(UTC)
        return ExecutionHandle(self, hook_id, state)

    def finish(self, handle: ExecutionHandle) -> None:
        """Clear the running flag held by handle."""
        if not handle.release():
            return
        with handle.state.lock:
            handle.state.running = False
