"""
Hook service.

Glues the registry, runner, sink and shipper together behind the two
operations the API needs: trigger a hook and read its tail.
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional

from hooktail.config import AppConfig, HookDefinition
from hooktail.modules.executor import CommandRunner
from hooktail.modules.registry import (
    ExecutionHandle,
    ExecutionRegistry,
    HookError,
    Snapshot,
)
from hooktail.modules.shipper import LogShipper
from hooktail.modules.sink import OutputSink

logger = logging.getLogger("hooktail.hooks")


class HookNotFoundError(HookError):
    """No hook is configured under this id."""

    def __init__(self, hook_id: str):
        super().__init__(f"Hook not found: {hook_id}")
        self.hook_id = hook_id


class HookService:
    def __init__(
        self,
        hooks: Iterable[HookDefinition],
        registry: ExecutionRegistry,
        runner: Optional[CommandRunner] = None,
        shipper: Optional[LogShipper] = None,
    ):
        """
        Initialize hook service.

        Args:
            hooks: Configured hook definitions
            registry: Shared execution registry
            runner: Command runner (default: bash runner)
            shipper: Optional Loki shipper, owned by this service once passed
        """
        self.hooks: Dict[str, HookDefinition] = {hook.id: hook for hook in hooks}
        self.registry = registry
        self.runner = runner or CommandRunner()
        self.shipper = shipper
        self.sink = OutputSink(registry, shipper)

        self._workers: Dict[str, threading.Thread] = {}
        self._workers_lock = threading.Lock()

        for hook_id in self.hooks:
            self.registry.get_or_create(hook_id)

    @classmethod
    def from_config(cls, config: AppConfig) -> "HookService":
        """Build the service and its collaborators from configuration."""
        shipper = None
        if config.loki.enabled:
            labels = dict(config.loki.labels)
            shipper = LogShipper(
                url=config.loki.url,
                batch_wait=config.loki.batch_wait_seconds,
                batch_size=config.loki.batch_size,
                timeout=config.loki.timeout_seconds,
                labels=labels,
                queue_size=config.loki.queue_size,
            )
        return cls(
            config.hooks,
            ExecutionRegistry(tail_lines=config.server.tail_lines),
            shipper=shipper,
        )

    def start(self) -> None:
        """Start background components."""
        if self.shipper is not None:
            self.shipper.start()

    def list_hooks(self) -> List[HookDefinition]:
        return list(self.hooks.values())

    def get_hook(self, hook_id: str) -> HookDefinition:
        hook = self.hooks.get(hook_id)
        if hook is None:
            raise HookNotFoundError(hook_id)
        return hook

    def trigger(self, hook_id: str) -> threading.Thread:
        """
        Start a run of hook_id in a new worker thread.

        Returns:
            The worker thread (already started)

        Raises:
            HookNotFoundError: If hook_id is not configured
            HookBusyError: If a run of hook_id is in progress
        """
        hook = self.get_hook(hook_id)
        handle = self.registry.try_start(hook_id)

        worker = threading.Thread(
            target=self._execute,
            args=(hook, handle),
            daemon=True,
            name=f"hook-{hook_id}",
        )
        with self._workers_lock:
            self._workers[hook_id] = worker
        try:
            worker.start()
        except RuntimeError:
            self.registry.finish(handle)
            with self._workers_lock:
                self._workers.pop(hook_id, None)
            raise

        logger.info(f"Triggered hook {hook_id}")
        return worker

    def _execute(self, hook: HookDefinition, handle: ExecutionHandle) -> None:
        try:
            with handle:
                self.runner.run(hook, self.sink)
        except Exception:
            logger.exception(f"Unexpected error while running hook {hook.id}")
        finally:
            with self._workers_lock:
                if self._workers.get(hook.id) is threading.current_thread():
                    del self._workers[hook.id]

    def tail(self, hook_id: str) -> Snapshot:
        """
        Return the current output tail of hook_id.

        Raises:
            HookNotFoundError: If no state exists for hook_id
        """
        snapshot = self.sink.snapshot(hook_id)
        if snapshot is None:
            raise HookNotFoundError(hook_id)
        return snapshot

    def running_workers(self) -> List[str]:
        with self._workers_lock:
            return [hook_id for hook_id, t in self._workers.items() if t.is_alive()]

    def shutdown(self) -> None:
        """Stop the shipper. Running commands are left to finish on their own."""
        still_running = self.running_workers()
        if still_running:
            logger.warning(f"Shutting down with running hooks: {', '.join(still_running)}")
        if self.shipper is not None:
            self.shipper.close()
