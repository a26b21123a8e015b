import logging
from typing import Optional

from hooktail.modules.registry import ExecutionRegistry, Snapshot
from hooktail.modules.shipper import LogShipper

logger = logging.getLogger("hooktail.sink")


class OutputSink:
    def __init__(self, registry: ExecutionRegistry, shipper: Optional[LogShipper] = None):
        """
        Initialize output sink.

        Args:
            registry: Registry owning the per-hook ring buffers
            shipper: Optional Loki shipper; None disables forwarding
        """
        self.registry = registry
        self.shipper = shipper

    @property
    def shipping_enabled(self) -> bool:
        return self.shipper is not None

    def record(self, hook_id: str, line: str) -> None:
        """
        Append a line to the hook's tail buffer and forward it to Loki.

        Forwarding happens outside the state lock so a saturated shipper
        queue never blocks tail readers.
        """
        self.registry.get_or_create(hook_id).append(line)

        if self.shipper is not None:
            self.shipper.push_log(hook_id, line)

    def snapshot(self, hook_id: str) -> Optional[Snapshot]:
        """Return a copy of the hook's state, or None for unknown hooks."""
        state = self.registry.get(hook_id)
        if state is None:
            return None
        return state.snapshot()
