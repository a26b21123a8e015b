"""
Registry Module - Black Box Interface

Purpose: Track per-hook execution state
Interface: get_or_create(), try_start(), finish(), get()
Hidden: Locking strategy, ring buffer storage

Guarantees at most one in-flight run per hook id.
"""

from .registry import (
    ExecutionHandle,
    ExecutionRegistry,
    ExecutionState,
    HookBusyError,
    HookError,
    Snapshot,
)

__all__ = [
    "ExecutionHandle",
    "ExecutionRegistry",
    "ExecutionState",
    "HookBusyError",
    "HookError",
    "Snapshot",
]
