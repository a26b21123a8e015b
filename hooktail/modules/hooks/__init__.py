"""
Hooks Module - Black Box Interface

Purpose: Trigger configured hooks and expose their output tail
Interface: trigger(), tail(), list_hooks(), shutdown()
Hidden: Worker threads, registry handles, sink wiring
"""

from .service import HookNotFoundError, HookService

__all__ = ["HookNotFoundError", "HookService"]
