"""
Sink Module - Black Box Interface

Purpose: Record command output
Interface: record(), snapshot()
Hidden: Ring buffer eviction, fan-out to the shipper
"""

from .sink import OutputSink

__all__ = ["OutputSink"]
