"""
Shipper Module - Black Box Interface

Purpose: Forward captured output to Loki in batches
Interface: start(), push_log(), enqueue(), close()
Hidden: Aggregation by label set, flush triggers, HTTP transport

Delivery is best-effort; can be replaced with any log backend client.
"""

from .shipper import LogEntry, LogShipper, build_push_request, label_signature

__all__ = ["LogEntry", "LogShipper", "build_push_request", "label_signature"]
