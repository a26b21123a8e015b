"""
API Module - Black Box Interface

Purpose: HTTP response models
Interface: pydantic models returned by the REST endpoints
Hidden: Serialization details

The API layer only orchestrates - it contains no business logic.
All logic is delegated to the hooks module.
"""

from .models import (
    ErrorResponse,
    HookInfo,
    HookListResponse,
    RunStatus,
    TailResponse,
    TriggerResponse,
    format_rfc3339,
)

__all__ = [
    "ErrorResponse",
    "HookInfo",
    "HookListResponse",
    "RunStatus",
    "TailResponse",
    "TriggerResponse",
    "format_rfc3339",
]
