"""
Hooktail API data models.

These models define the JSON bodies returned by the HTTP API.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from hooktail.config import HookDefinition
from hooktail.modules.registry import Snapshot


class RunStatus(str, Enum):
    """Status reported by the tail endpoint."""

    RUNNING = "running"
    STOPPED = "stopped"


class HookInfo(BaseModel):
    """A configured hook as listed by GET /hooks."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    execute_command: str = Field(..., alias="execute-command")
    command_working_directory: Optional[str] = Field(None, alias="command-working-directory")

    @classmethod
    def from_definition(cls, hook: HookDefinition) -> "HookInfo":
        return cls.model_validate(hook.to_dict())


class HookListResponse(BaseModel):
    """Response for GET /hooks."""

    message: str = "Webhook server is running"
    hooks: List[HookInfo] = Field(default_factory=list)


class TriggerResponse(BaseModel):
    """Response for a successful trigger."""

    status: str = "started"
    hook_id: str


class TailResponse(BaseModel):
    """Response for GET /tail/{hook_id}."""

    status: RunStatus
    output: List[str] = Field(default_factory=list)
    last_exec: Optional[str] = Field(None, description="RFC3339 time of the last start")

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "TailResponse":
        return cls(
            status=RunStatus.RUNNING if snapshot.running else RunStatus.STOPPED,
            output=list(snapshot.lines),
            last_exec=format_rfc3339(snapshot.last_started),
        )


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str


def format_rfc3339(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat(timespec="seconds").replace("+00:00", "Z")
