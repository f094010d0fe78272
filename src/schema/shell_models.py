"""
Pydantic models for the desktop-shell bridge API.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ShellAckResponse(BaseModel):
    """Acknowledgement returned by storage writes and window controls."""

    ok: bool = Field(..., description="Whether the shell performed the request")
    error: Optional[str] = Field(None, description="Failure reason, if any")


class ShellLoadResponse(BaseModel):
    """Stored planner document, exactly as written (or null)."""

    data: Optional[Any] = Field(
        None, description="Snapshot object, legacy day-entry list, or null"
    )


class ShellHealthResponse(BaseModel):
    status: str = "ok"
    data_file: str
