"""
Pydantic models for the planner state.

Field names are snake_case in Python; the persisted snapshot keeps the
camelCase keys (``userName``, ``dailyMission``, ``chatHistory``, ``createdAt``,
``completedAt``) through aliases. Both spellings are accepted on input.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_USER_NAME = "User"
DEFAULT_CATEGORY = "General"
DEFAULT_DESCRIPTION = "No description provided."


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class TaskFilter(str, Enum):
    """Completion filter applied to the board for the selected day."""

    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"


class Task(BaseModel):
    """A single planner task owned by one calendar day."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique, opaque task identifier.")
    title: str = Field(..., description="Short task title.")
    description: str = Field(default="", description="Longer task description.")
    category: str = Field(default=DEFAULT_CATEGORY, description="Free-text label.")
    priority: Priority = Field(default=Priority.MEDIUM)
    completed: bool = Field(default=False)
    rating: Optional[int] = Field(
        default=None, description="1-5 rating, meaningful once completed."
    )
    created_at: str = Field(..., alias="createdAt", description="ISO timestamp.")
    completed_at: Optional[str] = Field(
        default=None, alias="completedAt", description="ISO timestamp."
    )
    date: str = Field(..., description="Owning calendar day, YYYY-MM-DD.")

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value):
        if isinstance(value, Priority):
            return value
        if isinstance(value, str) and value.strip().lower() in Priority._value2member_map_:
            return value.strip().lower()
        return Priority.MEDIUM


class ChatMessage(BaseModel):
    """One turn of the per-day assistant transcript."""

    role: ChatRole
    content: str
    timestamp: str


class PlannerState(BaseModel):
    """Everything the planner persists as one snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    tasks: List[Task] = Field(default_factory=list)
    user_name: str = Field(default=DEFAULT_USER_NAME, alias="userName")
    daily_mission: str = Field(default="", alias="dailyMission")
    chat_history: Dict[str, List[ChatMessage]] = Field(
        default_factory=dict, alias="chatHistory"
    )

    @field_validator("user_name", mode="before")
    @classmethod
    def _default_user_name(cls, value):
        return value or DEFAULT_USER_NAME

    @field_validator("daily_mission", mode="before")
    @classmethod
    def _default_mission(cls, value):
        return value or ""

    @field_validator("chat_history", mode="before")
    @classmethod
    def _default_history(cls, value):
        return value or {}

    def to_snapshot(self) -> dict:
        """Serialize to the JSON-ready camelCase snapshot document."""
        return self.model_dump(mode="json", by_alias=True)
