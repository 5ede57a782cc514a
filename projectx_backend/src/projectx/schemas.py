from __future__ import annotations

from datetime import date, datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import Base64UrlBytes, BaseModel, ConfigDict, Field, field_validator

from .capabilities import CapabilityStatus
from .models import Capture, CaptureKind, Event

R = TypeVar("R")


def _clean_title(value: Optional[str]) -> Optional[str]:
    """
    Strip whitespace and enforce 1..200 length. None passes through for partial updates.
    """
    if value is None:
        return value
    s = value.strip()
    if not (1 <= len(s) <= 200):
        raise ValueError("title length must be between 1 and 200 characters")
    return s


class _TitledInput(BaseModel):
    @field_validator("title", check_fields=False)
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return _clean_title(v)


# PUBLIC_INTERFACE
class NoteCreate(_TitledInput):
    """
    Schema for creating (or fully replacing) a note.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"title": "Groceries", "content": "Milk, eggs, bread"}}
    )

    title: str = Field(..., description="Note title", min_length=1, max_length=200)
    content: str = Field(default="", description="Body text")


# PUBLIC_INTERFACE
class NoteUpdate(_TitledInput):
    """Partial note update. Only provided fields are changed."""

    title: Optional[str] = Field(default=None, description="Note title", min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, description="Body text")


# PUBLIC_INTERFACE
class CaptureCreate(_TitledInput):
    """
    Schema for creating (or fully replacing) a capture. image_data is URL-safe base64.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"title": "Idea", "kind": "text", "content": "Ship it on Friday"}}
    )

    title: str = Field(..., description="Capture title", min_length=1, max_length=200)
    kind: CaptureKind = Field(default=CaptureKind.TEXT, description="text, photo or audio")
    content: str = Field(default="", description="Text content")
    image_data: Optional[Base64UrlBytes] = Field(default=None, description="Photo payload (base64)")
    audio_ref: Optional[str] = Field(default=None, description="Path of an existing audio recording")


# PUBLIC_INTERFACE
class CaptureUpdate(_TitledInput):
    """Partial capture update. The kind of a capture cannot change."""

    title: Optional[str] = Field(default=None, description="Capture title", min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, description="Text content")
    image_data: Optional[Base64UrlBytes] = Field(default=None, description="Photo payload (base64)")
    audio_ref: Optional[str] = Field(default=None, description="Path of an existing audio recording")


# PUBLIC_INTERFACE
class CaptureRow(Capture):
    """Capture as listed, with the icon picked for its kind."""

    icon: str = Field(..., description="Row icon name")


# PUBLIC_INTERFACE
class WhiteboardCreate(_TitledInput):
    title: str = Field(default="New Whiteboard", description="Whiteboard title", min_length=1, max_length=200)
    drawing_data: Base64UrlBytes = Field(default=b"", description="Drawing payload (base64)")


# PUBLIC_INTERFACE
class WhiteboardUpdate(_TitledInput):
    title: Optional[str] = Field(default=None, description="Whiteboard title", min_length=1, max_length=200)
    drawing_data: Optional[Base64UrlBytes] = Field(default=None, description="Drawing payload (base64)")


# PUBLIC_INTERFACE
class TodoCreate(_TitledInput):
    """
    Schema for creating (or fully replacing) a todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"title": "Buy groceries", "completed": False}}
    )

    title: str = Field(..., description="Short title for the todo item", min_length=1, max_length=200)
    completed: bool = Field(default=False, description="Completion status flag")


# PUBLIC_INTERFACE
class TodoUpdate(_TitledInput):
    title: Optional[str] = Field(default=None, description="Short title for the todo item", min_length=1, max_length=200)
    completed: Optional[bool] = Field(default=None, description="Completion status flag")


# PUBLIC_INTERFACE
class EventCreate(_TitledInput):
    """
    Schema for adding a calendar event. Aware timestamps are converted to local time.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Weekly Standup",
                "start": "2025-02-03T09:30:00",
                "end": "2025-02-03T09:45:00",
            }
        }
    )

    title: str = Field(..., description="Event title", min_length=1, max_length=200)
    start: datetime = Field(..., description="Start timestamp")
    end: datetime = Field(..., description="End timestamp")
    calendar: str = Field(default="default", description="Calendar to add the event to")


# PUBLIC_INTERFACE
class DeletePositions(BaseModel):
    """
    Positions to delete, counted in the list as displayed under search text q.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"positions": [1], "q": "o"}}
    )

    positions: List[int] = Field(..., description="Zero-based positions in the displayed list")
    q: Optional[str] = Field(default=None, description="Search text the list was displayed with")

    @field_validator("positions")
    @classmethod
    def non_negative(cls, v: List[int]) -> List[int]:
        if any(p < 0 for p in v):
            raise ValueError("positions must be >= 0")
        return v


# PUBLIC_INTERFACE
class DeleteOutcome(BaseModel):
    deleted: int = Field(..., description="Number of records removed")
    remaining: int = Field(..., description="Number of records left in the collection")
    persisted: bool = Field(..., description="Whether the collection was written to storage")


# PUBLIC_INTERFACE
class ListEnvelope(BaseModel, Generic[R]):
    """
    Envelope for list responses.
    """
    items: List[R] = Field(..., description="Displayed records")
    total: int = Field(..., description="Number of displayed records")
    q: Optional[str] = Field(default=None, description="Search text applied")


# PUBLIC_INTERFACE
class CalendarDay(ListEnvelope[Event]):
    access: CapabilityStatus = Field(..., description="Outcome of the calendar access request")
    day: date = Field(..., description="Day the events overlap")
