from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import ClassVar, Dict, Optional, Tuple
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# PUBLIC_INTERFACE
class Record(BaseModel):
    """
    Base class for every locally persisted record type.

    Records are immutable; edits produce a new instance via model_copy or
    model_validate. The id is a random UUID4 assigned at construction and is
    never reused or changed.

    Binary fields are encoded as base64 in JSON so a list of records can be
    written to and read back from the preference store without loss.
    """

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64", val_json_bytes="base64")

    # Fields matched by the search box, in display order.
    search_fields: ClassVar[Tuple[str, ...]] = ("title",)

    id: UUID = Field(default_factory=uuid4, description="Unique, immutable record identifier")
    title: str = Field(default="", description="Short title shown in list rows")

    def search_text(self) -> Tuple[str, ...]:
        return tuple(getattr(self, name) or "" for name in self.search_fields)


# PUBLIC_INTERFACE
class Event(Record):
    """A calendar event. end must not precede start."""

    start: datetime = Field(..., description="Start timestamp")
    end: datetime = Field(..., description="End timestamp")
    calendar: str = Field(default="default", description="Reference to the owning calendar")

    @field_validator("start", "end")
    @classmethod
    def to_local_time(cls, v: datetime) -> datetime:
        """
        Store event times as naive local time so they compare with day ranges.
        """
        if v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v

    @model_validator(mode="after")
    def check_range(self) -> "Event":
        if self.end < self.start:
            raise ValueError("end must not be earlier than start")
        return self

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """True if the event intersects the half-open range [start, end)."""
        if self.start == self.end:
            return start <= self.start < end
        return self.start < end and self.end > start


# PUBLIC_INTERFACE
class Note(Record):
    search_fields: ClassVar[Tuple[str, ...]] = ("title", "content")

    content: str = Field(default="", description="Body text")
    modified_at: datetime = Field(default_factory=datetime.now, description="Last modification timestamp")


# PUBLIC_INTERFACE
class CaptureKind(str, Enum):
    TEXT = "text"
    PHOTO = "photo"
    AUDIO = "audio"


# PUBLIC_INTERFACE
class Capture(Record):
    """
    A quick capture. The kind decides which of the payload fields the editor
    fills in:
    - text: content
    - photo: image_data (raw image bytes from the photo picker)
    - audio: audio_ref (path of the recording on disk)
    """

    search_fields: ClassVar[Tuple[str, ...]] = ("title", "content")

    kind: CaptureKind = Field(default=CaptureKind.TEXT, description="text, photo or audio")
    content: str = Field(default="", description="Text content")
    image_data: Optional[bytes] = Field(default=None, description="Photo payload")
    audio_ref: Optional[str] = Field(default=None, description="Path of the audio recording")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")


# PUBLIC_INTERFACE
class Whiteboard(Record):
    title: str = Field(default="New Whiteboard", description="Short title shown in list rows")
    drawing_data: bytes = Field(default=b"", description="Opaque drawing payload from the drawing surface")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")


# PUBLIC_INTERFACE
class TodoItem(Record):
    completed: bool = Field(default=False, description="Completion status flag")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")


_CAPTURE_ICONS: Dict[CaptureKind, str] = {
    CaptureKind.TEXT: "text.bubble",
    CaptureKind.PHOTO: "photo",
    CaptureKind.AUDIO: "mic",
}


# PUBLIC_INTERFACE
def capture_icon(kind: CaptureKind) -> str:
    """Return the row icon name for a capture kind."""
    return _CAPTURE_ICONS[kind]


# PUBLIC_INTERFACE
def matches_search(record: Record, text: Optional[str]) -> bool:
    """
    Case-insensitive substring match over the record's searchable fields.
    An empty search matches every record; whitespace is matched literally.
    """
    s = (text or "").lower()
    if not s:
        return True
    return any(s in value.lower() for value in record.search_text())


# PUBLIC_INTERFACE
def toggle_completed(item: TodoItem) -> TodoItem:
    """Return a copy of the todo with its completed flag flipped."""
    return item.model_copy(update={"completed": not item.completed})
