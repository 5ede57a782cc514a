"""
Ports to platform capabilities the workspace delegates to but does not implement.

Each request is one-shot and reports its outcome as a CapabilityResult instead
of raising, so a refused permission or a dismissed picker is an ordinary
result the caller decides how to handle. Nothing here mutates a record store
except LocalCalendar.save_event, which is the calendar's own store.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from .models import Event
from .store import MutationResult, RecordStore

logger = logging.getLogger(__name__)

V = TypeVar("V")


class CapabilityStatus(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    CANCELLED = "cancelled"
    FAILED = "failed"


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class CapabilityResult(Generic[V]):
    status: CapabilityStatus
    value: Optional[V] = None
    detail: Optional[str] = None

    @property
    def granted(self) -> bool:
        return self.status is CapabilityStatus.GRANTED

    @classmethod
    def ok(cls, value: Optional[V] = None) -> "CapabilityResult[V]":
        return cls(CapabilityStatus.GRANTED, value)

    @classmethod
    def denied(cls, detail: Optional[str] = None) -> "CapabilityResult[V]":
        return cls(CapabilityStatus.DENIED, detail=detail)

    @classmethod
    def cancelled(cls) -> "CapabilityResult[V]":
        return cls(CapabilityStatus.CANCELLED)

    @classmethod
    def failed(cls, detail: str) -> "CapabilityResult[V]":
        return cls(CapabilityStatus.FAILED, detail=detail)


# PUBLIC_INTERFACE
class CalendarAccess(ABC):
    """Calendar provider: permission, day-range queries and event creation."""

    @abstractmethod
    def request_access(self) -> CapabilityResult[None]:
        """Ask for access to the calendar. Later calls repeat the first answer."""

    @abstractmethod
    def events_between(self, start: datetime, end: datetime) -> List[Event]:
        """Events overlapping [start, end). Empty when access was not granted."""

    @abstractmethod
    def save_event(self, event: Event) -> CapabilityResult[MutationResult]:
        """Add an event to the calendar."""


class LocalCalendar(CalendarAccess):
    """
    Calendar kept in the workspace's own event store.

    granted simulates the user's answer to the permission prompt.
    """

    def __init__(self, store: RecordStore[Event], granted: bool = True) -> None:
        self._store = store
        self._granted = granted
        self._authorized = False

    def request_access(self) -> CapabilityResult[None]:
        self._authorized = self._granted
        if not self._granted:
            logger.info("Calendar access denied")
            return CapabilityResult.denied("Calendar access denied")
        return CapabilityResult.ok()

    def events_between(self, start: datetime, end: datetime) -> List[Event]:
        if not self._authorized:
            return []
        return list(self._store.filter(lambda e: e.overlaps(start, end)))

    def save_event(self, event: Event) -> CapabilityResult[MutationResult]:
        if not self._authorized:
            return CapabilityResult.denied("Calendar access denied")
        return CapabilityResult.ok(self._store.insert(event))


# PUBLIC_INTERFACE
class PhotoPicker(ABC):
    @abstractmethod
    def pick(self) -> CapabilityResult[bytes]:
        """Let the user pick a photo; the value is the raw image data."""


# PUBLIC_INTERFACE
class AudioRecorder(ABC):
    @abstractmethod
    def start(self, path: str) -> CapabilityResult[str]:
        """Start recording into path; the value is the path being written."""

    @abstractmethod
    def stop(self) -> CapabilityResult[str]:
        """Stop the current recording; the value is the finished file path."""


# PUBLIC_INTERFACE
class AudioPlayer(ABC):
    @abstractmethod
    def play(self, path: str) -> CapabilityResult[str]:
        """Play the recording at path."""


# PUBLIC_INTERFACE
class DrawingSurface(ABC):
    """Ink canvas. Drawing payloads are opaque and round-tripped unmodified."""

    @abstractmethod
    def export_drawing(self) -> bytes:
        """Return the current drawing payload."""

    @abstractmethod
    def load_drawing(self, data: bytes) -> None:
        """Show a previously exported payload."""


class UnavailablePhotoPicker(PhotoPicker):
    def pick(self) -> CapabilityResult[bytes]:
        return CapabilityResult.denied("Photo library is not available")


class UnavailableAudioRecorder(AudioRecorder):
    def start(self, path: str) -> CapabilityResult[str]:
        return CapabilityResult.denied("Microphone is not available")

    def stop(self) -> CapabilityResult[str]:
        return CapabilityResult.denied("Microphone is not available")


class UnavailableAudioPlayer(AudioPlayer):
    def play(self, path: str) -> CapabilityResult[str]:
        return CapabilityResult.denied("Audio playback is not available")
