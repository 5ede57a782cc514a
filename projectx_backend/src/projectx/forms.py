from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Generic, Optional, Type, TypeVar

from .capabilities import AudioPlayer, AudioRecorder, CapabilityResult, DrawingSurface, PhotoPicker
from .models import Capture, CaptureKind, Record, Whiteboard
from .store import MutationResult, RecordStore

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Record)
S = TypeVar("S", bound="EditSession[Any]")


class SessionClosedError(RuntimeError):
    """Raised when a saved or cancelled edit session is used again."""


# PUBLIC_INTERFACE
def stamp_modified(record: T) -> T:
    """Refresh modified_at on record types that track it; others pass through."""
    if "modified_at" not in type(record).model_fields:
        return record
    return record.model_copy(update={"modified_at": datetime.now()})


# PUBLIC_INTERFACE
class EditSession(Generic[T]):
    """
    Uncommitted copy of one record, new or existing, as held by an edit form.

    The store is only touched by save(): a new record is inserted, an existing
    one replaced in place. cancel() discards the draft. Either call closes the
    session.
    """

    def __init__(self, store: RecordStore[T], draft: T, is_new: bool) -> None:
        self._store = store
        self._draft = draft
        self.is_new = is_new
        self.closed = False
        self.result: Optional[MutationResult] = None

    @classmethod
    def create(cls: Type[S], store: RecordStore[Any], draft: Optional[Any] = None, **kwargs: Any) -> S:
        return cls(store, draft if draft is not None else store.record_type(), True, **kwargs)

    @classmethod
    def edit(cls: Type[S], store: RecordStore[Any], record: Any, **kwargs: Any) -> S:
        return cls(store, record, False, **kwargs)

    @property
    def draft(self) -> T:
        return self._draft

    def _check_open(self) -> None:
        if self.closed:
            raise SessionClosedError("edit session is already closed")

    def change(self, **fields: Any) -> T:
        """Apply field changes to the draft, revalidating the whole record."""
        self._check_open()
        if "id" in fields and fields["id"] != self._draft.id:
            raise ValueError("record id is immutable")
        data = self._draft.model_dump()
        data.update(fields)
        self._draft = type(self._draft).model_validate(data)
        return self._draft

    def save(self) -> MutationResult:
        self._check_open()
        self._draft = stamp_modified(self._draft)
        if self.is_new:
            result = self._store.insert(self._draft)
        else:
            result = self._store.replace(self._draft)
        self.closed = True
        self.result = result
        return result

    def cancel(self) -> None:
        self._check_open()
        self.closed = True


# PUBLIC_INTERFACE
class CaptureEditor(EditSession[Capture]):
    """
    Edit session with the media steps of a capture form.

    Photo steps only apply to photo captures and recording steps only to audio
    captures; anything else raises ValueError.
    """

    def __init__(self, store: RecordStore[Capture], draft: Capture, is_new: bool, media_dir: str = ".") -> None:
        super().__init__(store, draft, is_new)
        self.media_dir = media_dir
        self.recording = False

    def _require(self, kind: CaptureKind) -> None:
        if self._draft.kind is not kind:
            raise ValueError(f"{kind.value} step on a {self._draft.kind.value} capture")

    def recording_path(self) -> str:
        return os.path.join(self.media_dir, f"{self._draft.id}.m4a")

    def attach_photo(self, picker: PhotoPicker) -> CapabilityResult[bytes]:
        self._check_open()
        self._require(CaptureKind.PHOTO)
        result = picker.pick()
        if result.granted and result.value is not None:
            self.change(image_data=result.value)
        return result

    def start_recording(self, recorder: AudioRecorder) -> CapabilityResult[str]:
        self._check_open()
        self._require(CaptureKind.AUDIO)
        if self.recording:
            return CapabilityResult.failed("already recording")
        path = self.recording_path()
        os.makedirs(self.media_dir, exist_ok=True)
        result = recorder.start(path)
        if result.granted:
            self.recording = True
            self.change(audio_ref=result.value or path)
        else:
            logger.info("Could not start recording: %s", result.detail or result.status.value)
        return result

    def stop_recording(self, recorder: AudioRecorder) -> CapabilityResult[str]:
        self._check_open()
        self._require(CaptureKind.AUDIO)
        if not self.recording:
            return CapabilityResult.failed("not recording")
        self.recording = False
        return recorder.stop()

    def play(self, player: AudioPlayer) -> CapabilityResult[str]:
        self._check_open()
        self._require(CaptureKind.AUDIO)
        if self._draft.audio_ref is None:
            return CapabilityResult.failed("nothing recorded")
        return player.play(self._draft.audio_ref)


# PUBLIC_INTERFACE
class WhiteboardEditor(EditSession[Whiteboard]):
    """Edit session that moves the drawing payload between the record and a drawing surface."""

    def open(self, surface: DrawingSurface) -> None:
        self._check_open()
        surface.load_drawing(self._draft.drawing_data)

    def save(self, surface: Optional[DrawingSurface] = None) -> MutationResult:  # type: ignore[override]
        if surface is not None:
            self.change(drawing_data=surface.export_drawing())
        return super().save()
