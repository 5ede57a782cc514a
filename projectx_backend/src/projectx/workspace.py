from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .capabilities import (
    AudioPlayer,
    AudioRecorder,
    CalendarAccess,
    LocalCalendar,
    PhotoPicker,
    UnavailableAudioPlayer,
    UnavailableAudioRecorder,
    UnavailablePhotoPicker,
)
from .models import Capture, Event, Note, TodoItem, Whiteboard
from .preferences import PreferenceBackend, get_preferences
from .settings import Settings, get_settings
from .store import RecordStore

logger = logging.getLogger(__name__)

# Preference keys, one per record type.
EVENTS_KEY = "Events"
NOTES_KEY = "Notes"
CAPTURES_KEY = "Captures"
WHITEBOARDS_KEY = "Whiteboards"
TODOS_KEY = "Todos"


# PUBLIC_INTERFACE
@dataclass
class Workspace:
    """
    Session context owning one store per record type plus the capability
    ports. Screens, edit sessions and routes receive it explicitly.
    """

    events: RecordStore[Event]
    notes: RecordStore[Note]
    captures: RecordStore[Capture]
    whiteboards: RecordStore[Whiteboard]
    todos: RecordStore[TodoItem]
    calendar: CalendarAccess
    photo_picker: PhotoPicker = field(default_factory=UnavailablePhotoPicker)
    audio_recorder: AudioRecorder = field(default_factory=UnavailableAudioRecorder)
    audio_player: AudioPlayer = field(default_factory=UnavailableAudioPlayer)
    media_dir: str = "./data/media"

    def stores(self) -> Dict[str, RecordStore[Any]]:
        return {
            store.key: store
            for store in (self.events, self.notes, self.captures, self.whiteboards, self.todos)
        }

    def activate(self) -> None:
        """Load every store from the preference backend."""
        for key, store in self.stores().items():
            store.load()
            if store.load_error is not None:
                logger.debug("%s started empty: %s", key, store.load_error)


# PUBLIC_INTERFACE
def build_workspace(
    settings: Optional[Settings] = None,
    backend: Optional[PreferenceBackend] = None,
    **ports: Any,
) -> Workspace:
    """
    Build and activate a workspace.

    backend defaults to the configured preference backend; ports may override
    photo_picker, audio_recorder, audio_player or calendar.
    """
    settings = settings or get_settings()
    backend = backend or get_preferences(settings)

    events = RecordStore(backend, EVENTS_KEY, Event)
    workspace = Workspace(
        events=events,
        notes=RecordStore(backend, NOTES_KEY, Note),
        captures=RecordStore(backend, CAPTURES_KEY, Capture),
        whiteboards=RecordStore(backend, WHITEBOARDS_KEY, Whiteboard),
        todos=RecordStore(backend, TODOS_KEY, TodoItem),
        calendar=ports.pop("calendar", None) or LocalCalendar(events, granted=settings.calendar_access),
        media_dir=settings.media_dir,
        **ports,
    )
    workspace.activate()
    return workspace
