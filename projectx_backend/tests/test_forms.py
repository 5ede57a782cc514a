import os
from datetime import datetime
from uuid import uuid4

import pytest
from pydantic import ValidationError

from src.projectx.capabilities import (
    AudioPlayer,
    AudioRecorder,
    CapabilityResult,
    CapabilityStatus,
    DrawingSurface,
    PhotoPicker,
    UnavailableAudioRecorder,
    UnavailablePhotoPicker,
)
from src.projectx.forms import CaptureEditor, EditSession, SessionClosedError, WhiteboardEditor
from src.projectx.models import Capture, CaptureKind, Note, Whiteboard
from src.projectx.preferences import InMemoryPreferences
from src.projectx.settings import Settings
from src.projectx.store import RecordStore
from src.projectx.workspace import build_workspace


class FakePicker(PhotoPicker):
    def __init__(self, result):
        self.result = result

    def pick(self):
        return self.result


class FakeRecorder(AudioRecorder):
    def __init__(self):
        self.calls = []

    def start(self, path):
        self.calls.append(("start", path))
        self.path = path
        return CapabilityResult.ok(path)

    def stop(self):
        self.calls.append(("stop", self.path))
        return CapabilityResult.ok(self.path)


class FakePlayer(AudioPlayer):
    def __init__(self):
        self.played = []

    def play(self, path):
        self.played.append(path)
        return CapabilityResult.ok(path)


class FakeSurface(DrawingSurface):
    def __init__(self, data=b""):
        self.data = data

    def export_drawing(self):
        return self.data

    def load_drawing(self, data):
        self.data = data


@pytest.fixture
def notes():
    return RecordStore(InMemoryPreferences(), "Notes", Note)


@pytest.fixture
def captures():
    return RecordStore(InMemoryPreferences(), "Captures", Capture)


class TestEditSession:
    def test_new_record_is_inserted_only_on_save(self, notes):
        session = EditSession.create(notes, Note(title=""))
        session.change(title="Groceries", content="Milk")
        assert len(notes) == 0

        result = session.save()

        assert result.changed and result.persisted
        assert session.closed
        assert session.result is result
        assert [n.title for n in notes] == ["Groceries"]
        assert notes.records[0].content == "Milk"

    def test_create_without_draft_uses_record_defaults(self, notes):
        session = EditSession.create(notes)
        assert session.is_new
        assert session.draft.title == ""

    def test_edit_replaces_in_place_and_stamps_modified(self, notes):
        old = datetime(2000, 1, 1)
        for title in ("a", "b", "c"):
            notes.insert(Note(title=title, modified_at=old))
        target = notes.records[1]

        session = EditSession.edit(notes, target)
        session.change(content="updated")
        session.save()

        assert [n.title for n in notes] == ["a", "b", "c"]
        saved = notes.get(target.id)
        assert saved.content == "updated"
        assert saved.modified_at > old

    def test_cancel_discards_the_draft(self, notes):
        session = EditSession.create(notes, Note(title="Draft"))
        session.change(content="never saved")
        session.cancel()

        assert len(notes) == 0
        assert session.result is None
        with pytest.raises(SessionClosedError):
            session.change(title="too late")
        with pytest.raises(SessionClosedError):
            session.save()

    def test_session_cannot_be_saved_twice(self, notes):
        session = EditSession.create(notes, Note(title="once"))
        session.save()
        with pytest.raises(SessionClosedError):
            session.save()
        assert len(notes) == 1

    def test_id_cannot_be_changed(self, notes):
        session = EditSession.create(notes, Note(title="x"))
        with pytest.raises(ValueError):
            session.change(id=uuid4())

    def test_changes_are_validated(self, notes):
        session = EditSession.create(notes, Note(title="x"))
        with pytest.raises(ValidationError):
            session.change(title=["not", "a", "string"])
        assert session.draft.title == "x"


class TestCaptureEditor:
    def test_photo_is_attached_from_picker(self, captures):
        editor = CaptureEditor.create(captures, Capture(title="Receipt", kind=CaptureKind.PHOTO))
        result = editor.attach_photo(FakePicker(CapabilityResult.ok(b"\x89PNG")))

        assert result.granted
        assert editor.draft.image_data == b"\x89PNG"
        editor.save()
        assert captures.records[0].image_data == b"\x89PNG"

    def test_cancelled_or_denied_picker_leaves_draft_alone(self, captures):
        editor = CaptureEditor.create(captures, Capture(title="Receipt", kind=CaptureKind.PHOTO))

        cancelled = editor.attach_photo(FakePicker(CapabilityResult.cancelled()))
        denied = editor.attach_photo(UnavailablePhotoPicker())

        assert cancelled.status is CapabilityStatus.CANCELLED
        assert denied.status is CapabilityStatus.DENIED
        assert editor.draft.image_data is None

    def test_steps_must_match_capture_kind(self, captures):
        editor = CaptureEditor.create(captures, Capture(title="Text", kind=CaptureKind.TEXT))
        with pytest.raises(ValueError):
            editor.attach_photo(FakePicker(CapabilityResult.ok(b"x")))
        with pytest.raises(ValueError):
            editor.start_recording(FakeRecorder())

    def test_recording_sets_audio_ref_and_plays_back(self, captures, tmp_path):
        media_dir = str(tmp_path / "media")
        editor = CaptureEditor.create(
            captures, Capture(title="Memo", kind=CaptureKind.AUDIO), media_dir=media_dir
        )
        recorder = FakeRecorder()
        player = FakePlayer()

        started = editor.start_recording(recorder)
        expected = os.path.join(media_dir, f"{editor.draft.id}.m4a")
        assert started.granted
        assert editor.recording
        assert editor.draft.audio_ref == expected
        assert os.path.isdir(media_dir)
        assert editor.start_recording(recorder).status is CapabilityStatus.FAILED

        stopped = editor.stop_recording(recorder)
        assert stopped.value == expected
        assert not editor.recording
        assert recorder.calls == [("start", expected), ("stop", expected)]

        assert editor.play(player).granted
        assert player.played == [expected]

        editor.save()
        assert captures.records[0].audio_ref == expected

    def test_denied_microphone_records_nothing(self, captures, tmp_path):
        editor = CaptureEditor.create(
            captures, Capture(title="Memo", kind=CaptureKind.AUDIO), media_dir=str(tmp_path)
        )
        result = editor.start_recording(UnavailableAudioRecorder())

        assert result.status is CapabilityStatus.DENIED
        assert editor.draft.audio_ref is None
        assert not editor.recording
        assert editor.stop_recording(UnavailableAudioRecorder()).status is CapabilityStatus.FAILED

    def test_play_without_recording_fails(self, captures):
        editor = CaptureEditor.create(captures, Capture(title="Memo", kind=CaptureKind.AUDIO))
        player = FakePlayer()
        assert editor.play(player).status is CapabilityStatus.FAILED
        assert player.played == []

    def test_play_after_session_closed_is_rejected(self, captures):
        editor = CaptureEditor.create(
            captures, Capture(title="Memo", kind=CaptureKind.AUDIO, audio_ref="/tmp/memo.m4a")
        )
        editor.save()
        player = FakePlayer()
        with pytest.raises(SessionClosedError):
            editor.play(player)
        assert player.played == []


class TestWhiteboardEditor:
    def test_open_shows_stored_drawing(self):
        store = RecordStore(InMemoryPreferences(), "Whiteboards", Whiteboard)
        board = Whiteboard(title="Plan", drawing_data=b"ink-v1")
        store.insert(board)
        surface = FakeSurface()

        WhiteboardEditor.edit(store, board).open(surface)

        assert surface.data == b"ink-v1"

    def test_save_copies_drawing_from_surface(self):
        store = RecordStore(InMemoryPreferences(), "Whiteboards", Whiteboard)
        editor = WhiteboardEditor.create(store)
        editor.save(FakeSurface(b"\x00\x01ink"))

        saved = store.records[0]
        assert saved.title == "New Whiteboard"
        assert saved.drawing_data == b"\x00\x01ink"

    def test_save_without_surface_keeps_payload(self):
        store = RecordStore(InMemoryPreferences(), "Whiteboards", Whiteboard)
        board = Whiteboard(title="Plan", drawing_data=b"ink")
        store.insert(board)

        editor = WhiteboardEditor.edit(store, board)
        editor.change(title="Plan B")
        editor.save()

        assert store.records == (board.model_copy(update={"title": "Plan B"}),)


class TestWorkspacePorts:
    def test_capture_editor_uses_workspace_ports(self, tmp_path):
        workspace = build_workspace(
            Settings(media_dir=str(tmp_path)),
            backend=InMemoryPreferences(),
            photo_picker=FakePicker(CapabilityResult.ok(b"jpeg")),
        )
        editor = CaptureEditor.create(
            workspace.captures, Capture(title="Snap", kind=CaptureKind.PHOTO), media_dir=workspace.media_dir
        )

        assert editor.attach_photo(workspace.photo_picker).granted
        editor.save()

        assert workspace.captures.records[0].image_data == b"jpeg"
        assert editor.recording_path().startswith(str(tmp_path))

    def test_default_ports_are_denied(self):
        workspace = build_workspace(Settings(), backend=InMemoryPreferences())
        assert workspace.photo_picker.pick().status is CapabilityStatus.DENIED
        assert workspace.audio_recorder.start("x.m4a").status is CapabilityStatus.DENIED
        assert workspace.audio_player.play("x.m4a").status is CapabilityStatus.DENIED
