import base64
from datetime import datetime
from uuid import uuid4

from fastapi.testclient import TestClient

from src.projectx.main import create_app
from src.projectx.preferences import InMemoryPreferences
from src.projectx.settings import Settings
from src.projectx.store import PersistenceError
from src.projectx.workspace import NOTES_KEY, build_workspace

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


class FailingPreferences(InMemoryPreferences):
    def set(self, key: str, value: bytes) -> None:
        raise PersistenceError("read-only preferences")


def client_for(backend=None, settings=None):
    settings = settings or Settings()
    workspace = build_workspace(settings, backend=backend or InMemoryPreferences())
    return TestClient(create_app(settings, workspace=workspace))


def b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii")


class TestNotesApi:
    def test_create_search_and_update_note(self):
        client = client_for()
        created = client.post("/api/v1/notes/", json={"title": "Groceries", "content": "Milk, EGGS, bread"})
        assert created.status_code == 201
        note = created.json()
        assert note["content"] == "Milk, EGGS, bread"
        datetime.fromisoformat(note["modified_at"])

        client.post("/api/v1/notes/", json={"title": "Standup", "content": "Blockers"})

        found = client.get("/api/v1/notes/?q=eggs").json()
        assert [n["title"] for n in found["items"]] == ["Groceries"]
        assert found["q"] == "eggs"

        padded = client.get("/api/v1/notes/", params={"q": "eggs "}).json()
        assert padded["total"] == 0
        assert padded["q"] == "eggs "

        patched = client.patch(f"/api/v1/notes/{note['id']}", json={"content": "Milk"})
        assert patched.status_code == 200
        assert patched.json()["title"] == "Groceries"
        assert patched.json()["content"] == "Milk"
        assert datetime.fromisoformat(patched.json()["modified_at"]) >= datetime.fromisoformat(note["modified_at"])

        order = [n["title"] for n in client.get("/api/v1/notes/").json()["items"]]
        assert order == ["Groceries", "Standup"]

    def test_put_resets_omitted_fields(self):
        client = client_for()
        note = client.post("/api/v1/notes/", json={"title": "Draft", "content": "body"}).json()
        replaced = client.put(f"/api/v1/notes/{note['id']}", json={"title": "Final"}).json()
        assert replaced["id"] == note["id"]
        assert replaced["title"] == "Final"
        assert replaced["content"] == ""

    def test_unknown_note_is_not_found(self):
        client = client_for()
        res = client.patch(f"/api/v1/notes/{uuid4()}", json={"content": "x"})
        assert res.status_code == 404
        assert res.json()["detail"] == "Note not found"


class TestCapturesApi:
    def test_photo_capture_round_trips_image_bytes(self):
        client = client_for()
        res = client.post(
            "/api/v1/captures/",
            json={"title": "Receipt", "kind": "photo", "image_data": b64(PNG_BYTES)},
        )
        assert res.status_code == 201
        capture = res.json()
        assert capture["kind"] == "photo"
        assert capture["icon"] == "photo"
        assert base64.urlsafe_b64decode(capture["image_data"]) == PNG_BYTES

        fetched = client.get(f"/api/v1/captures/{capture['id']}").json()
        assert base64.urlsafe_b64decode(fetched["image_data"]) == PNG_BYTES

    def test_rows_carry_kind_icons(self):
        client = client_for()
        client.post("/api/v1/captures/", json={"title": "Idea", "content": "Ship it"})
        client.post("/api/v1/captures/", json={"title": "Memo", "kind": "audio", "audio_ref": "/tmp/memo.m4a"})

        items = client.get("/api/v1/captures/").json()["items"]
        assert [(c["title"], c["icon"]) for c in items] == [("Idea", "text.bubble"), ("Memo", "mic")]

    def test_search_matches_capture_content(self):
        client = client_for()
        client.post("/api/v1/captures/", json={"title": "Idea", "content": "Rewrite the parser"})
        client.post("/api/v1/captures/", json={"title": "Other", "content": "nothing"})
        items = client.get("/api/v1/captures/?q=PARSER").json()["items"]
        assert [c["title"] for c in items] == ["Idea"]

    def test_unknown_kind_is_rejected(self):
        client = client_for()
        res = client.post("/api/v1/captures/", json={"title": "Video", "kind": "video"})
        assert res.status_code == 422


class TestWhiteboardsApi:
    def test_new_whiteboard_defaults(self):
        client = client_for()
        board = client.post("/api/v1/whiteboards/", json={}).json()
        assert board["title"] == "New Whiteboard"
        assert board["drawing_data"] == ""

    def test_drawing_payload_is_stored_unmodified(self):
        client = client_for()
        ink = bytes(range(64))
        board = client.post("/api/v1/whiteboards/", json={"title": "Plan", "drawing_data": b64(ink)}).json()

        updated = client.patch(f"/api/v1/whiteboards/{board['id']}", json={"title": "Plan B"}).json()

        assert updated["title"] == "Plan B"
        assert base64.urlsafe_b64decode(updated["drawing_data"]) == ink

    def test_search_ignores_drawing_payload(self):
        client = client_for()
        client.post("/api/v1/whiteboards/", json={"title": "Plan", "drawing_data": b64(b"kitchen")})
        assert client.get("/api/v1/whiteboards/?q=kitchen").json()["total"] == 0


class TestPersistence:
    def test_records_survive_a_new_workspace(self):
        backend = InMemoryPreferences()
        client = client_for(backend)
        note = client.post("/api/v1/notes/", json={"title": "Keep me"}).json()
        client.post("/api/v1/todos/", json={"title": "Also me"})

        assert backend.get(NOTES_KEY) is not None
        again = client_for(backend)
        assert again.get(f"/api/v1/notes/{note['id']}").json()["title"] == "Keep me"
        assert again.get("/api/v1/todos/").json()["total"] == 1

    def test_corrupt_blob_starts_empty(self):
        backend = InMemoryPreferences()
        backend.set(NOTES_KEY, b"{broken")
        workspace = build_workspace(Settings(), backend=backend)

        assert workspace.notes.records == ()
        assert workspace.notes.load_error is not None
        client = TestClient(create_app(Settings(), workspace=workspace))
        assert client.get("/api/v1/notes/").json()["total"] == 0

    def test_write_failure_is_reported_in_header(self):
        client = client_for(FailingPreferences())
        res = client.post("/api/v1/todos/", json={"title": "Unsaved"})
        assert res.status_code == 201
        assert res.headers["X-Persisted"] == "false"
        assert client.get("/api/v1/todos/").json()["total"] == 1
