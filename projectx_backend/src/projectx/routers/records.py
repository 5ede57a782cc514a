from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Callable, Dict, Optional, Type
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel

from ..deps import get_workspace, persisted_header
from ..forms import stamp_modified
from ..models import Capture, Note, Record, Whiteboard, capture_icon
from ..schemas import (
    CaptureCreate,
    CaptureRow,
    CaptureUpdate,
    DeleteOutcome,
    DeletePositions,
    ListEnvelope,
    NoteCreate,
    NoteUpdate,
    WhiteboardCreate,
    WhiteboardUpdate,
)
from ..screens import ListScreen
from ..store import RecordStore
from ..workspace import Workspace


def _as_row(record: Record) -> BaseModel:
    return record


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class RecordScreen:
    """
    One list screen exposed over HTTP.

    - name: URL segment and OpenAPI tag
    - label: singular name used in summaries and 404 details
    - store: picks the screen's store out of the workspace
    - row_type/to_row: optional list/detail representation of a record
    """
    name: str
    label: str
    record_type: Type[Record]
    create_schema: Type[BaseModel]
    update_schema: Type[BaseModel]
    store: Callable[[Workspace], RecordStore[Any]]
    row_type: Optional[Type[BaseModel]] = None
    to_row: Callable[[Any], BaseModel] = _as_row


def apply_fields(record: Record, fields: Dict[str, Any]) -> Record:
    """Return a revalidated copy of record with fields replaced."""
    data = record.model_dump()
    data.update(fields)
    return stamp_modified(type(record).model_validate(data))


# PUBLIC_INTERFACE
def build_router(screen: RecordScreen) -> APIRouter:
    """
    Build the CRUD + search + delete-by-position router for a list screen.
    """
    router = APIRouter(prefix=f"/api/v1/{screen.name}", tags=[screen.name])
    row_type = screen.row_type or screen.record_type
    create_schema = screen.create_schema
    update_schema = screen.update_schema
    not_found = f"{screen.label} not found"

    @router.get(
        "/",
        response_model=ListEnvelope[row_type],  # type: ignore[valid-type]
        summary=f"List {screen.label}s",
        description=(
            f"List {screen.name} in insertion order. q filters by case-insensitive "
            "substring over the searchable text fields; an empty q lists everything."
        ),
    )
    def list_records(
        q: Optional[str] = Query(None, description="Search text"),
        ws: Workspace = Depends(get_workspace),
    ):
        search = q or None
        items = ListScreen(screen.store(ws), search or "").displayed
        return ListEnvelope[row_type](  # type: ignore[valid-type]
            items=[screen.to_row(r) for r in items],
            total=len(items),
            q=search,
        )

    @router.post(
        "/",
        response_model=row_type,
        status_code=status.HTTP_201_CREATED,
        summary=f"Create {screen.label}",
        responses={201: {"description": f"{screen.label} created"}},
    )
    def create_record(
        payload: create_schema,  # type: ignore[valid-type]
        response: Response,
        ws: Workspace = Depends(get_workspace),
    ):
        record = screen.record_type(**dict(payload))
        persisted_header(response, screen.store(ws).insert(record))
        return screen.to_row(record)

    @router.post(
        "/delete",
        response_model=DeleteOutcome,
        summary=f"Delete {screen.label}s by position",
        description=(
            "Delete records by their positions in the list as displayed with search text q. "
            "Positions outside the displayed list are ignored."
        ),
    )
    def delete_displayed(
        payload: DeletePositions,
        response: Response,
        ws: Workspace = Depends(get_workspace),
    ) -> DeleteOutcome:
        store = screen.store(ws)
        list_screen = ListScreen(store, payload.q or "")
        before = len(store)
        result = list_screen.delete(payload.positions)
        persisted_header(response, result)
        remaining = len(store)
        return DeleteOutcome(deleted=before - remaining, remaining=remaining, persisted=result.persisted)

    @router.get(
        "/{record_id}",
        response_model=row_type,
        summary=f"Get {screen.label}",
        responses={404: {"description": not_found}},
    )
    def get_record(record_id: UUID, ws: Workspace = Depends(get_workspace)):
        record = screen.store(ws).get(record_id)
        if record is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
        return screen.to_row(record)

    def _update(ws: Workspace, record_id: UUID, fields: Dict[str, Any], response: Response):
        store = screen.store(ws)
        result = store.update(record_id, lambda r: apply_fields(r, fields))
        if not result.changed:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
        persisted_header(response, result)
        return screen.to_row(store.get(record_id))

    @router.put(
        "/{record_id}",
        response_model=row_type,
        summary=f"Replace {screen.label}",
        description="Replace every editable field; omitted fields take their defaults.",
        responses={404: {"description": not_found}},
    )
    def put_record(
        record_id: UUID,
        payload: create_schema,  # type: ignore[valid-type]
        response: Response,
        ws: Workspace = Depends(get_workspace),
    ):
        return _update(ws, record_id, dict(payload), response)

    @router.patch(
        "/{record_id}",
        response_model=row_type,
        summary=f"Update {screen.label}",
        description="Change only the provided fields.",
        responses={404: {"description": not_found}},
    )
    def patch_record(
        record_id: UUID,
        payload: update_schema,  # type: ignore[valid-type]
        response: Response,
        ws: Workspace = Depends(get_workspace),
    ):
        fields = {name: getattr(payload, name) for name in payload.model_fields_set}
        return _update(ws, record_id, fields, response)

    @router.delete(
        "/{record_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary=f"Delete {screen.label}",
        responses={404: {"description": not_found}},
    )
    def delete_record(record_id: UUID, ws: Workspace = Depends(get_workspace)) -> Response:
        result = screen.store(ws).delete_ids([record_id])
        if not result.changed:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
        return Response(
            status_code=status.HTTP_204_NO_CONTENT,
            headers={"X-Persisted": "true" if result.persisted else "false"},
        )

    return router


def capture_row(capture: Capture) -> CaptureRow:
    return CaptureRow(**capture.model_dump(), icon=capture_icon(capture.kind))


NOTES = RecordScreen(
    name="notes",
    label="Note",
    record_type=Note,
    create_schema=NoteCreate,
    update_schema=NoteUpdate,
    store=attrgetter("notes"),
)

CAPTURES = RecordScreen(
    name="captures",
    label="Capture",
    record_type=Capture,
    create_schema=CaptureCreate,
    update_schema=CaptureUpdate,
    store=attrgetter("captures"),
    row_type=CaptureRow,
    to_row=capture_row,
)

WHITEBOARDS = RecordScreen(
    name="whiteboards",
    label="Whiteboard",
    record_type=Whiteboard,
    create_schema=WhiteboardCreate,
    update_schema=WhiteboardUpdate,
    store=attrgetter("whiteboards"),
)

notes_router = build_router(NOTES)
captures_router = build_router(CAPTURES)
whiteboards_router = build_router(WHITEBOARDS)
