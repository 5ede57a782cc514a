from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ..deps import get_workspace, persisted_header
from ..models import Event, matches_search
from ..schemas import CalendarDay, EventCreate
from ..screens import CalendarScreen
from ..workspace import Workspace

router = APIRouter(
    prefix="/api/v1/calendar",
    tags=["calendar"],
)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=CalendarDay,
    summary="Day Events",
    description=(
        "Request calendar access and list the events overlapping the given day "
        "(today by default). When access is denied the list is empty and access is 'denied'."
    ),
)
def get_day(
    day: Optional[date] = Query(None, description="Day to show, YYYY-MM-DD"),
    q: Optional[str] = Query(None, description="Search text for event titles"),
    ws: Workspace = Depends(get_workspace),
) -> CalendarDay:
    screen = CalendarScreen(ws.calendar, day)
    access = screen.activate()
    search = q or None
    items = [e for e in screen.events if matches_search(e, search)]
    return CalendarDay(items=items, total=len(items), q=search, access=access.status, day=screen.selected_date)


# PUBLIC_INTERFACE
@router.post(
    "/events",
    response_model=Event,
    status_code=status.HTTP_201_CREATED,
    summary="Add Event",
    responses={
        201: {"description": "Event added"},
        403: {"description": "Calendar access denied"},
    },
)
def add_event(payload: EventCreate, response: Response, ws: Workspace = Depends(get_workspace)) -> Event:
    """
    Add an event to the calendar. Fails with 403 when calendar access is denied.
    """
    event = Event(**dict(payload))
    screen = CalendarScreen(ws.calendar, event.start.date())
    screen.activate()
    result = screen.add_event(event)
    if not result.granted or result.value is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=result.detail or "Calendar access denied")
    persisted_header(response, result.value)
    return event
