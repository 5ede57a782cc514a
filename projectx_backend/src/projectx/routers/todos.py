from __future__ import annotations

from operator import attrgetter
from uuid import UUID

from fastapi import Depends, HTTPException, Response, status

from ..deps import get_workspace, persisted_header
from ..models import TodoItem, toggle_completed
from ..schemas import TodoCreate, TodoUpdate
from ..workspace import Workspace
from .records import RecordScreen, build_router

TODOS = RecordScreen(
    name="todos",
    label="Todo",
    record_type=TodoItem,
    create_schema=TodoCreate,
    update_schema=TodoUpdate,
    store=attrgetter("todos"),
)

router = build_router(TODOS)


# PUBLIC_INTERFACE
@router.post(
    "/{todo_id}/toggle",
    response_model=TodoItem,
    summary="Toggle Todo",
    description="Flip the completed flag of a Todo item.",
    responses={
        200: {"description": "Todo toggled"},
        404: {"description": "Todo not found"},
    },
)
def toggle_todo(todo_id: UUID, response: Response, ws: Workspace = Depends(get_workspace)) -> TodoItem:
    """
    Toggle a Todo between open and completed.
    """
    result = ws.todos.update(todo_id, toggle_completed)
    if not result.changed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    persisted_header(response, result)
    return ws.todos.get(todo_id)  # type: ignore[return-value]
