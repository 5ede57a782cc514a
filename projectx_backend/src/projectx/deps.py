from __future__ import annotations

from fastapi import Request, Response

from .store import MutationResult
from .workspace import Workspace


# PUBLIC_INTERFACE
def get_workspace(request: Request) -> Workspace:
    """Dependency returning the workspace owned by the running app."""
    return request.app.state.workspace


def persisted_header(response: Response, result: MutationResult) -> None:
    """Report on the response whether the mutation reached durable storage."""
    response.headers["X-Persisted"] = "true" if result.persisted else "false"
