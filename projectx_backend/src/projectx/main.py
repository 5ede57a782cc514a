import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .routers import calendar as calendar_router
from .routers import records as records_router
from .routers import todos as todos_router
from .settings import Settings, get_settings
from .workspace import Workspace, build_workspace

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "calendar", "description": "Day view over the calendar, gated by calendar access."},
    {"name": "notes", "description": "Searchable notes."},
    {"name": "captures", "description": "Quick text, photo and audio captures."},
    {"name": "whiteboards", "description": "Named drawings with opaque ink payloads."},
    {"name": "todos", "description": "Todo items with a completion flag."},
]


def _validation_error_response(errors: list) -> JSONResponse:
    """
    Return a consistent JSON structure for validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": jsonable_encoder(errors),
        },
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, workspace: Optional[Workspace] = None) -> FastAPI:
    """
    Build the FastAPI application around a workspace.

    The workspace is built from settings (and activated) unless one is given.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="ProjectX Backend",
        description="Calendar, notes, captures, whiteboards and todos kept in a local preference store.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    app.state.settings = settings
    app.state.workspace = workspace or build_workspace(settings)
    logger.info("Workspace ready (backend=%s)", settings.persistence_backend)

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Persisted"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _validation_error_response(exc.errors())

    # Records rebuilt from request data are validated again inside the handlers.
    @app.exception_handler(ValidationError)
    async def record_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _validation_error_response(exc.errors())

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(calendar_router.router)
    app.include_router(records_router.notes_router)
    app.include_router(records_router.captures_router)
    app.include_router(records_router.whiteboards_router)
    app.include_router(todos_router.router)
    return app


app = create_app()
