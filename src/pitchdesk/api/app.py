from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pitchdesk.api.routes import router as api_router
from pitchdesk.api.schemas import ErrorResponse
from pitchdesk.config import get_settings
from pitchdesk.db.init import init_database
from pitchdesk.errors import (
    AccountUnreadable,
    ConfirmationRequired,
    DuplicateUsername,
    InvalidCredentials,
    NotLoggedIn,
    ValidationError,
)
from pitchdesk.logging_config import configure_logging

_ERROR_STATUS: list[tuple[type[Exception], int, str]] = [
    (DuplicateUsername, 409, "duplicate_username"),
    (InvalidCredentials, 401, "invalid_credentials"),
    (NotLoggedIn, 401, "not_logged_in"),
    (ConfirmationRequired, 409, "confirmation_required"),
    (ValidationError, 400, "validation_error"),
    (AccountUnreadable, 500, "account_unreadable"),
]


def _register_error_handlers(app: FastAPI) -> None:
    for exc_type, status_code, kind in _ERROR_STATUS:

        def handler(request: Request, exc: Exception, status_code=status_code, kind=kind) -> JSONResponse:
            body = ErrorResponse(detail=str(exc), kind=kind)
            return JSONResponse(status_code=status_code, content=body.model_dump())

        app.add_exception_handler(exc_type, handler)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def _startup() -> None:
        init_database()

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    _register_error_handlers(app)
    app.include_router(api_router)
    return app
