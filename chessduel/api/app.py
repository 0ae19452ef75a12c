"""FastAPI application factory"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import Engine

from chessduel.api.routes import router
from chessduel.core.config import Settings, get_settings
from chessduel.core.exceptions import (
    GameError,
    GameStateError,
    IllegalMoveError,
    InvalidFENError,
    InvalidRequestError,
    NotFoundError,
    RepositoryError,
)
from chessduel.db.database import build_engine, build_sessionmaker
from chessduel.services.locks import SessionLocks

logger = logging.getLogger(__name__)

# Most specific first: the first matching class decides the status code.
ERROR_STATUS_CODES: list[tuple[type[GameError], int]] = [
    (InvalidRequestError, status.HTTP_400_BAD_REQUEST),
    (InvalidFENError, status.HTTP_400_BAD_REQUEST),
    (IllegalMoveError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (GameStateError, status.HTTP_409_CONFLICT),
    (RepositoryError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def status_code_for(error: GameError) -> int:
    return next(
        (code for error_type, code in ERROR_STATUS_CODES if isinstance(error, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )


async def handle_game_error(request: Request, error: GameError) -> JSONResponse:
    """Every rejected request answers with a message and a reason code the client can act on."""
    code = status_code_for(error)
    if code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        message = "Failed to process request."
    else:
        message = str(error)
        logger.info("%s %s rejected: %s", request.method, request.url.path, error)
    return JSONResponse(
        status_code=code, content={"error": message, "reason": error.reason}
    )


async def handle_validation_error(
    request: Request, error: RequestValidationError
) -> JSONResponse:
    """Missing or mistyped fields: same answer as any other invalid request."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": str(error.errors()), "reason": InvalidRequestError.reason},
    )


def create_app(
    settings: Optional[Settings] = None, engine: Optional[Engine] = None
) -> FastAPI:
    settings = settings if settings is not None else get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="chessduel")
    engine = engine if engine is not None else build_engine(settings)
    app.state.settings = settings
    app.state.session_factory = build_sessionmaker(engine)
    app.state.session_locks = SessionLocks()

    app.add_exception_handler(GameError, handle_game_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.include_router(router)
    return app
