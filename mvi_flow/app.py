"""Application factory for the DevbrainAI MVI FastAPI backend."""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import LOCALHOST_ORIGIN_REGEX, Settings, get_settings
from .generator import MVIGenerator
from .routers import assistant, library, mvi, system

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail) if exc.detail else "HTTP error")


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _error(400, message)


def _generic_exception_handler(settings: Settings):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, str(exc) if settings.debug else "Internal server error")

    return handler


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Render every error as ``{"success": false, "error": ...}``."""

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler(settings))


def create_app(generator: Optional[MVIGenerator] = None) -> FastAPI:
    """Create and configure a FastAPI application instance."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="DevbrainAI MVI Generator",
        version=__version__,
        description="Conversational backend that turns a business idea into an exportable MVI context package.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_origin_regex=LOCALHOST_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app, settings)

    app.state.settings = settings
    app.state.generator = generator if generator is not None else MVIGenerator()
    app.include_router(mvi.router)
    app.include_router(library.router)
    app.include_router(assistant.router)
    app.include_router(system.router)
    logger.debug("Allowed CORS origins: %s", ", ".join(settings.allowed_origins))
    return app


app = create_app()
