import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401  registers tables on Base.metadata
from .config import Settings, settings as default_settings
from .database import Base, create_db_engine, create_session_factory
from .routers import posts, tags, users

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        {"code": status_code, "message": message},
        status_code=status_code,
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return _error(400, "Invalid input")


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled application error", exc_info=exc)
    return _error(500, "Internal server error")


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """Build the application around an explicit database engine.

    The engine is created once here and lives for as long as the app;
    tests pass their own engine instead of the configured one.
    """
    settings = settings or default_settings
    logging.basicConfig(level=settings.log_level.upper())

    owns_engine = engine is None
    if owns_engine:
        engine = create_db_engine(settings.database_url, echo=settings.sql_echo)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create missing tables on startup so the app is immediately usable.
        Base.metadata.create_all(bind=engine)
        logger.info("%s started, serving %s", settings.app_name, settings.api_prefix)
        yield
        if owns_engine:
            engine.dispose()
        logger.info("%s stopped", settings.app_name)

    app = FastAPI(
        title=settings.app_name,
        description="Users, their posts and post tags over a relational store.",
        version="1.0.0",
        docs_url="/swagger",
        lifespan=lifespan,
    )
    app.state.session_factory = create_session_factory(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(users.router, prefix=settings.api_prefix)
    app.include_router(posts.router, prefix=settings.api_prefix)
    app.include_router(tags.router, prefix=settings.api_prefix)

    @app.get("/", tags=["health"])
    def read_root():
        return {"message": f"{settings.app_name} is up"}

    @app.get("/swagger/index.html", include_in_schema=False)
    def swagger_index():
        return RedirectResponse(url="/swagger")

    return app


app = create_app()
