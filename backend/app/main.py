import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError

from app.core.config import settings
from app.core.errors import DomainError, InvalidInputError, format_validation_errors
from app.db.base import Database
from app.routes import api_router

VERSION = "0.1.0"

logger = logging.getLogger(__name__)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    content = {"detail": exc.message}
    if isinstance(exc, InvalidInputError):
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "errors": format_validation_errors(exc.errors())},
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    # A concurrent write won the race on a unique index
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Resource conflicts with an existing record"},
    )


def create_app(database: Database | None = None, create_tables: bool = False) -> FastAPI:
    """Build the API. `database` defaults to one built from settings.DATABASE_URL."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database(settings.DATABASE_URL, pool_pre_ping=True)
        app.state.db = db
        if create_tables:
            await db.create_all()
        logger.info("%s API started", settings.PROJECT_NAME)
        yield
        await db.dispose()

    app = FastAPI(
        title="QuickMate API",
        description="Service marketplace admin: categories, subcategories and commission rules",
        version=VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)

    app.include_router(api_router)

    # Serve uploaded category icons
    uploads_dir = Path(settings.UPLOAD_DIR)
    uploads_dir.mkdir(parents=True, exist_ok=True)
    app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=uploads_dir), name="uploads")

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "version": VERSION}

    return app


app = create_app()
