"""
hackjudge/main.py
FastAPI application factory.

Run with:
    uvicorn hackjudge.main:app --reload
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hackjudge import __version__
from hackjudge.client import JudgingClient, create_ledger
from hackjudge.clock import Clock, utcnow
from hackjudge.config.settings import Settings
from hackjudge.database import Database
from hackjudge.errors import ErrorCode, JudgingError, get_error_summary
from hackjudge.logging_config import setup_logging
from hackjudge.routes import hackathons, ledger

logger = logging.getLogger(__name__)

DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8000",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:8000",
]


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    clock: Clock = utcnow
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Runtime settings (loaded from the environment when omitted)
        database: Pre-initialised Database to share, e.g. with a test fixture
        clock: Source of "now" for window checks

    Returns:
        Configured FastAPI app
    """
    settings = settings or Settings.from_env()
    database = database or Database(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting hackjudge API...")
        logger.info(f"Settings: {settings.as_dict()}")
        try:
            await database.init()
        except Exception as e:
            logger.error(f"Failed to connect to database: {str(e)}")
            raise

        yield

        logger.info("Shutting down hackjudge API...")
        await database.close()

    app = FastAPI(
        title="hackjudge",
        description="Hackathon judging core with encrypted score aggregation",
        version=__version__,
        docs_url="/docs" if settings.feature_http_docs else None,
        redoc_url="/redoc" if settings.feature_http_docs else None,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.database = database
    app.state.client = JudgingClient(create_ledger(settings, database, clock=clock))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=DEFAULT_ORIGINS + settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(JudgingError)
    async def judging_error_handler(request: Request, exc: JudgingError):
        logger.warning(f"Judging error on {request.url.path}: {exc.code} - {exc.message}")
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

        error_details = []
        for error in exc.errors():
            error_details.append({
                "loc": error.get("loc"),
                "msg": error.get("msg"),
                "type": error.get("type")
            })

        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": "Validation",
                "message": "Request validation failed",
                "code": ErrorCode.VALIDATION_ERROR,
                "kind": "shape",
                "details": error_details
            }
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(f"HTTP exception on {request.url.path}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": "Error",
                "message": str(exc.detail),
                "code": ErrorCode.INTERNAL_ERROR if exc.status_code >= 500 else ErrorCode.VALIDATION_ERROR
            }
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        log_id = str(uuid.uuid4())[:8]
        logger.error(f"[{log_id}] Unhandled exception on {request.url.path}: {type(exc).__name__}: {str(exc)}")

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": "Internal Error",
                "message": "An unexpected error occurred. Please try again later.",
                "code": ErrorCode.INTERNAL_ERROR,
                "details": {"log_id": log_id}
            }
        )

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {
            "status": "healthy",
            "environment": settings.environment,
            "version": __version__
        }

    @app.get("/errors", tags=["Health"])
    async def error_summary():
        return get_error_summary()

    app.include_router(hackathons.router)
    app.include_router(ledger.router)

    return app


def _create_default_app() -> FastAPI:
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    return create_app(settings)


app = _create_default_app()
