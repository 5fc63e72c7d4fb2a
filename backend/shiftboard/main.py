import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from .api import applications as applications_api
from .api import audit as audit_api
from .api import pipeline as pipeline_api
from .config import FRONTEND_ORIGINS, LOG_LEVEL
from .database import engine, init_db
from .utils.error_handlers import AppError, create_error_response, get_error_message

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Shiftboard Hiring Pipeline")

app.include_router(applications_api.router)
app.include_router(pipeline_api.router)
app.include_router(audit_api.router)

logger = logging.getLogger(__name__)


def register_exception_handlers(target: FastAPI) -> None:
    """Shared by the app and by test apps that mount the routers directly."""

    @target.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        """Domain errors raised by the services."""
        if exc.status_code >= 500:
            logger.error("AppError %s: %s", type(exc).__name__, exc.message)
        else:
            logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        return create_error_response(exc.status_code, exc.message, exc.details)

    @target.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTPException with user-friendly messages."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": exc.detail,
                "status_code": exc.status_code,
            },
        )

    @target.exception_handler(OperationalError)
    async def sqlalchemy_operational_error_handler(request: Request, exc: OperationalError):
        """Handle database operational errors."""
        logger.exception("Database OperationalError: %s", exc)
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "error": get_error_message("database_error"),
            },
        )

    @target.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
        """Handle general database errors."""
        logger.exception("Database SQLAlchemyError: %s", exc)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": get_error_message("database_error"),
            },
        )

    @target.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Handle ValueError with user-friendly message."""
        logger.warning("ValueError: %s", exc)
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": str(exc) or get_error_message("validation_error"),
            },
        )

    @target.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors globally."""
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": get_error_message("server_error"),
            },
        )


register_exception_handlers(app)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "Backend running",
        "service": "Shiftboard Hiring Pipeline"
    }


_default_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=[*_default_origins, *FRONTEND_ORIGINS],
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    try:
        init_db()
        app.state.db_init_error = None
    except Exception as e:
        logger.exception("Database initialisation failed: %s", e)
        app.state.db_init_error = str(e)


@app.get("/db/health")
def db_health():
    if getattr(app.state, "db_init_error", None):
        raise HTTPException(
            status_code=503,
            detail=f"DB init failed: {app.state.db_init_error}",
        )

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail=f"DB connection failed: {e}",
        )

    return {"status": "ok"}
