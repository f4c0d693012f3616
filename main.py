import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import legacy
import routes
from config import DEFAULT_SECRET_KEY, Settings, settings as default_settings
from database import Database
from errors import AppError, Internal
from logger import configure_logging, get_logger

VERSION = "3.0.0"

configure_logging()
logger = get_logger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


# ----------------------
# Lifespan
# ----------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if settings.is_production and settings.secret_key == DEFAULT_SECRET_KEY:
        logger.error("Refusing to start: SECRET_KEY is not set in production")
        raise RuntimeError("SECRET_KEY must be set in production")

    owned = app.state.database is None
    if owned:
        app.state.database = Database.connect(settings)

    database: Database = app.state.database
    try:
        database.ensure_indexes()
    except PyMongoError:
        logger.exception("MongoDB connection error", database=database.name)
        if owned:
            database.close()
        raise

    logger.info(
        "Orbit Pomodoro API started",
        version=VERSION,
        environment=settings.environment,
        allowed_origins=settings.allowed_origins,
    )
    yield
    logger.info("Shutting down")
    if owned:
        database.close()


# ----------------------
# Error handlers
# ----------------------
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return error_response(400, message)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Known paths hit with the wrong method fall through to the catch-all too
    if exc.status_code in (404, 405):
        return error_response(404, "Route not found")
    return error_response(exc.status_code, str(exc.detail))


async def database_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    logger.error("Database operation failed", error=str(exc), error_type=type(exc).__name__)
    return error_response(500, "Database operation failed")


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    settings: Settings = request.app.state.settings
    logger.error("Unhandled error", error=str(exc), exc_info=exc)
    message = str(exc) if settings.debug and str(exc) else Internal.default_message
    return error_response(500, message)


# ----------------------
# App factory
# ----------------------
def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or default_settings
    app = FastAPI(title="Orbit Pomodoro API", version=VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.started_at = time.monotonic()

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next: Any) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception(
                "HTTP Request Failed",
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                error=str(exc),
            )
            raise

        logger.info(
            "HTTP Request",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(PyMongoError, database_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/")
    def read_root(request: Request):
        return routes.envelope({
            "status": "Orbit Pomodoro API is running",
            "version": VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": request.app.state.settings.environment,
        })

    @app.get("/health")
    def health(request: Request):
        database: Optional[Database] = request.app.state.database
        connected = database is not None and database.ping()
        return routes.envelope({
            "status": "OK",
            "mongodb": "Connected" if connected else "Disconnected",
            "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        })

    app.include_router(routes.router)
    app.include_router(legacy.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=default_settings.port)
