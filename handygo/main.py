"""
FastAPI application bootstrap with: \n
- Lifespan-managed table creation and the session sweeper \n
- CORS configured for the frontend origins (credentials allowed for the session cookie) \n
- Exception handlers mapping service errors to `{"error": ...}` responses \n

Environment contract (from `settings`): \n
- CREATE_TABLES_ON_STARTUP: create missing tables before serving. \n
- SESSION_SWEEP_INTERVAL_SECONDS: how often expired sessions are purged. \n
- FRONTEND_URLS: allowed CORS origins. \n
- LOG_LEVEL: root log level. \n
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from handygo.api.exceptions import HandyGoError
from handygo.api.fast_api import router
from handygo.database.config.config import settings
from handygo.database.config.connection_engine import create_tables
from handygo.registries import session_registry
from handygo.registries.sessions import SessionSweeper

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger("uvicorn")
"""Logger instance for capturing and emitting Uvicorn server logs."""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    App lifespan manager.

    Notes
    ------------
    - On startup (before yielding):
        * If CREATE_TABLES_ON_STARTUP, create missing tables.
        * Start the background sweep of expired sessions.
    - On shutdown (after yielding):
        * Cancel the sweeper.
    """
    if settings.CREATE_TABLES_ON_STARTUP:
        create_tables()
        logger.info("Database tables ready.")

    sweeper = SessionSweeper(session_registry, settings.SESSION_SWEEP_INTERVAL_SECONDS)
    sweeper.start()
    app.state.session_sweeper = sweeper
    try:
        yield
    finally:
        await sweeper.stop()
        logger.info("Session sweeper stopped.")


# Instantiate the FastAPI app with lifespan handler
app = FastAPI(title="HandyGo API", lifespan=lifespan)
"""Instatiates a FastAPI application object
    The lifespan=lifespan argument registers a custom startup/shutdown lifecycle manager that:\n
        - On startup: creates tables (if enabled) and starts the session sweeper.\n
        - On shutdown: stops the session sweeper. \n
"""


# -----------------------
# CORS configuration
# -----------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_URLS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------
# Error mapping
# -----------------------
@app.exception_handler(HandyGoError)
async def handygo_error_handler(request: Request, exc: HandyGoError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# -----------------------
# API routes
# -----------------------
app.include_router(router)
