"""
UI Blocks FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend import db
from backend.config import settings
from backend.routes import blocks as block_routes
from backend.routes import preview as preview_routes
from backend.routes import ws as ws_routes

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Opens the database pool on startup and closes it on shutdown.
    """
    await db.init_pool()
    yield
    await db.close_pool()


app = FastAPI(
    title="UI Blocks",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

# Register routes
app.include_router(block_routes.router)
app.include_router(preview_routes.router)
app.include_router(ws_routes.router)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    """Anything a route didn't turn into an HTTPException."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": str(exc) or type(exc).__name__})


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
