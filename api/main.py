"""FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import router, worker_router
from config.settings import settings
from models.data import (
    InvalidPodcastError,
    PodcastError,
    PodcastNotFoundError,
    PreconditionFailedError,
)
from utils.helpers import get_logger

log = get_logger(__name__)

_STATUS_CODES: list[tuple[type[PodcastError], int]] = [
    (InvalidPodcastError, 422),
    (PodcastNotFoundError, 404),
    (PreconditionFailedError, 409),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    log.info("podcast service starting up")
    log.info("Note length bounds: %d-%d", settings.note_min_chars, settings.note_max_chars)
    yield
    log.info("podcast service shutting down")


app = FastAPI(
    title="notecast",
    description="Podcast lifecycle and listing API for note-to-podcast generation",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PodcastError)
async def podcast_error_handler(request: Request, exc: PodcastError) -> JSONResponse:
    """Map domain errors to HTTP status codes."""
    status_code = 400
    for error_type, code in _STATUS_CODES:
        if isinstance(exc, error_type):
            status_code = code
            break
    log.info("%s %s -> %d: %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Include API routes
app.include_router(router, prefix="/api/v1")
app.include_router(worker_router, prefix="/api/v1")


# Health check
@app.get("/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
