"""
FastAPI application for the lesson games engine
"""

import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from lessongames import __version__
from lessongames.api.games import get_game_service
from lessongames.api.games import router as games_router
from lessongames.config import settings
from lessongames.utils.logger import get_logger, setup_logging

setup_logging(level=settings.log_level, log_file=settings.log_file)

logger = get_logger(__name__)

app = FastAPI(
    title="Lesson Games",
    description="Author, store and read fill-in-the-blank, matching and multiple choice games",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next: Callable) -> Response:
    """Log every request with a short correlation id and its duration"""
    request_id = str(uuid.uuid4())[:8]
    start_time = time.time()
    request.state.request_id = request_id

    logger.info(f"[API] {request_id} started: {request.method} {request.url.path}")
    try:
        response = await call_next(request)
    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"[API] {request_id} failed: {request.method} {request.url.path} "
            f"({duration_ms:.2f}ms): {e}",
            exc_info=True,
        )
        raise

    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        f"[API] {request_id} completed: {request.method} {request.url.path} "
        f"-> {response.status_code} ({duration_ms:.2f}ms)"
    )
    return response


app.include_router(games_router, prefix="/api", tags=["games"])


@app.on_event("startup")
async def startup_event():
    """Open the database on startup so schema problems surface early"""
    logger.info("=" * 60)
    logger.info("APPLICATION STARTUP")
    get_game_service()
    logger.info(f"  - Database: {settings.database_url}")
    logger.info(f"  - Max rounds: {settings.max_rounds}")
    logger.info(f"  - Debug: {settings.debug}")
    logger.info("=" * 60)


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "version": __version__}


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on {settings.host}:{settings.port}")
    uvicorn.run(
        "lessongames.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower() if settings.log_level != "VERBOSE" else "debug",
    )
