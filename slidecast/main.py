"""Slidecast Server - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from slidecast.config import settings
from slidecast.database import init_db

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    init_db()
    logger.info("Images served from %s", settings.image_dir)
    logger.info("Database file: %s", settings.db_path)
    yield


app = FastAPI(
    title="Slidecast",
    description="Self-hosted photo slideshow and gallery manager",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS - allow all origins for local network usage
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Register API routers ---
from slidecast.api.images import router as images_router  # noqa: E402
from slidecast.api.tags import router as tags_router  # noqa: E402
from slidecast.api.playlists import router as playlists_router  # noqa: E402
from slidecast.api.slideshow import router as slideshow_router  # noqa: E402
from slidecast.api.upload import router as upload_router  # noqa: E402

API_PREFIX = "/api"

app.include_router(images_router, prefix=API_PREFIX)
app.include_router(tags_router, prefix=API_PREFIX)
app.include_router(playlists_router, prefix=API_PREFIX)
app.include_router(slideshow_router, prefix=API_PREFIX)
app.include_router(upload_router)


# --- WebSocket endpoint ---
from slidecast.ws.hub import manager, websocket_hub  # noqa: E402


@app.websocket("/ws")
async def ws_endpoint(ws: WebSocket):
    await websocket_hub(ws)


@app.get("/api/health")
def health():
    return {
        "name": settings.server_name,
        "version": "0.1.0",
        "status": "ok",
        "clients": manager.connection_count,
    }


# --- Image files ---
app.mount("/images", StaticFiles(directory=str(settings.image_dir)), name="images")
app.mount("/thumbnails", StaticFiles(directory=str(settings.thumbnail_dir)), name="thumbnails")
