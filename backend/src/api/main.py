"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from .middleware import register_error_handlers  # noqa: E402
from .routes import (  # noqa: E402
    ai,
    auth,
    autosave,
    calendar,
    flashcards,
    folders,
    glossary,
    knowledge,
    mindmaps,
    notes,
    profile,
    search,
    study,
    system,
)
from ..services.autosave import get_autosave_registry  # noqa: E402
from ..services.config import get_config  # noqa: E402
from ..services.database import init_database  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the schema on startup; flush open autosave sessions on shutdown."""
    system.install_log_buffer()
    db_path = init_database()
    logger.info(f"Startup complete: database ready at {db_path}")
    yield
    logger.info("Shutting down: flushing autosave sessions")
    await get_autosave_registry().close_all()


app = FastAPI(
    title="Study Organizer API",
    description="Folders, Cornell notes, mind maps, flashcards and AI study tools",
    version="0.1.0",
    lifespan=lifespan,
)

config = get_config()

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(config.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(auth.router)
app.include_router(folders.router)
app.include_router(notes.router)
app.include_router(mindmaps.router)
app.include_router(flashcards.router)
app.include_router(glossary.router)
app.include_router(calendar.router)
app.include_router(knowledge.router)
app.include_router(profile.router)
app.include_router(search.router)
app.include_router(study.router)
app.include_router(ai.router)
app.include_router(autosave.router)
app.include_router(system.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


__all__ = ["app"]
