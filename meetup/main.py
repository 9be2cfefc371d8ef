"""Meetup API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map MeetupError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager
    - Exactly one GatheringLockRegistry per app, on app.state

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Lock registry created with the app (not in lifespan) so test clients that skip
      lifespan still serialize joins
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from meetup.api.error_handlers import register_error_handlers
from meetup.infrastructure.database import init_db
from meetup.infrastructure.observability import setup_logging
from meetup.config import get_settings
from meetup.services.gathering_locks import GatheringLockRegistry
from meetup.api.routes import (
    activities, chatrooms, gatherings, groups, health, locations, messages,
    users,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("Meetup API started")
    yield
    logger.info("Meetup API shutting down")


app = FastAPI(title="Meetup API", version="1.0.0", lifespan=lifespan)
app.state.gathering_locks = GatheringLockRegistry()

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(users.router)
app.include_router(locations.router)
app.include_router(activities.router)
app.include_router(groups.router)
app.include_router(gatherings.router)
app.include_router(messages.router)
app.include_router(chatrooms.router)

register_error_handlers(app)
