"""Okeyo API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map OkeyoError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup, Anthropic client closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py (register_error_handlers)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.dependencies import close_anthropic_client
from app.api.error_handlers import register_error_handlers
from app.api.routes import (
    agent_chat, agent_config, agent_test, catalog, conversations, health,
    mock_chat, preorder,
)
from app.config import get_settings
from app.infrastructure.database import close_db, init_db
from app.infrastructure.observability import setup_logging

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
    logger.info("Okeyo API started")
    yield
    await close_anthropic_client()
    await close_db()
    logger.info("Okeyo API shutting down")


app = FastAPI(title="Okeyo API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(mock_chat.router)
app.include_router(agent_chat.router)
app.include_router(agent_config.router)
app.include_router(agent_test.router)
app.include_router(conversations.router)
app.include_router(catalog.router)
app.include_router(preorder.router)

register_error_handlers(app)
