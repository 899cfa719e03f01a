"""ASGI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from notifier.config import get_settings
from notifier.infrastructure.database import engine, initialize_database
from notifier.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the tables on startup and release the connection pool on shutdown."""

    initialize_database()
    yield
    engine.dispose()


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""

    logging.basicConfig(level=get_settings().log_level.upper())

    app = FastAPI(title="Notifier", lifespan=lifespan)
    register_routes(app)
    return app


app = create_app()
