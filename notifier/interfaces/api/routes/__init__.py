from fastapi import FastAPI

from .notifications import router as notifications_router
from .topics import router as topics_router


def register_routes(app: FastAPI) -> None:
    """Registra todos los routers de la API en la aplicación FastAPI."""

    app.include_router(topics_router)
    app.include_router(notifications_router)
