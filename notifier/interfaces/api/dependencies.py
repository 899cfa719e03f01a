"""FastAPI dependency utilities."""

from functools import lru_cache

from fastapi import BackgroundTasks, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from notifier.application.use_cases.notifications import DispatchService
from notifier.config import Settings, get_settings
from notifier.domain.entities import Identity
from notifier.infrastructure.database import get_db
from notifier.infrastructure.push import PushGateway, build_push_gateway
from notifier.infrastructure.repositories import (
    DeviceEndpointRepository,
    NotificationRepository,
)
from notifier.infrastructure.security import identity_from_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def get_current_identity(token: str = Depends(oauth2_scheme)) -> Identity:
    """Return the verified caller carried by the bearer token."""

    try:
        return identity_from_token(token)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciales inválidas",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    """Ensure the authenticated caller has administrator privileges."""

    if not identity.is_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No autorizado",
        )
    return identity


@lru_cache
def get_push_gateway() -> PushGateway:
    """Return the process-wide push gateway built from the settings."""

    return build_push_gateway(get_settings())


def get_dispatch_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    gateway: PushGateway = Depends(get_push_gateway),
    settings: Settings = Depends(get_settings),
) -> DispatchService:
    """Wire a :class:`DispatchService` whose fan-out runs after the response."""

    def schedule(function, *args):
        background_tasks.add_task(_run_and_release, db, function, *args)

    return DispatchService(
        NotificationRepository(db),
        DeviceEndpointRepository(db),
        gateway,
        schedule=schedule,
        prune_unregistered=settings.push_prune_unregistered_tokens,
    )


def _run_and_release(db: Session, function, *args) -> None:
    # Background work reuses the request session; release it once done.
    try:
        function(*args)
    finally:
        db.close()
