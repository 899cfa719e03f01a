"""Rutas para consultar, marcar y enviar notificaciones push."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from notifier.application.use_cases.notifications import DispatchService
from notifier.config import Settings, get_settings
from notifier.domain.entities import Identity, parse_int
from notifier.domain.errors import (
    ForbiddenError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from notifier.interfaces.api.dependencies import (
    get_current_identity,
    get_dispatch_service,
    require_admin,
)
from notifier.interfaces.api.schemas import (
    DeviceTokenRead,
    DeviceTokenRegister,
    DeviceTokenUnregister,
    MessageRead,
    NotificationCreate,
    NotificationListRead,
    NotificationRead,
    UnreadCountRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)

_NOT_FOUND_DETAIL = "Notificación no encontrada"


def _raise_for_lookup(exc: Exception, settings: Settings) -> None:
    """Translate a failed single-notification operation into an HTTP error."""

    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND_DETAIL) from exc
    if isinstance(exc, ForbiddenError):
        if settings.disclose_notification_ownership:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No tiene acceso a esta notificación",
            ) from exc
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND_DETAIL) from exc
    raise _store_failure(exc, "Error al procesar la notificación")


def _store_failure(exc: Exception, detail: str) -> HTTPException:
    logger.error("%s: %s", detail, exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.post("/register-token", response_model=DeviceTokenRead)
def register_token(
    token_in: DeviceTokenRegister,
    identity: Identity = Depends(get_current_identity),
    service: DispatchService = Depends(get_dispatch_service),
):
    """Registra (o reasigna) el token push del dispositivo del usuario autenticado."""

    try:
        endpoint = service.register_token(
            identity.user_id, token_in.token, token_in.device_type, token_in.device_id
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StoreError as exc:
        raise _store_failure(exc, "Error al registrar el token") from exc
    return DeviceTokenRead.model_validate(endpoint)


@router.delete("/unregister-token", response_model=MessageRead)
def unregister_token(
    token_in: DeviceTokenUnregister = Body(...),
    _: Identity = Depends(get_current_identity),
    service: DispatchService = Depends(get_dispatch_service),
):
    """Desactiva un token cuando el usuario cierra sesión o desinstala la aplicación."""

    try:
        service.unregister_token(token_in.token)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Token FCM no encontrado"
        ) from exc
    except StoreError as exc:
        raise _store_failure(exc, "Error al desregistrar el token") from exc
    return MessageRead(message="Token desregistrado exitosamente")


@router.get("", response_model=NotificationListRead)
def list_notifications(
    page: str | None = Query(None, description="Número de página (por defecto: 1)"),
    limit: str | None = Query(
        None, description="Elementos por página (por defecto: 20, máximo: 100)"
    ),
    identity: Identity = Depends(get_current_identity),
    service: DispatchService = Depends(get_dispatch_service),
):
    """Devuelve las notificaciones del usuario autenticado, las más recientes primero.

    Valores de ``page`` o ``limit`` no numéricos o fuera de rango se ignoran y se
    usan los valores por defecto.
    """

    try:
        result = service.list_for_user(
            identity.user_id, parse_int(page), parse_int(limit), base_path=router.prefix
        )
    except StoreError as exc:
        raise _store_failure(exc, "Error al obtener notificaciones") from exc
    return NotificationListRead.model_validate(result)


@router.get("/unread-count", response_model=UnreadCountRead)
def unread_count(
    identity: Identity = Depends(get_current_identity),
    service: DispatchService = Depends(get_dispatch_service),
):
    """Devuelve el número de notificaciones sin leer, útil para los contadores."""

    try:
        count = service.unread_count(identity.user_id)
    except StoreError as exc:
        raise _store_failure(exc, "Error al obtener contador de notificaciones") from exc
    return UnreadCountRead(count=count)


@router.put("/read-all", response_model=MessageRead)
def mark_all_as_read(
    identity: Identity = Depends(get_current_identity),
    service: DispatchService = Depends(get_dispatch_service),
):
    """Marca como leídas todas las notificaciones pendientes del usuario."""

    try:
        updated = service.mark_all_read(identity.user_id)
    except StoreError as exc:
        raise _store_failure(exc, "Error al marcar notificaciones como leídas") from exc
    return MessageRead(message="Todas las notificaciones marcadas como leídas", updated=updated)


@router.post("/send", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def send_notification(
    notification_in: NotificationCreate,
    _: Identity = Depends(require_admin),
    service: DispatchService = Depends(get_dispatch_service),
):
    """Guarda la notificación y la envía a todos los dispositivos activos del usuario."""

    try:
        notification = service.create_and_send(
            notification_in.user_id,
            notification_in.title,
            notification_in.body,
            notification_in.notification_type,
            notification_in.data,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StoreError as exc:
        raise _store_failure(exc, "Error al enviar notificación") from exc
    return NotificationRead.model_validate(notification)


@router.get("/{notification_id}", response_model=NotificationRead)
def read_notification(
    notification_id: UUID,
    identity: Identity = Depends(get_current_identity),
    service: DispatchService = Depends(get_dispatch_service),
    settings: Settings = Depends(get_settings),
):
    """Obtiene una notificación propia."""

    try:
        notification = service.get(notification_id, identity.user_id)
    except (NotFoundError, ForbiddenError, StoreError) as exc:
        _raise_for_lookup(exc, settings)
    return NotificationRead.model_validate(notification)


@router.put("/{notification_id}/read", response_model=MessageRead)
def mark_as_read(
    notification_id: UUID,
    identity: Identity = Depends(get_current_identity),
    service: DispatchService = Depends(get_dispatch_service),
    settings: Settings = Depends(get_settings),
):
    """Marca una notificación propia como leída."""

    try:
        service.mark_read(notification_id, identity.user_id)
    except (NotFoundError, ForbiddenError, StoreError) as exc:
        _raise_for_lookup(exc, settings)
    return MessageRead(message="Notificación marcada como leída")


@router.delete("/{notification_id}", response_model=MessageRead)
def delete_notification(
    notification_id: UUID,
    identity: Identity = Depends(get_current_identity),
    service: DispatchService = Depends(get_dispatch_service),
    settings: Settings = Depends(get_settings),
):
    """Elimina definitivamente una notificación propia."""

    try:
        service.delete(notification_id, identity.user_id)
    except (NotFoundError, ForbiddenError, StoreError) as exc:
        _raise_for_lookup(exc, settings)
    return MessageRead(message="Notificación eliminada exitosamente")
