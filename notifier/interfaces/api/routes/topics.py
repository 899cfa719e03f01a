"""Rutas para difusión por temas y suscripción de dispositivos."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from notifier.application.use_cases.notifications import DispatchService
from notifier.domain.entities import Identity
from notifier.domain.errors import GatewayError, StoreError, ValidationError
from notifier.interfaces.api.dependencies import (
    get_current_identity,
    get_dispatch_service,
    require_admin,
)
from notifier.interfaces.api.schemas import (
    MessageRead,
    TopicMessageCreate,
    TopicSubscriptionRead,
)

router = APIRouter(prefix="/notifications/topics", tags=["notifications"])
logger = logging.getLogger(__name__)


def _translate(exc: Exception, detail: str) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, GatewayError):
        logger.warning("%s: %s", detail, exc)
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)
    logger.error("%s: %s", detail, exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.post("/{topic}/send", response_model=MessageRead, status_code=status.HTTP_202_ACCEPTED)
def broadcast_to_topic(
    topic: str,
    message_in: TopicMessageCreate,
    _: Identity = Depends(require_admin),
    service: DispatchService = Depends(get_dispatch_service),
):
    """Difunde un mensaje a todos los dispositivos suscritos al tema."""

    try:
        service.broadcast_to_topic(topic, message_in.title, message_in.body, message_in.data)
    except (ValidationError, GatewayError) as exc:
        raise _translate(exc, "Error al difundir el mensaje") from exc
    return MessageRead(message=f"Mensaje enviado al tema {topic}")


@router.post("/{topic}/subscribe", response_model=TopicSubscriptionRead)
def subscribe_to_topic(
    topic: str,
    identity: Identity = Depends(get_current_identity),
    service: DispatchService = Depends(get_dispatch_service),
):
    """Suscribe todos los dispositivos activos del usuario al tema."""

    try:
        report = service.subscribe_user_to_topic(identity.user_id, topic)
    except (ValidationError, GatewayError, StoreError) as exc:
        raise _translate(exc, "Error al suscribir los dispositivos") from exc
    if report is None:
        return TopicSubscriptionRead(topic=topic, success_count=0, failure_count=0)
    return TopicSubscriptionRead(
        topic=report.topic,
        success_count=report.success_count,
        failure_count=report.failure_count,
    )


@router.delete("/{topic}/subscribe", response_model=TopicSubscriptionRead)
def unsubscribe_from_topic(
    topic: str,
    identity: Identity = Depends(get_current_identity),
    service: DispatchService = Depends(get_dispatch_service),
):
    """Retira todos los dispositivos activos del usuario del tema."""

    try:
        report = service.unsubscribe_user_from_topic(identity.user_id, topic)
    except (ValidationError, GatewayError, StoreError) as exc:
        raise _translate(exc, "Error al retirar los dispositivos del tema") from exc
    if report is None:
        return TopicSubscriptionRead(topic=topic, success_count=0, failure_count=0)
    return TopicSubscriptionRead(
        topic=report.topic,
        success_count=report.success_count,
        failure_count=report.failure_count,
    )
