"""Create-and-send orchestration for user notifications.

The service persists the durable record first and only then fans the message
out to the user's active devices. Delivery is best effort: once the record is
stored nothing that happens during fan-out can fail the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any
from uuid import UUID

from notifier.domain.entities import (
    DeviceClass,
    DeviceEndpoint,
    Notification,
    NotificationCategory,
    NotificationPage,
    build_pagination,
    normalize_limit,
    normalize_page,
)
from notifier.domain.errors import (
    ForbiddenError,
    GatewayError,
    NotFoundError,
    NotificationServiceError,
    ValidationError,
)
from notifier.infrastructure.push import (
    PushGateway,
    TopicSubscriptionReport,
    to_string_map,
)
from notifier.infrastructure.repositories import (
    DeviceEndpointRepository,
    NotificationRepository,
)

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 255
DEFAULT_LIST_PATH = "/notifications"

Scheduler = Callable[..., Any]


def _run_now(function: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    function(*args, **kwargs)


class DispatchService:
    """Compose the notification store, the token registry and the push gateway."""

    def __init__(
        self,
        store: NotificationRepository,
        registry: DeviceEndpointRepository,
        gateway: PushGateway,
        *,
        schedule: Scheduler | None = None,
        prune_unregistered: bool = True,
    ) -> None:
        self._store = store
        self._registry = registry
        self._gateway = gateway
        self._schedule = schedule or _run_now
        self._prune_unregistered = prune_unregistered

    # -- create and send -------------------------------------------------

    def create_and_send(
        self,
        user_id: UUID | None,
        title: str | None,
        body: str | None,
        category: NotificationCategory | str | None,
        payload: Mapping[str, Any] | None = None,
    ) -> Notification:
        """Persist a notification for ``user_id`` and schedule its delivery.

        Only validation and persistence failures reach the caller; the returned
        record is the stored one whatever happens during delivery.
        """

        parsed_category = self._validate_new_notification(user_id, title, body, category)
        notification = self._store.create(
            user_id,
            title.strip(),
            body.strip(),
            parsed_category,
            dict(payload) if payload is not None else None,
        )
        try:
            self._schedule(self.deliver, notification)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Could not schedule delivery of notification %s", notification.id
            )
        return notification

    def deliver(self, notification: Notification) -> None:
        """Fan ``notification`` out to every active endpoint of its owner."""

        try:
            endpoints = list(self._registry.active_endpoints_for(notification.user_id))
        except NotificationServiceError as exc:
            logger.warning(
                "Skipping delivery of notification %s: endpoints unavailable (%s)",
                notification.id,
                exc,
            )
            return

        if not endpoints:
            logger.debug(
                "User %s has no active devices; notification %s stored only",
                notification.user_id,
                notification.id,
            )
            return

        data = self._build_data(notification)
        tokens = [endpoint.token for endpoint in endpoints]
        try:
            if len(tokens) == 1:
                result = self._gateway.send_to_one(
                    tokens[0], notification.title, notification.body, data
                )
                delivered = [result.token] if result.success else []
                unregistered = [result.token] if result.unregistered else []
            else:
                report = self._gateway.send_to_many(
                    tokens, notification.title, notification.body, data
                )
                delivered = report.delivered_tokens
                unregistered = report.unregistered_tokens
        except GatewayError as exc:
            logger.warning(
                "Push delivery of notification %s to %d device(s) failed: %s",
                notification.id,
                len(tokens),
                exc,
            )
            return
        except Exception:  # noqa: BLE001
            logger.exception(
                "Unexpected push gateway failure for notification %s", notification.id
            )
            return

        logger.info(
            "Notification %s delivered to %d of %d device(s)",
            notification.id,
            len(delivered),
            len(tokens),
        )
        for token in delivered:
            self._registry.touch_last_used(token)
        self._prune(unregistered)

    # -- queries and read state -----------------------------------------

    def get(self, notification_id: UUID, user_id: UUID) -> Notification:
        notification = self._store.find_by_id(notification_id)
        if notification is None:
            raise NotFoundError(f"Notification {notification_id} not found")
        if not notification.is_owned_by(user_id):
            raise ForbiddenError(
                f"Notification {notification_id} does not belong to the caller"
            )
        return notification

    def list_for_user(
        self,
        user_id: UUID,
        page: int | None = 1,
        limit: int | None = None,
        *,
        base_path: str = DEFAULT_LIST_PATH,
    ) -> NotificationPage:
        """Return one page of the user's notifications, newest first."""

        page = normalize_page(page)
        limit = normalize_limit(limit)
        items, total = self._store.list_for_user(
            user_id, limit=limit, offset=(page - 1) * limit
        )
        return NotificationPage(
            items=list(items),
            pagination=build_pagination(page, limit, total, base_path=base_path),
        )

    def mark_read(self, notification_id: UUID, user_id: UUID) -> None:
        self.get(notification_id, user_id)
        self._store.mark_read(notification_id)

    def mark_all_read(self, user_id: UUID) -> int:
        return self._store.mark_all_read_for_user(user_id)

    def delete(self, notification_id: UUID, user_id: UUID) -> None:
        self.get(notification_id, user_id)
        self._store.delete(notification_id)

    def unread_count(self, user_id: UUID) -> int:
        return self._store.count_unread_for_user(user_id)

    # -- device tokens --------------------------------------------------

    def register_token(
        self,
        user_id: UUID,
        token: str | None,
        device_class: DeviceClass | str | None,
        device_id: str | None = None,
    ) -> DeviceEndpoint:
        token = (token or "").strip()
        if not token:
            raise ValidationError("El token FCM es requerido")
        if not device_class:
            raise ValidationError("El tipo de dispositivo es requerido")
        try:
            parsed_class = DeviceClass.parse(device_class)
        except ValueError as exc:
            raise ValidationError(
                f"Tipo de dispositivo no soportado: {device_class}"
            ) from exc
        device_id = (device_id or "").strip() or None
        return self._registry.register(user_id, token, parsed_class, device_id)

    def unregister_token(self, token: str | None) -> None:
        token = (token or "").strip()
        if not token:
            raise ValidationError("El token FCM es requerido")
        self._registry.deactivate(token)

    # -- topics and silent pushes ----------------------------------------

    def broadcast_to_topic(
        self,
        topic: str,
        title: str,
        body: str,
        data: Mapping[str, Any] | None = None,
    ) -> None:
        """Send to every device subscribed to ``topic``; gateway errors propagate."""

        topic = self._validate_topic(topic)
        if not (title or "").strip() or not (body or "").strip():
            raise ValidationError("El título y el cuerpo del mensaje son requeridos")
        self._gateway.send_to_topic(topic, title.strip(), body.strip(), to_string_map(data))

    def subscribe_user_to_topic(
        self, user_id: UUID, topic: str
    ) -> TopicSubscriptionReport | None:
        topic = self._validate_topic(topic)
        tokens = [e.token for e in self._registry.active_endpoints_for(user_id)]
        if not tokens:
            return None
        return self._gateway.subscribe(tokens, topic)

    def unsubscribe_user_from_topic(
        self, user_id: UUID, topic: str
    ) -> TopicSubscriptionReport | None:
        topic = self._validate_topic(topic)
        tokens = [e.token for e in self._registry.active_endpoints_for(user_id)]
        if not tokens:
            return None
        return self._gateway.unsubscribe(tokens, topic)

    def wake_user(self, user_id: UUID, data: Mapping[str, Any] | None = None) -> int:
        """Send a silent push to each active device; return how many succeeded."""

        flattened = to_string_map(data)
        delivered = 0
        for endpoint in self._registry.active_endpoints_for(user_id):
            try:
                self._gateway.send_silent(endpoint.token, flattened)
            except GatewayError as exc:
                logger.warning(
                    "Silent push to token %s... failed: %s", endpoint.token_prefix, exc
                )
                continue
            delivered += 1
        return delivered

    # -- helpers ----------------------------------------------------------

    @staticmethod
    def _validate_new_notification(
        user_id: UUID | None,
        title: str | None,
        body: str | None,
        category: NotificationCategory | str | None,
    ) -> NotificationCategory:
        if user_id is None:
            raise ValidationError("El ID de usuario es requerido")
        if not (title or "").strip():
            raise ValidationError("El título es requerido")
        if len(title.strip()) > MAX_TITLE_LENGTH:
            raise ValidationError(
                f"El título no puede superar {MAX_TITLE_LENGTH} caracteres"
            )
        if not (body or "").strip():
            raise ValidationError("El cuerpo del mensaje es requerido")
        if not category:
            raise ValidationError("El tipo de notificación es requerido")
        try:
            return NotificationCategory.parse(category)
        except ValueError as exc:
            raise ValidationError(f"Tipo de notificación no soportado: {category}") from exc

    @staticmethod
    def _validate_topic(topic: str | None) -> str:
        topic = (topic or "").strip()
        if not topic:
            raise ValidationError("El tema es requerido")
        return topic

    @staticmethod
    def _build_data(notification: Notification) -> dict[str, str]:
        data = to_string_map(notification.payload)
        data["notification_id"] = str(notification.id)
        data["notification_type"] = notification.category.value
        return data

    def _prune(self, tokens: list[str]) -> None:
        if not tokens or not self._prune_unregistered:
            return
        try:
            pruned = self._registry.deactivate_many(tokens)
        except NotificationServiceError as exc:
            logger.warning("Could not deactivate unregistered tokens: %s", exc)
            return
        logger.info("Deactivated %d token(s) reported as unregistered", pruned)


__all__ = ["DispatchService", "MAX_TITLE_LENGTH"]
