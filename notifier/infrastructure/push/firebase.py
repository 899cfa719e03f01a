"""Firebase Cloud Messaging implementation of the push gateway."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError

from notifier.config import Settings
from notifier.domain.errors import GatewayError

from .gateway import (
    BatchDeliveryReport,
    DeliveryResult,
    NullPushGateway,
    PushGateway,
    TopicSubscriptionReport,
)

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "notifier"
# Upper bound on tokens accepted by a single multicast request.
MULTICAST_BATCH_SIZE = 500

_ANDROID_CONFIG = messaging.AndroidConfig(priority="high")


def _apns_config(*, content_available: bool = False) -> messaging.APNSConfig:
    payload = None
    if content_available:
        payload = messaging.APNSPayload(aps=messaging.Aps(content_available=True))
    return messaging.APNSConfig(headers={"apns-priority": "10"}, payload=payload)


def _describe_error(exc: BaseException | None) -> str | None:
    if exc is None:
        return None
    code = getattr(exc, "code", None)
    return f"{code}: {exc}" if code else str(exc)


class FirebasePushGateway(PushGateway):
    """Deliver messages through a ``firebase_admin`` application."""

    def __init__(self, app: firebase_admin.App) -> None:
        self._app = app

    def send_to_one(
        self, token: str, title: str, body: str, data: Mapping[str, str]
    ) -> DeliveryResult:
        message = messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body),
            data=dict(data),
            android=_ANDROID_CONFIG,
            apns=_apns_config(),
        )
        try:
            message_id = messaging.send(message, app=self._app)
        except messaging.UnregisteredError as exc:
            logger.info("Token %s... is no longer registered", token[:8])
            return DeliveryResult(
                token=token, success=False, error=_describe_error(exc), unregistered=True
            )
        except (FirebaseError, ValueError) as exc:
            raise GatewayError(f"Error sending message to token {token[:8]}...: {exc}") from exc
        return DeliveryResult(token=token, success=True, message_id=message_id)

    def send_to_many(
        self, tokens: Sequence[str], title: str, body: str, data: Mapping[str, str]
    ) -> BatchDeliveryReport:
        results: list[DeliveryResult] = []
        for start in range(0, len(tokens), MULTICAST_BATCH_SIZE):
            chunk = list(tokens[start : start + MULTICAST_BATCH_SIZE])
            message = messaging.MulticastMessage(
                tokens=chunk,
                notification=messaging.Notification(title=title, body=body),
                data=dict(data),
                android=_ANDROID_CONFIG,
                apns=_apns_config(),
            )
            try:
                response = messaging.send_each_for_multicast(message, app=self._app)
            except (FirebaseError, ValueError) as exc:
                raise GatewayError(f"Error sending multicast message: {exc}") from exc

            for token, outcome in zip(chunk, response.responses):
                results.append(
                    DeliveryResult(
                        token=token,
                        success=outcome.success,
                        message_id=outcome.message_id,
                        error=_describe_error(outcome.exception),
                        unregistered=isinstance(
                            outcome.exception, messaging.UnregisteredError
                        ),
                    )
                )

        report = BatchDeliveryReport(tuple(results))
        if report.failure_count:
            logger.warning(
                "Multicast delivered to %d of %d tokens",
                report.success_count,
                len(report.results),
            )
        return report

    def send_silent(self, token: str, data: Mapping[str, str]) -> None:
        message = messaging.Message(
            token=token,
            data=dict(data),
            android=_ANDROID_CONFIG,
            apns=_apns_config(content_available=True),
        )
        self._send(message, f"token {token[:8]}...")

    def send_to_topic(
        self, topic: str, title: str, body: str, data: Mapping[str, str]
    ) -> None:
        message = messaging.Message(
            topic=topic,
            notification=messaging.Notification(title=title, body=body),
            data=dict(data),
        )
        self._send(message, f"topic {topic}")

    def subscribe(self, tokens: Sequence[str], topic: str) -> TopicSubscriptionReport:
        try:
            response = messaging.subscribe_to_topic(list(tokens), topic, app=self._app)
        except (FirebaseError, ValueError) as exc:
            raise GatewayError(f"Error subscribing to topic {topic}: {exc}") from exc
        return self._topic_report(topic, response)

    def unsubscribe(self, tokens: Sequence[str], topic: str) -> TopicSubscriptionReport:
        try:
            response = messaging.unsubscribe_from_topic(list(tokens), topic, app=self._app)
        except (FirebaseError, ValueError) as exc:
            raise GatewayError(f"Error unsubscribing from topic {topic}: {exc}") from exc
        return self._topic_report(topic, response)

    def _send(self, message: messaging.Message, destination: str) -> str:
        try:
            return messaging.send(message, app=self._app)
        except (FirebaseError, ValueError) as exc:
            raise GatewayError(f"Error sending message to {destination}: {exc}") from exc

    @staticmethod
    def _topic_report(topic: str, response) -> TopicSubscriptionReport:
        return TopicSubscriptionReport(
            topic=topic,
            success_count=response.success_count,
            failure_count=response.failure_count,
            errors=tuple(str(error.reason) for error in response.errors),
        )


def _load_credentials(settings: Settings) -> credentials.Certificate:
    if settings.firebase_credentials_json:
        try:
            document = json.loads(settings.firebase_credentials_json)
        except json.JSONDecodeError as exc:
            raise GatewayError("FIREBASE_CREDENTIALS_JSON is not valid JSON") from exc
        return credentials.Certificate(document)
    return credentials.Certificate(settings.firebase_credentials_file)


def build_push_gateway(settings: Settings) -> PushGateway:
    """Return the gateway configured by ``settings``.

    Without Firebase credentials a :class:`NullPushGateway` is returned so that
    notifications are still persisted in development environments.
    """

    if not settings.push_enabled:
        logger.info("Firebase credentials not configured; push delivery disabled")
        return NullPushGateway()

    try:
        app = firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        try:
            app = firebase_admin.initialize_app(
                _load_credentials(settings), name=FIREBASE_APP_NAME
            )
        except (OSError, ValueError) as exc:
            raise GatewayError(f"Error initializing firebase app: {exc}") from exc
    return FirebasePushGateway(app)


__all__ = ["FirebasePushGateway", "build_push_gateway", "MULTICAST_BATCH_SIZE"]
