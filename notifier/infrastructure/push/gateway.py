"""Push gateway capability and delivery reports."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of sending to one destination token."""

    token: str
    success: bool
    message_id: str | None = None
    error: str | None = None
    unregistered: bool = False


@dataclass(frozen=True)
class BatchDeliveryReport:
    """Per-token results of a multi-target send. Used for observability only."""

    results: tuple[DeliveryResult, ...] = field(default_factory=tuple)

    @property
    def success_count(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failure_count(self) -> int:
        return len(self.results) - self.success_count

    @property
    def delivered_tokens(self) -> list[str]:
        return [result.token for result in self.results if result.success]

    @property
    def unregistered_tokens(self) -> list[str]:
        return [result.token for result in self.results if result.unregistered]


@dataclass(frozen=True)
class TopicSubscriptionReport:
    """Counts returned by a topic (un)subscription request."""

    topic: str
    success_count: int
    failure_count: int
    errors: tuple[str, ...] = ()


class PushGateway(ABC):
    """Delivery channel towards installed clients.

    ``data`` arguments must already be flattened with
    :func:`notifier.infrastructure.push.to_string_map`.
    """

    @abstractmethod
    def send_to_one(
        self, token: str, title: str, body: str, data: Mapping[str, str]
    ) -> DeliveryResult:
        """Deliver a visible alert to a single token.

        Provider outages raise ``GatewayError``; a token the provider no longer
        knows is reported as an unsuccessful, ``unregistered`` result.
        """

    @abstractmethod
    def send_to_many(
        self, tokens: Sequence[str], title: str, body: str, data: Mapping[str, str]
    ) -> BatchDeliveryReport:
        """Deliver a visible alert to every token and report per-token outcomes."""

    @abstractmethod
    def send_silent(self, token: str, data: Mapping[str, str]) -> None:
        """Deliver a data-only message that wakes the client without an alert."""

    @abstractmethod
    def send_to_topic(
        self, topic: str, title: str, body: str, data: Mapping[str, str]
    ) -> None:
        """Broadcast to every device subscribed to ``topic``."""

    @abstractmethod
    def subscribe(self, tokens: Sequence[str], topic: str) -> TopicSubscriptionReport:
        """Subscribe ``tokens`` to ``topic``."""

    @abstractmethod
    def unsubscribe(self, tokens: Sequence[str], topic: str) -> TopicSubscriptionReport:
        """Remove ``tokens`` from ``topic``."""


class NullPushGateway(PushGateway):
    """Gateway used when push credentials are not configured; drops every message."""

    def send_to_one(self, token, title, body, data) -> DeliveryResult:
        logger.info("Push delivery disabled; dropping message for token %s...", token[:8])
        return DeliveryResult(token=token, success=False, error="push delivery disabled")

    def send_to_many(self, tokens, title, body, data) -> BatchDeliveryReport:
        logger.info("Push delivery disabled; dropping message for %d tokens", len(tokens))
        return BatchDeliveryReport(
            tuple(
                DeliveryResult(token=token, success=False, error="push delivery disabled")
                for token in tokens
            )
        )

    def send_silent(self, token, data) -> None:
        logger.info("Push delivery disabled; dropping silent message for token %s...", token[:8])

    def send_to_topic(self, topic, title, body, data) -> None:
        logger.info("Push delivery disabled; dropping broadcast to topic %s", topic)

    def subscribe(self, tokens, topic) -> TopicSubscriptionReport:
        logger.info("Push delivery disabled; ignoring subscription to %s", topic)
        return TopicSubscriptionReport(topic=topic, success_count=0, failure_count=len(tokens))

    def unsubscribe(self, tokens, topic) -> TopicSubscriptionReport:
        logger.info("Push delivery disabled; ignoring unsubscription from %s", topic)
        return TopicSubscriptionReport(topic=topic, success_count=0, failure_count=len(tokens))


__all__ = [
    "BatchDeliveryReport",
    "DeliveryResult",
    "NullPushGateway",
    "PushGateway",
    "TopicSubscriptionReport",
]
