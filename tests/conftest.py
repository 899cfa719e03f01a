"""Shared fixtures: in-memory SQLite schema, repositories and a recording gateway."""

from __future__ import annotations

import os
import uuid
from collections.abc import Mapping, Sequence

import pytest

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.pop("FIREBASE_CREDENTIALS_FILE", None)
os.environ.pop("FIREBASE_CREDENTIALS_JSON", None)

from notifier.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from notifier.application.use_cases.notifications import DispatchService  # noqa: E402
from notifier.domain.errors import GatewayError  # noqa: E402
from notifier.infrastructure import database  # noqa: E402
from notifier.infrastructure.push import (  # noqa: E402
    BatchDeliveryReport,
    DeliveryResult,
    PushGateway,
    TopicSubscriptionReport,
)
from notifier.infrastructure.repositories import (  # noqa: E402
    DeviceEndpointRepository,
    NotificationRepository,
)


class RecordingPushGateway(PushGateway):
    """In-memory gateway that records every call and can be told to fail."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.fail = False
        self.unregistered: set[str] = set()

    def _record(self, *call) -> None:
        self.calls.append(call)
        if self.fail:
            raise GatewayError("provider unavailable")

    def send_to_one(
        self, token: str, title: str, body: str, data: Mapping[str, str]
    ) -> DeliveryResult:
        self._record("one", token, title, body, dict(data))
        return self._result(token)

    def send_to_many(
        self, tokens: Sequence[str], title: str, body: str, data: Mapping[str, str]
    ) -> BatchDeliveryReport:
        self._record("many", list(tokens), title, body, dict(data))
        return BatchDeliveryReport(tuple(self._result(token) for token in tokens))

    def _result(self, token: str) -> DeliveryResult:
        gone = token in self.unregistered
        return DeliveryResult(token=token, success=not gone, unregistered=gone)

    def send_silent(self, token: str, data: Mapping[str, str]) -> None:
        self._record("silent", token, dict(data))

    def send_to_topic(self, topic: str, title: str, body: str, data: Mapping[str, str]) -> None:
        self._record("topic", topic, title, body, dict(data))

    def subscribe(self, tokens: Sequence[str], topic: str) -> TopicSubscriptionReport:
        self._record("subscribe", list(tokens), topic)
        return TopicSubscriptionReport(topic=topic, success_count=len(tokens), failure_count=0)

    def unsubscribe(self, tokens: Sequence[str], topic: str) -> TopicSubscriptionReport:
        self._record("unsubscribe", list(tokens), topic)
        return TopicSubscriptionReport(topic=topic, success_count=len(tokens), failure_count=0)

    def calls_of(self, kind: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == kind]


@pytest.fixture(autouse=True)
def fresh_schema():
    """Recreate every table before each test."""

    database.Base.metadata.drop_all(bind=database.engine)
    database.initialize_database()
    yield
    database.Base.metadata.drop_all(bind=database.engine)


@pytest.fixture()
def session():
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def store(session) -> NotificationRepository:
    return NotificationRepository(session)


@pytest.fixture()
def registry(session) -> DeviceEndpointRepository:
    return DeviceEndpointRepository(session)


@pytest.fixture()
def gateway() -> RecordingPushGateway:
    return RecordingPushGateway()


@pytest.fixture()
def service(store, registry, gateway) -> DispatchService:
    return DispatchService(store, registry, gateway)


@pytest.fixture()
def user_id() -> uuid.UUID:
    return uuid.uuid4()
