"""Tests for the create-and-send orchestration."""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta

import pytest

from notifier.application.use_cases.notifications import DispatchService
from notifier.domain.entities import DeviceClass, NotificationCategory
from notifier.domain.errors import (
    ForbiddenError,
    GatewayError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from notifier.infrastructure.models import DeviceEndpointModel
from notifier.infrastructure.push import NullPushGateway
from notifier.infrastructure.repositories import (
    DeviceEndpointRepository,
    NotificationRepository,
)
from notifier.utils import now_in_app_naive_datetime


class _UnavailableRegistry(DeviceEndpointRepository):
    """Registry whose endpoint lookup always fails."""

    def active_endpoints_for(self, user_id):
        raise StoreError("Could not list active device tokens")


class _UnavailableStore(NotificationRepository):
    """Store whose writes always fail."""

    def create(self, *args, **kwargs):
        raise StoreError("Could not create notification")


class _ExplodingGateway:
    def send_to_one(self, *args):
        raise RuntimeError("socket closed")

    send_to_many = send_to_one


def _send(service, user_id, **overrides):
    arguments = {
        "title": "Pedido en camino",
        "body": "Tu repartidor salió del local",
        "category": "order_in_transit",
        "payload": {"order_id": "A-17", "eta_minutes": 12},
    }
    arguments.update(overrides)
    return service.create_and_send(user_id, **arguments)


# -- create and send ------------------------------------------------------


def test_without_devices_the_record_is_stored_and_nothing_is_sent(
    service, store, gateway, user_id
) -> None:
    notification = _send(service, user_id)

    assert notification.id is not None
    assert notification.category is NotificationCategory.ORDER_IN_TRANSIT
    assert store.find_by_id(notification.id) == notification
    assert gateway.calls == []


def test_single_device_uses_single_send_with_enriched_data(
    service, registry, gateway, user_id
) -> None:
    registry.register(user_id, "only-device", DeviceClass.ANDROID)

    notification = _send(service, user_id)

    [call] = gateway.calls
    kind, token, title, body, data = call
    assert (kind, token, title, body) == (
        "one",
        "only-device",
        "Pedido en camino",
        "Tu repartidor salió del local",
    )
    assert data == {
        "order_id": "A-17",
        "eta_minutes": "12",
        "notification_id": str(notification.id),
        "notification_type": "order_in_transit",
    }


def test_several_devices_use_one_batch_send(service, registry, gateway, user_id) -> None:
    registry.register(user_id, "phone", DeviceClass.ANDROID)
    registry.register(user_id, "tablet", DeviceClass.IOS)
    registry.register(user_id, "laptop", DeviceClass.WEB)

    _send(service, user_id, payload=None)

    [call] = gateway.calls_of("many")
    assert sorted(call[1]) == ["laptop", "phone", "tablet"]
    assert set(call[4]) == {"notification_id", "notification_type"}
    assert gateway.calls_of("one") == []


def test_inactive_devices_are_not_targeted(service, registry, gateway, user_id) -> None:
    registry.register(user_id, "kept", DeviceClass.ANDROID)
    registry.register(user_id, "logged-out", DeviceClass.ANDROID)
    registry.deactivate("logged-out")

    _send(service, user_id)

    assert [call[1] for call in gateway.calls] == ["kept"]


def test_gateway_failure_does_not_fail_the_caller(
    service, store, registry, gateway, user_id, caplog
) -> None:
    registry.register(user_id, "flaky", DeviceClass.ANDROID)
    gateway.fail = True

    with caplog.at_level(logging.WARNING):
        notification = _send(service, user_id)

    assert store.find_by_id(notification.id) is not None
    assert "failed" in caplog.text


def test_unexpected_gateway_exception_is_contained(store, registry, user_id) -> None:
    registry.register(user_id, "device", DeviceClass.ANDROID)
    service = DispatchService(store, registry, _ExplodingGateway())

    notification = _send(service, user_id)

    assert store.find_by_id(notification.id) is not None


def test_endpoint_lookup_failure_does_not_fail_the_caller(
    session, store, gateway, user_id
) -> None:
    service = DispatchService(store, _UnavailableRegistry(session), gateway)

    notification = _send(service, user_id)

    assert store.find_by_id(notification.id) is not None
    assert gateway.calls == []


def test_unregistered_tokens_are_pruned_after_batch(
    service, registry, gateway, user_id
) -> None:
    registry.register(user_id, "alive", DeviceClass.ANDROID)
    registry.register(user_id, "uninstalled", DeviceClass.IOS)
    gateway.unregistered.add("uninstalled")

    _send(service, user_id)

    assert [e.token for e in registry.active_endpoints_for(user_id)] == ["alive"]


def test_pruning_can_be_disabled(store, registry, gateway, user_id) -> None:
    service = DispatchService(store, registry, gateway, prune_unregistered=False)
    registry.register(user_id, "alive", DeviceClass.ANDROID)
    registry.register(user_id, "uninstalled", DeviceClass.IOS)
    gateway.unregistered.add("uninstalled")

    _send(service, user_id)

    assert len(registry.active_endpoints_for(user_id)) == 2


def test_delivery_is_handed_to_the_scheduler(store, registry, gateway, user_id) -> None:
    scheduled = []
    service = DispatchService(
        store, registry, gateway, schedule=lambda fn, *args: scheduled.append((fn, args))
    )
    registry.register(user_id, "device", DeviceClass.ANDROID)

    notification = _send(service, user_id)

    assert gateway.calls == []
    [(function, args)] = scheduled
    function(*args)
    assert args == (notification,)
    assert gateway.calls_of("one")


def test_scheduler_failure_keeps_the_stored_record(store, registry, gateway, user_id) -> None:
    def broken_schedule(*_args):
        raise RuntimeError("queue full")

    service = DispatchService(store, registry, gateway, schedule=broken_schedule)

    notification = _send(service, user_id)

    assert store.find_by_id(notification.id) is not None


@pytest.mark.parametrize(
    "overrides",
    [
        {"title": ""},
        {"title": "   "},
        {"title": "x" * 256},
        {"body": ""},
        {"category": ""},
        {"category": "unknown_type"},
    ],
)
def test_invalid_input_is_rejected_before_persisting(
    service, store, gateway, user_id, overrides
) -> None:
    with pytest.raises(ValidationError):
        _send(service, user_id, **overrides)

    assert store.list_for_user(user_id, limit=20, offset=0) == ([], 0)
    assert gateway.calls == []


def test_missing_user_is_rejected(service) -> None:
    with pytest.raises(ValidationError):
        _send(service, None)


def test_title_of_maximum_length_is_accepted(service, user_id) -> None:
    assert _send(service, user_id, title="x" * 255).title == "x" * 255


# -- ownership and read state --------------------------------------------


def test_get_checks_existence_then_ownership(service, user_id) -> None:
    notification = _send(service, user_id)

    assert service.get(notification.id, user_id) == notification
    with pytest.raises(NotFoundError):
        service.get(uuid.uuid4(), user_id)
    with pytest.raises(ForbiddenError):
        service.get(notification.id, uuid.uuid4())


def test_other_users_cannot_read_or_delete(service, store, user_id) -> None:
    notification = _send(service, user_id)
    intruder = uuid.uuid4()

    with pytest.raises(ForbiddenError):
        service.mark_read(notification.id, intruder)
    with pytest.raises(ForbiddenError):
        service.delete(notification.id, intruder)

    stored = store.find_by_id(notification.id)
    assert stored is not None
    assert stored.is_read is False


def test_mark_read_delete_and_unread_count(service, user_id) -> None:
    first = _send(service, user_id)
    second = _send(service, user_id)

    assert service.unread_count(user_id) == 2
    service.mark_read(first.id, user_id)
    service.mark_read(first.id, user_id)
    assert service.unread_count(user_id) == 1

    service.delete(second.id, user_id)
    assert service.unread_count(user_id) == 0
    with pytest.raises(NotFoundError):
        service.delete(second.id, user_id)

    assert service.mark_all_read(user_id) == 0


def test_listing_paginates_with_navigation_links(service, user_id) -> None:
    for _ in range(45):
        _send(service, user_id)

    first = service.list_for_user(user_id, 1, 20)
    last = service.list_for_user(user_id, 3, 20)

    assert len(first.items) == 20
    assert first.pagination.total_items == 45
    assert first.pagination.total_pages == 3
    assert first.pagination.next_url == "/notifications?page=2&limit=20"
    assert first.pagination.previous_url is None
    assert len(last.items) == 5
    assert last.pagination.has_next is False
    assert last.pagination.previous_url == "/notifications?page=2&limit=20"


def test_listing_falls_back_to_default_limit(service, user_id) -> None:
    for _ in range(3):
        _send(service, user_id)

    page = service.list_for_user(user_id, 0, 0)

    assert page.pagination.current_page == 1
    assert page.pagination.per_page == 20
    assert len(page.items) == 3


def test_empty_listing(service) -> None:
    page = service.list_for_user(uuid.uuid4())

    assert page.items == []
    assert page.pagination.total_pages == 0
    assert page.pagination.has_next is False


# -- device tokens ----------------------------------------------------------


def test_register_token_validates_input(service, user_id) -> None:
    with pytest.raises(ValidationError):
        service.register_token(user_id, "  ", "android")
    with pytest.raises(ValidationError):
        service.register_token(user_id, "token", None)
    with pytest.raises(ValidationError):
        service.register_token(user_id, "token", "blackberry")


def test_register_token_normalises_device_class(service, user_id) -> None:
    endpoint = service.register_token(user_id, " token-1 ", "IOS", "  ")

    assert endpoint.token == "token-1"
    assert endpoint.device_class is DeviceClass.IOS
    assert endpoint.device_id is None


def test_unregister_token(service, registry, user_id) -> None:
    service.register_token(user_id, "token-1", "web")

    service.unregister_token("token-1")

    assert registry.active_endpoints_for(user_id) == []
    with pytest.raises(NotFoundError):
        service.unregister_token("token-unknown")
    with pytest.raises(ValidationError):
        service.unregister_token("")


# -- topics and silent pushes ------------------------------------------------


def test_broadcast_to_topic_flattens_data(service, gateway) -> None:
    service.broadcast_to_topic(" promos ", "Oferta", "2x1 hoy", {"discount": 50})

    assert gateway.calls == [("topic", "promos", "Oferta", "2x1 hoy", {"discount": "50"})]


def test_broadcast_to_topic_propagates_gateway_errors(service, gateway) -> None:
    gateway.fail = True

    with pytest.raises(GatewayError):
        service.broadcast_to_topic("promos", "Oferta", "2x1 hoy")


def test_broadcast_requires_topic_title_and_body(service) -> None:
    with pytest.raises(ValidationError):
        service.broadcast_to_topic("", "Oferta", "2x1")
    with pytest.raises(ValidationError):
        service.broadcast_to_topic("promos", "", "2x1")


def test_topic_subscription_uses_active_devices(service, registry, gateway, user_id) -> None:
    assert service.subscribe_user_to_topic(user_id, "promos") is None

    registry.register(user_id, "phone", DeviceClass.ANDROID)
    report = service.subscribe_user_to_topic(user_id, "promos")
    assert report.success_count == 1
    assert gateway.calls_of("subscribe") == [("subscribe", ["phone"], "promos")]

    service.unsubscribe_user_from_topic(user_id, "promos")
    assert gateway.calls_of("unsubscribe") == [("unsubscribe", ["phone"], "promos")]


def test_wake_user_counts_successful_silent_pushes(
    service, registry, gateway, user_id
) -> None:
    registry.register(user_id, "phone", DeviceClass.ANDROID)
    registry.register(user_id, "tablet", DeviceClass.IOS)

    assert service.wake_user(user_id, {"sync": True}) == 2
    assert {call[1] for call in gateway.calls_of("silent")} == {"phone", "tablet"}
    assert gateway.calls_of("silent")[0][2] == {"sync": "true"}

    gateway.fail = True
    assert service.wake_user(user_id) == 0


# -- categories, persistence failures and delivery accounting ---------------


@pytest.mark.parametrize("category", [member.value for member in NotificationCategory])
def test_every_category_is_accepted(service, store, user_id, category) -> None:
    notification = _send(service, user_id, category=category)

    assert notification.category.value == category
    assert store.find_by_id(notification.id).category.value == category


def test_order_canceled_uses_the_single_l_spelling(service, user_id) -> None:
    notification = _send(service, user_id, category="order_canceled")

    assert notification.category is NotificationCategory.ORDER_CANCELED
    with pytest.raises(ValidationError):
        _send(service, user_id, category="order_cancelled")


def test_persistence_failure_propagates_and_nothing_is_sent(
    session, registry, gateway, user_id
) -> None:
    registry.register(user_id, "phone", DeviceClass.ANDROID)
    service = DispatchService(_UnavailableStore(session), registry, gateway)

    with pytest.raises(StoreError):
        _send(service, user_id)

    assert gateway.calls == []


def _last_used(session, registry, token: str):
    # Move last use into the past so a refresh is observable.
    past = now_in_app_naive_datetime() - timedelta(hours=1)
    session.query(DeviceEndpointModel).filter(DeviceEndpointModel.token == token).update(
        {DeviceEndpointModel.last_used_at: past}, synchronize_session=False
    )
    session.commit()
    return registry.get_by_token(token).last_used_at


def test_single_delivery_refreshes_last_use(session, service, registry, user_id) -> None:
    registry.register(user_id, "phone", DeviceClass.ANDROID)
    before = _last_used(session, registry, "phone")

    _send(service, user_id)

    assert registry.get_by_token("phone").last_used_at > before


def test_disabled_gateway_is_not_counted_as_delivery(
    session, store, registry, user_id, caplog
) -> None:
    service = DispatchService(store, registry, NullPushGateway())
    registry.register(user_id, "phone", DeviceClass.ANDROID)
    before = _last_used(session, registry, "phone")

    with caplog.at_level(logging.INFO):
        _send(service, user_id)

    assert registry.get_by_token("phone").last_used_at == before
    assert "delivered to 0 of 1" in caplog.text


def test_unregistered_single_token_is_pruned(service, registry, gateway, user_id) -> None:
    registry.register(user_id, "uninstalled", DeviceClass.IOS)
    gateway.unregistered.add("uninstalled")

    _send(service, user_id)

    assert gateway.calls_of("one")
    assert registry.active_endpoints_for(user_id) == []
