"""Push delivery adapters for the infrastructure layer."""

from .data import to_string_map
from .firebase import FirebasePushGateway, build_push_gateway
from .gateway import (
    BatchDeliveryReport,
    DeliveryResult,
    NullPushGateway,
    PushGateway,
    TopicSubscriptionReport,
)

__all__ = [
    "BatchDeliveryReport",
    "DeliveryResult",
    "FirebasePushGateway",
    "NullPushGateway",
    "PushGateway",
    "TopicSubscriptionReport",
    "build_push_gateway",
    "to_string_map",
]
