"""Repository implementations for infrastructure layer."""

from .device_endpoint_repository import DeviceEndpointRepository
from .notification_repository import NotificationRepository

__all__ = [
    "DeviceEndpointRepository",
    "NotificationRepository",
]
