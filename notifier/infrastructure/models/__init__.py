"""ORM models used by the application infrastructure."""

from .device_endpoint import DeviceEndpointModel
from .notification import NotificationModel

__all__ = [
    "DeviceEndpointModel",
    "NotificationModel",
]
