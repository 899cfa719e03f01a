from .device_token import DeviceTokenRead, DeviceTokenRegister, DeviceTokenUnregister
from .notification import (
    MessageRead,
    NotificationCreate,
    NotificationListRead,
    NotificationRead,
    PaginationRead,
    TopicMessageCreate,
    TopicSubscriptionRead,
    UnreadCountRead,
)

__all__ = [
    "DeviceTokenRead",
    "DeviceTokenRegister",
    "DeviceTokenUnregister",
    "MessageRead",
    "NotificationCreate",
    "NotificationListRead",
    "NotificationRead",
    "PaginationRead",
    "TopicMessageCreate",
    "TopicSubscriptionRead",
    "UnreadCountRead",
]
