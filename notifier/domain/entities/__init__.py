"""Domain entities exposed by the application."""

from .device_endpoint import DeviceClass, DeviceEndpoint
from .identity import ADMIN_ROLE, Identity
from .notification import Notification, NotificationCategory, NotificationPage
from .pagination import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    PaginationMetadata,
    build_pagination,
    normalize_limit,
    normalize_page,
    parse_int,
)

__all__ = [
    "ADMIN_ROLE",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "DeviceClass",
    "DeviceEndpoint",
    "Identity",
    "Notification",
    "NotificationCategory",
    "NotificationPage",
    "PaginationMetadata",
    "build_pagination",
    "normalize_limit",
    "normalize_page",
    "parse_int",
]
