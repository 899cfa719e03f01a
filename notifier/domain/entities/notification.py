"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from .pagination import PaginationMetadata


class NotificationCategory(str, Enum):
    """Closed set of notification categories understood by the clients."""

    ORDER_CREATED = "order_created"
    ORDER_UPDATED = "order_updated"
    ORDER_ASSIGNED = "order_assigned"
    ORDER_IN_TRANSIT = "order_in_transit"
    ORDER_DELIVERED = "order_delivered"
    ORDER_CANCELED = "order_canceled"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_FAILED = "payment_failed"
    DRIVER_ASSIGNED = "driver_assigned"
    DRIVER_NEARBY = "driver_nearby"
    GENERAL = "general"
    PROMOTIONAL = "promotional"

    @classmethod
    def parse(cls, value: "NotificationCategory | str") -> "NotificationCategory":
        """Return the member matching ``value``; raise ``ValueError`` otherwise."""

        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


@dataclass
class Notification:
    """Message delivered to a specific user and kept as a durable record."""

    id: UUID | None
    user_id: UUID
    title: str
    body: str
    category: NotificationCategory
    payload: dict[str, Any] | None = None
    is_read: bool = False
    read_at: datetime | None = None
    created_at: datetime | None = None

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.user_id == user_id


@dataclass
class NotificationPage:
    """One page of a user's notifications plus the derived pagination data."""

    items: list[Notification] = field(default_factory=list)
    pagination: PaginationMetadata | None = None


__all__ = ["Notification", "NotificationCategory", "NotificationPage"]
