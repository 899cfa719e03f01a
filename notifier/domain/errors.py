"""Typed failures raised by the notification dispatch core."""

from __future__ import annotations


class NotificationServiceError(Exception):
    """Base class for every failure surfaced by the dispatch core."""


class ValidationError(NotificationServiceError, ValueError):
    """Caller-supplied input violates a required shape; nothing was persisted."""


class NotFoundError(NotificationServiceError):
    """The referenced notification or device token does not exist."""


class ForbiddenError(NotificationServiceError):
    """The caller does not own the referenced notification."""


class StoreError(NotificationServiceError):
    """The durable store is unreachable or rejected the operation."""


class GatewayError(NotificationServiceError):
    """The push provider failed or could not be reached."""


__all__ = [
    "NotificationServiceError",
    "ValidationError",
    "NotFoundError",
    "ForbiddenError",
    "StoreError",
    "GatewayError",
]
