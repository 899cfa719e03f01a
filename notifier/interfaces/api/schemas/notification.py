"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from notifier.domain.entities import NotificationCategory


class NotificationCreate(BaseModel):
    """Payload used by administrators to send a notification to a user."""

    user_id: UUID = Field(..., description="Usuario destinatario")
    title: str = Field(..., min_length=1, max_length=255, description="Título visible")
    body: str = Field(..., min_length=1, description="Cuerpo del mensaje")
    notification_type: NotificationCategory = Field(
        ..., description="Categoría de la notificación"
    )
    data: dict[str, Any] | None = Field(
        default=None, description="Datos adicionales entregados a la aplicación cliente"
    )


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    body: str
    notification_type: NotificationCategory = Field(validation_alias="category")
    data: dict[str, Any] | None = Field(default=None, validation_alias="payload")
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime


class PaginationRead(BaseModel):
    """Navigation metadata for a page of notifications."""

    model_config = ConfigDict(from_attributes=True)

    current_page: int
    per_page: int
    total_items: int
    total_pages: int
    has_next: bool
    has_previous: bool
    next_url: str | None = None
    previous_url: str | None = None


class NotificationListRead(BaseModel):
    """One page of notifications for the authenticated user."""

    model_config = ConfigDict(from_attributes=True)

    items: list[NotificationRead]
    pagination: PaginationRead


class UnreadCountRead(BaseModel):
    count: int


class MessageRead(BaseModel):
    """Plain confirmation message."""

    message: str
    updated: int | None = None


class TopicMessageCreate(BaseModel):
    """Payload used to broadcast a message to a topic."""

    title: str = Field(..., min_length=1, max_length=255)
    body: str = Field(..., min_length=1)
    data: dict[str, Any] | None = None


class TopicSubscriptionRead(BaseModel):
    """Outcome of subscribing the caller's devices to a topic."""

    topic: str
    success_count: int
    failure_count: int


__all__ = [
    "MessageRead",
    "NotificationCreate",
    "NotificationListRead",
    "NotificationRead",
    "PaginationRead",
    "TopicMessageCreate",
    "TopicSubscriptionRead",
    "UnreadCountRead",
]
