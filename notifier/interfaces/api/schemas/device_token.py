"""Pydantic models describing device token registration."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from notifier.domain.entities import DeviceClass


class DeviceTokenRegister(BaseModel):
    """Payload used to register the push token of the caller's device."""

    token: str = Field(..., min_length=1, description="Token emitido por el proveedor push")
    device_type: DeviceClass = Field(..., description="Plataforma del dispositivo")
    device_id: str | None = Field(
        default=None, max_length=255, description="Identificador del dispositivo"
    )


class DeviceTokenUnregister(BaseModel):
    """Payload used to deactivate a previously registered token."""

    token: str = Field(..., min_length=1)


class DeviceTokenRead(BaseModel):
    """Representation of a registered device token."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    token: str
    device_type: DeviceClass = Field(validation_alias="device_class")
    device_id: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    last_used_at: datetime


__all__ = ["DeviceTokenRead", "DeviceTokenRegister", "DeviceTokenUnregister"]
