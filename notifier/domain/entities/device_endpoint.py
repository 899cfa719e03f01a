"""Domain entity describing a device registered for push delivery."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class DeviceClass(str, Enum):
    """Platform of the installed client that owns a push token."""

    ANDROID = "android"
    IOS = "ios"
    WEB = "web"

    @classmethod
    def parse(cls, value: "DeviceClass | str") -> "DeviceClass":
        """Return the member matching ``value``; raise ``ValueError`` otherwise."""

        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


@dataclass
class DeviceEndpoint:
    """Push token issued by the provider for one installed client.

    The token string is unique across the whole system. Registering a token
    that already exists moves it to the presenting user and reactivates it.
    """

    id: UUID | None
    user_id: UUID
    token: str
    device_class: DeviceClass
    device_id: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_used_at: datetime | None = None

    @property
    def token_prefix(self) -> str:
        """Short, log-safe prefix of the token."""

        return self.token[:8]


__all__ = ["DeviceClass", "DeviceEndpoint"]
