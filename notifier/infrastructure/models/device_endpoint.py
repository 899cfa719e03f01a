"""SQLAlchemy model for device push tokens."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Uuid
from sqlalchemy.sql import expression

from notifier.infrastructure.database import Base
from notifier.utils import now_in_app_naive_datetime


class DeviceEndpointModel(Base):
    """Database representation of a registered device token."""

    __tablename__ = "device_tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    # Natural key: a token belongs to exactly one user at a time.
    token = Column(String(512), nullable=False, unique=True)
    device_type = Column(String(20), nullable=False)
    device_id = Column(String(255), nullable=True)
    is_active = Column(
        Boolean, nullable=False, default=True, server_default=expression.true()
    )
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    last_used_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)


__all__ = ["DeviceEndpointModel"]
