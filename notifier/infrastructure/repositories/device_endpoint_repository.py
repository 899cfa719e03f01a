"""Persistence layer for device push tokens."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence
from datetime import timedelta
from uuid import UUID

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from notifier.domain.entities import DeviceClass, DeviceEndpoint
from notifier.domain.errors import NotFoundError, StoreError
from notifier.infrastructure.models import DeviceEndpointModel
from notifier.utils import ensure_app_timezone, now_in_app_naive_datetime

from .notification_repository import store_errors

logger = logging.getLogger(__name__)

# Dialects offering a native ``INSERT ... ON CONFLICT DO UPDATE``.
_CONFLICT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class DeviceEndpointRepository:
    """Registry of device tokens keyed by the token string."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def register(
        self,
        user_id: UUID,
        token: str,
        device_class: DeviceClass,
        device_id: str | None = None,
    ) -> DeviceEndpoint:
        """Insert ``token`` or take it over for ``user_id`` and reactivate it."""

        now = now_in_app_naive_datetime()
        values = {
            "id": uuid.uuid4(),
            "user_id": user_id,
            "token": token,
            "device_type": device_class.value,
            "device_id": device_id,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
            "last_used_at": now,
        }
        with store_errors(self.session, "register device token"):
            dialect = self.session.get_bind().dialect.name
            insert = _CONFLICT_INSERTS.get(dialect)
            if insert is not None:
                self._upsert_on_conflict(insert, values)
            else:
                self._upsert_with_retry(values)
            self.session.commit()
            model = self._get_model(token)
        if model is None:  # pragma: no cover - the row was just written
            raise StoreError("Device token was not persisted")
        return self._to_entity(model)

    def get_by_token(self, token: str) -> DeviceEndpoint | None:
        with store_errors(self.session, "find device token"):
            model = self._get_model(token)
        return self._to_entity(model) if model else None

    def deactivate(self, token: str) -> None:
        with store_errors(self.session, "deactivate device token"):
            updated = (
                self.session.query(DeviceEndpointModel)
                .filter(DeviceEndpointModel.token == token)
                .update(
                    {
                        DeviceEndpointModel.is_active: False,
                        DeviceEndpointModel.updated_at: now_in_app_naive_datetime(),
                    },
                    synchronize_session=False,
                )
            )
            self.session.commit()
        if not updated:
            raise NotFoundError("Device token not found")

    def deactivate_many(self, tokens: Iterable[str]) -> int:
        """Deactivate every token in ``tokens``; unknown tokens are ignored."""

        unique = list(dict.fromkeys(token for token in tokens if token))
        if not unique:
            return 0
        with store_errors(self.session, "deactivate device tokens"):
            updated = (
                self.session.query(DeviceEndpointModel)
                .filter(
                    DeviceEndpointModel.token.in_(unique),
                    DeviceEndpointModel.is_active.is_(True),
                )
                .update(
                    {
                        DeviceEndpointModel.is_active: False,
                        DeviceEndpointModel.updated_at: now_in_app_naive_datetime(),
                    },
                    synchronize_session=False,
                )
            )
            self.session.commit()
        return int(updated or 0)

    def active_endpoints_for(self, user_id: UUID) -> Sequence[DeviceEndpoint]:
        """Return the active endpoints of ``user_id``, most recently used first."""

        with store_errors(self.session, "list active device tokens"):
            models = (
                self.session.query(DeviceEndpointModel)
                .filter(
                    DeviceEndpointModel.user_id == user_id,
                    DeviceEndpointModel.is_active.is_(True),
                )
                .order_by(
                    DeviceEndpointModel.last_used_at.desc(),
                    DeviceEndpointModel.created_at.desc(),
                )
                .all()
            )
        return [self._to_entity(model) for model in models]

    def touch_last_used(self, token: str) -> None:
        """Refresh ``last_used_at``; failures are logged and never raised."""

        try:
            self.session.query(DeviceEndpointModel).filter(
                DeviceEndpointModel.token == token
            ).update(
                {DeviceEndpointModel.last_used_at: now_in_app_naive_datetime()},
                synchronize_session=False,
            )
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning(
                "Could not refresh last use of token %s...: %s", token[:8], exc
            )

    def evict_stale(self, older_than: timedelta) -> int:
        """Delete inactive tokens not updated within ``older_than``; return the count."""

        cutoff = now_in_app_naive_datetime() - older_than
        with store_errors(self.session, "evict stale device tokens"):
            deleted = (
                self.session.query(DeviceEndpointModel)
                .filter(
                    DeviceEndpointModel.is_active.is_(False),
                    DeviceEndpointModel.updated_at < cutoff,
                )
                .delete(synchronize_session=False)
            )
            self.session.commit()
        return int(deleted or 0)

    def _upsert_on_conflict(self, insert, values: dict[str, object]) -> None:
        statement = insert(DeviceEndpointModel).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=["token"],
            set_={
                "user_id": statement.excluded.user_id,
                "device_type": statement.excluded.device_type,
                "device_id": statement.excluded.device_id,
                "is_active": True,
                "updated_at": statement.excluded.updated_at,
                "last_used_at": statement.excluded.last_used_at,
            },
        )
        self.session.execute(statement)

    def _upsert_with_retry(self, values: dict[str, object]) -> None:
        # Dialects without ON CONFLICT rely on the unique constraint: the insert
        # either wins or fails, and the loser updates the winning row.
        try:
            with self.session.begin_nested():
                self.session.add(DeviceEndpointModel(**values))
        except IntegrityError:
            self.session.query(DeviceEndpointModel).filter(
                DeviceEndpointModel.token == values["token"]
            ).update(
                {
                    DeviceEndpointModel.user_id: values["user_id"],
                    DeviceEndpointModel.device_type: values["device_type"],
                    DeviceEndpointModel.device_id: values["device_id"],
                    DeviceEndpointModel.is_active: True,
                    DeviceEndpointModel.updated_at: values["updated_at"],
                    DeviceEndpointModel.last_used_at: values["last_used_at"],
                },
                synchronize_session=False,
            )

    def _get_model(self, token: str) -> DeviceEndpointModel | None:
        return (
            self.session.query(DeviceEndpointModel)
            .filter(DeviceEndpointModel.token == token)
            .populate_existing()
            .one_or_none()
        )

    @staticmethod
    def _to_entity(model: DeviceEndpointModel) -> DeviceEndpoint:
        return DeviceEndpoint(
            id=model.id,
            user_id=model.user_id,
            token=model.token,
            device_class=DeviceClass(model.device_type),
            device_id=model.device_id,
            is_active=bool(model.is_active),
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
            last_used_at=ensure_app_timezone(model.last_used_at),
        )


__all__ = ["DeviceEndpointRepository"]
