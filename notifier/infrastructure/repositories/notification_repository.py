"""Persistence helpers for notification entities."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notifier.domain.entities import Notification, NotificationCategory
from notifier.domain.errors import NotFoundError, StoreError
from notifier.infrastructure.models import NotificationModel
from notifier.utils import ensure_app_timezone, now_in_app_naive_datetime

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(session: Session, action: str) -> Iterator[None]:
    """Roll back and re-raise SQLAlchemy failures as :class:`StoreError`."""

    try:
        yield
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Store failure while trying to %s: %s", action, exc)
        raise StoreError(f"Could not {action}") from exc


class NotificationRepository:
    """Provide data access for :class:`Notification` records.

    The repository performs no authorization: ownership is checked by the
    dispatch service before any single-record mutation is delegated here.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(
        self,
        user_id: UUID,
        title: str,
        body: str,
        category: NotificationCategory,
        payload: dict[str, Any] | None = None,
    ) -> Notification:
        model = NotificationModel(
            user_id=user_id,
            title=title,
            body=body,
            category=category.value,
            payload=payload,
            is_read=False,
            read_at=None,
        )
        with store_errors(self.session, "create notification"):
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def find_by_id(self, notification_id: UUID) -> Notification | None:
        with store_errors(self.session, "find notification"):
            model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def list_for_user(
        self, user_id: UUID, *, limit: int, offset: int
    ) -> tuple[Sequence[Notification], int]:
        """Return one page of ``user_id``'s notifications, newest first, and the total."""

        with store_errors(self.session, "list notifications"):
            total = (
                self.session.query(func.count(NotificationModel.id))
                .filter(NotificationModel.user_id == user_id)
                .scalar()
            )
            query = (
                self.session.query(NotificationModel)
                .filter(NotificationModel.user_id == user_id)
                .order_by(
                    NotificationModel.created_at.desc(), NotificationModel.id.desc()
                )
                .offset(offset)
                .limit(limit)
            )
            models = query.all()
        return [self._to_entity(model) for model in models], int(total or 0)

    def mark_read(self, notification_id: UUID) -> None:
        """Flag the notification as read; re-marking keeps the first ``read_at``."""

        now = now_in_app_naive_datetime()
        with store_errors(self.session, "mark notification as read"):
            updated = (
                self.session.query(NotificationModel)
                .filter(NotificationModel.id == notification_id)
                .update(
                    {
                        NotificationModel.is_read: True,
                        NotificationModel.read_at: func.coalesce(
                            NotificationModel.read_at, now
                        ),
                        NotificationModel.updated_at: now,
                    },
                    synchronize_session=False,
                )
            )
            self.session.commit()
        if not updated:
            raise NotFoundError(f"Notification {notification_id} not found")

    def mark_all_read_for_user(self, user_id: UUID) -> int:
        now = now_in_app_naive_datetime()
        with store_errors(self.session, "mark notifications as read"):
            updated = (
                self.session.query(NotificationModel)
                .filter(
                    NotificationModel.user_id == user_id,
                    NotificationModel.is_read.is_(False),
                )
                .update(
                    {
                        NotificationModel.is_read: True,
                        NotificationModel.read_at: now,
                        NotificationModel.updated_at: now,
                    },
                    synchronize_session=False,
                )
            )
            self.session.commit()
        return int(updated or 0)

    def delete(self, notification_id: UUID) -> None:
        with store_errors(self.session, "delete notification"):
            deleted = (
                self.session.query(NotificationModel)
                .filter(NotificationModel.id == notification_id)
                .delete(synchronize_session=False)
            )
            self.session.commit()
        if not deleted:
            raise NotFoundError(f"Notification {notification_id} not found")

    def count_unread_for_user(self, user_id: UUID) -> int:
        with store_errors(self.session, "count unread notifications"):
            total = (
                self.session.query(func.count(NotificationModel.id))
                .filter(
                    NotificationModel.user_id == user_id,
                    NotificationModel.is_read.is_(False),
                )
                .scalar()
            )
        return int(total or 0)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            title=model.title,
            body=model.body,
            category=NotificationCategory(model.category),
            payload=model.payload,
            is_read=bool(model.is_read),
            read_at=ensure_app_timezone(model.read_at),
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["NotificationRepository", "store_errors"]
