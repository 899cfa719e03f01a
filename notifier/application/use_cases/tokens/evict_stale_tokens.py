"""Use case for the retention sweep of deactivated device tokens."""

import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from notifier.config import get_settings
from notifier.domain.errors import ValidationError
from notifier.infrastructure.repositories import DeviceEndpointRepository

logger = logging.getLogger(__name__)


def evict_stale_tokens(session: Session, *, older_than: timedelta | None = None) -> int:
    """Delete inactive tokens older than ``older_than`` and return how many were removed.

    Defaults to ``TOKEN_RETENTION_DAYS``. Meant for periodic background runs,
    never for the request path.
    """

    if older_than is None:
        older_than = timedelta(days=get_settings().token_retention_days)
    if older_than <= timedelta(0):
        raise ValidationError("La antigüedad mínima debe ser positiva")

    deleted = DeviceEndpointRepository(session).evict_stale(older_than)
    logger.info("Evicted %d inactive device token(s) older than %s", deleted, older_than)
    return deleted
