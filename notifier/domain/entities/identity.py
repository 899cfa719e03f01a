"""Verified caller identity supplied by the authentication boundary."""

from dataclasses import dataclass
from uuid import UUID

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Identity:
    """Authenticated user making the current request."""

    user_id: UUID
    role: str | None = None

    def has_role(self, alias: str) -> bool:
        """Return ``True`` when the caller's role matches ``alias``."""

        return (self.role or "").lower() == alias.lower()

    def is_admin(self) -> bool:
        return self.has_role(ADMIN_ROLE)
