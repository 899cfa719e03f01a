"""Helpers to mint and verify the bearer tokens carrying the caller identity."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import JWTError, jwt

from notifier.config import get_settings
from notifier.domain.entities import Identity


def create_access_token(
    user_id: UUID, *, role: str | None = None, expires_delta: timedelta | None = None
) -> str:
    """Return a signed token whose ``sub`` claim is ``user_id``."""

    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims: dict[str, object] = {"sub": str(user_id), "exp": expire}
    if role:
        claims["role"] = role
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def identity_from_token(token: str) -> Identity:
    """Decode ``token`` into the verified :class:`Identity` it carries."""

    payload = decode_access_token(token)
    subject = payload.get("sub")
    if not isinstance(subject, str):
        raise ValueError("Token has no subject")
    try:
        user_id = UUID(subject)
    except ValueError as exc:
        raise ValueError("Token subject is not a valid user id") from exc
    role = payload.get("role")
    return Identity(user_id=user_id, role=role if isinstance(role, str) else None)
