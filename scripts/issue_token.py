"""Utility script to mint a bearer token for a user (local testing only)."""

from __future__ import annotations

import argparse
import uuid
from datetime import timedelta

from notifier.infrastructure.security import create_access_token


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for token creation."""

    parser = argparse.ArgumentParser(
        description="Create a signed access token accepted by the notification API.",
    )
    parser.add_argument(
        "--user-id",
        type=uuid.UUID,
        default=None,
        help="UUID del usuario. Si no se proporciona se genera uno nuevo.",
    )
    parser.add_argument(
        "--role",
        default=None,
        help="Rol incluido en el token (por ejemplo: admin)",
    )
    parser.add_argument(
        "--minutes",
        type=int,
        default=None,
        help="Minutos de validez (por defecto: ACCESS_TOKEN_EXPIRE_MINUTES)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    user_id = args.user_id or uuid.uuid4()
    expires = timedelta(minutes=args.minutes) if args.minutes else None
    token = create_access_token(user_id, role=args.role, expires_delta=expires)
    print(f"Usuario: {user_id}\nToken: {token}")


if __name__ == "__main__":
    main()
