"""Retention sweep that deletes device tokens inactive for too long.

Intended to be run periodically (e.g. a daily cron job)::

    python -m scripts.evict_stale_tokens --days 30
"""

from __future__ import annotations

import argparse
import logging
from datetime import timedelta

from notifier.application.use_cases.tokens import evict_stale_tokens
from notifier.config import get_settings
from notifier.domain.errors import StoreError, ValidationError
from notifier.infrastructure.database import SessionLocal, initialize_database


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the retention sweep."""

    parser = argparse.ArgumentParser(
        description="Delete deactivated push tokens older than the retention window.",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Días de antigüedad mínima (por defecto: TOKEN_RETENTION_DAYS)",
    )
    return parser.parse_args()


def main() -> None:
    """Run the sweep once and report how many tokens were removed."""

    args = parse_args()
    logging.basicConfig(level=get_settings().log_level.upper())
    older_than = timedelta(days=args.days) if args.days is not None else None

    initialize_database()

    session = SessionLocal()
    try:
        deleted = evict_stale_tokens(session, older_than=older_than)
    except ValidationError as exc:
        raise SystemExit(f"Parámetros inválidos: {exc}") from exc
    except StoreError as exc:
        raise SystemExit(f"Error al depurar los tokens: {exc}") from exc
    finally:
        session.close()

    print(f"Tokens eliminados: {deleted}")


if __name__ == "__main__":
    main()
