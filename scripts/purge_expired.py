"""Delete expired shares from the bucket and the database. Safe to run from cron."""

from __future__ import annotations

import logging

from app.core.config import get_settings
from app.models import shared_file  # noqa: F401  registers the table
from app.models.database import SessionLocal
from app.services.sharing import share_service


def main() -> None:
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    db = SessionLocal()
    try:
        purged = share_service.purge_expired(db)
    finally:
        db.close()
    print(f"Purged {purged} expired share(s)")


if __name__ == "__main__":
    main()
