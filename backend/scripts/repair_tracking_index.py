"""Repair the damage-claim tracking id index.

Usage:
    python scripts/repair_tracking_index.py

Drops any full unique index on damage_claims.tracking_id and ensures the
partial unique index exists. Idempotent; exits non-zero on failure.
"""

from __future__ import annotations

import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.database import close_engine, engine
from app.services.tracking_index_maintenance import repair_tracking_index
from app.utils.logging import configure_logging

logger = logging.getLogger("repair_tracking_index")


def run() -> int:
    configure_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)
    try:
        summary = repair_tracking_index(engine)
    except (SQLAlchemyError, RuntimeError):
        logger.exception("tracking_index_repair_failed")
        return 1
    finally:
        close_engine()

    logger.info(
        "tracking_index_repair_done dropped=%s created=%s",
        ",".join(summary["dropped"]) or "-",
        summary["created"],
    )
    return 0


if __name__ == "__main__":
    sys.exit(run())
