"""
Tracking Index Maintenance Utility

Older databases carry a plain unique index on ``damage_claims.tracking_id``.
Under that index only one claim may ever lack a tracking id on backends that
treat NULLs as equal, which blocks new submissions. This helper drops any such
full unique index and makes sure the partial one
(``WHERE tracking_id IS NOT NULL``) exists. Safe to run repeatedly.
"""

from __future__ import annotations

import logging
from typing import Dict

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

from app.models.damage_claim import DamageClaim, TRACKING_ID_INDEX

logger = logging.getLogger(__name__)

TABLE = DamageClaim.__tablename__


def _index_definitions(conn: Connection) -> Dict[str, str]:
    dialect = conn.dialect.name
    if dialect == "sqlite":
        rows = conn.execute(
            text("SELECT name, sql FROM sqlite_master WHERE type = 'index' AND tbl_name = :table"),
            {"table": TABLE},
        )
    elif dialect == "postgresql":
        rows = conn.execute(
            text("SELECT indexname, indexdef FROM pg_indexes WHERE tablename = :table"),
            {"table": TABLE},
        )
    else:
        raise RuntimeError(f"Unsupported dialect for index repair: {dialect}")
    # sqlite autoindexes have no SQL text and cannot be dropped.
    return {name: sql for name, sql in rows if sql}


def _is_full_unique_tracking_index(definition: str) -> bool:
    normalized = " ".join(definition.lower().split())
    return "unique" in normalized and "tracking_id" in normalized and " where " not in normalized


def repair_tracking_index(engine: Engine) -> dict:
    """Drop legacy full unique indexes on tracking_id and ensure the partial one."""
    dropped = []
    with engine.begin() as conn:
        definitions = _index_definitions(conn)
        for name, definition in sorted(definitions.items()):
            if _is_full_unique_tracking_index(definition):
                conn.execute(text(f'DROP INDEX "{name}"'))
                dropped.append(name)
                logger.info("tracking_index_dropped name=%s", name)

        created = TRACKING_ID_INDEX not in definitions or TRACKING_ID_INDEX in dropped
        if created:
            index = next(i for i in DamageClaim.__table__.indexes if i.name == TRACKING_ID_INDEX)
            index.create(bind=conn)
            logger.info("tracking_index_created name=%s", TRACKING_ID_INDEX)

    return {"table": TABLE, "dropped": dropped, "created": created}
