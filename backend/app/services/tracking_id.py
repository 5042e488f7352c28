"""
Tracking ID generation for approved damage claims.

Format: ``<prefix><yymmdd><8 hex chars>``, e.g. ``DMG261018A91F03C2``.
The random part comes from ``secrets`` (32 bits per id), so independent
workers need no shared counter; the rare collision is caught by the partial
unique index and the caller regenerates.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Callable, Optional

from app.config import settings


class TrackingIdGenerator:
    def __init__(
        self,
        prefix: Optional[str] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        suffix_bytes: int = 4,
    ):
        self._prefix = settings.TRACKING_ID_PREFIX if prefix is None else prefix
        self._clock = clock
        self._suffix_bytes = suffix_bytes

    def __call__(self) -> str:
        date_part = self._clock().strftime("%y%m%d")
        return f"{self._prefix}{date_part}{secrets.token_hex(self._suffix_bytes).upper()}"
