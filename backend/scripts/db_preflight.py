"""Database production preflight checks.

Usage:
    python scripts/db_preflight.py

Checks deployment safety settings before release.
Exits non-zero when any required control fails.
"""

from __future__ import annotations

import os
import sys


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return -1


def run() -> int:
    environment = os.getenv("ENVIRONMENT", "development").strip().lower()
    database_url = os.getenv("DATABASE_URL", "sqlite:///./fieldops.db")
    auto_create_tables = _bool_env("AUTO_CREATE_TABLES", True)
    tracking_attempts = _int_env("TRACKING_ID_MAX_ATTEMPTS", 5)

    checks: list[tuple[str, bool, str]] = [
        (
            "ENVIRONMENT is explicitly set",
            bool(environment),
            f"ENVIRONMENT={environment or '<empty>'}",
        ),
        (
            "TRACKING_ID_MAX_ATTEMPTS is a positive integer",
            tracking_attempts >= 1,
            f"TRACKING_ID_MAX_ATTEMPTS={os.getenv('TRACKING_ID_MAX_ATTEMPTS', '5')}",
        ),
    ]

    if environment in {"production", "prod"}:
        checks.extend(
            [
                (
                    "DATABASE_URL is not SQLite",
                    "sqlite" not in database_url.lower(),
                    f"DATABASE_URL={database_url}",
                ),
                (
                    "AUTO_CREATE_TABLES is disabled",
                    not auto_create_tables,
                    f"AUTO_CREATE_TABLES={auto_create_tables}",
                ),
            ]
        )

    has_failures = False
    print("FieldOps DB Preflight")
    print(f"- environment: {environment}")
    for title, ok, detail in checks:
        marker = "PASS" if ok else "FAIL"
        print(f"[{marker}] {title} ({detail})")
        if not ok:
            has_failures = True

    if has_failures:
        print("\nPreflight failed. Resolve failed checks before deployment.")
        return 1

    print("\nPreflight passed.")
    return 0


if __name__ == "__main__":
    sys.exit(run())
