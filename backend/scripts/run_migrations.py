"""Upgrade the FamilyHub schema once the database accepts connections.

Run from ``backend/`` before starting the API::

    python -m scripts.run_migrations --revision head
    python -m scripts.run_migrations --sql > upgrade.sql

The database URL comes from the application settings
(``FAMILYHUB_DATABASE_URL``), never from ``alembic.ini``.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from alembic import command
from alembic.config import Config
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from familyhub.config import Settings, get_settings
from familyhub.db.session import Database
from familyhub.logging_config import configure_logging

LOGGER = logging.getLogger("familyhub.migrations")
BACKEND_ROOT = Path(__file__).resolve().parent.parent
ALEMBIC_INI = BACKEND_ROOT / "alembic.ini"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Upgrade the FamilyHub database schema.")
    parser.add_argument("--revision", default="head", help="Target revision (default: head).")
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Seconds to keep retrying while the database refuses connections.",
    )
    parser.add_argument("--poll-interval", type=float, default=2.0, help="Seconds between connection attempts.")
    parser.add_argument(
        "--sql",
        action="store_true",
        help="Print the upgrade SQL instead of applying it; no connection is made.",
    )
    return parser.parse_args(argv)


def alembic_config(settings: Settings) -> Config:
    if not settings.database_url:
        raise RuntimeError("FAMILYHUB_DATABASE_URL must be configured before running migrations.")
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("script_location", str(BACKEND_ROOT / "alembic"))
    # ConfigParser interpolates '%', which shows up in URL-encoded passwords.
    config.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))
    return config


def wait_for_database(database: Database, *, timeout: float, poll_interval: float) -> None:
    deadline = time.monotonic() + timeout
    attempt = 0
    while True:
        attempt += 1
        try:
            with database.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except OperationalError as exc:
            if time.monotonic() >= deadline:
                raise RuntimeError(f"Database still unreachable after {attempt} attempt(s).") from exc
            LOGGER.warning("Database not ready (attempt %s): %s", attempt, exc.orig)
            time.sleep(poll_interval)
        else:
            LOGGER.info("Database reachable after %s attempt(s).", attempt)
            return


def upgrade(
    settings: Settings,
    revision: str = "head",
    *,
    timeout: float = 60.0,
    poll_interval: float = 2.0,
    sql: bool = False,
) -> None:
    config = alembic_config(settings)
    if not sql:
        database = Database(settings)
        try:
            wait_for_database(database, timeout=timeout, poll_interval=poll_interval)
        finally:
            database.dispose()
    LOGGER.info("Upgrading schema to %s%s", revision, " (offline SQL)" if sql else "")
    command.upgrade(config, revision, sql=sql)


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    args = parse_args(argv)
    try:
        settings = settings or get_settings()
        configure_logging(settings)
        upgrade(
            settings,
            args.revision,
            timeout=args.timeout,
            poll_interval=args.poll_interval,
            sql=args.sql,
        )
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Migration run failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
