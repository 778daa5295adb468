"""Emit a one-off snapshot of database pool metrics."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

from sqlalchemy import text

from familyhub.config import get_settings
from familyhub.db.monitoring import get_pool_snapshot
from familyhub.db.session import Database
from familyhub.logging_config import configure_logging

LOGGER = logging.getLogger("familyhub.db_metrics")


def main() -> int:
    settings = get_settings()
    configure_logging(settings)
    database = Database(settings)
    try:
        engine = database.engine
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "dialect": engine.dialect.name,
            "pool": get_pool_snapshot(engine),
        }
        print(json.dumps(payload))
        return 0
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Failed to collect database metrics: %s", exc)
        return 1
    finally:
        database.dispose()


if __name__ == "__main__":
    sys.exit(main())
