import logging
import os, time
from urllib.parse import urlparse

import psycopg2

from booking_cancellation.core.config import settings

logger = logging.getLogger("wait_for_db")

DATABASE_URL = settings.DATABASE_URL

# SQLite (local dev/tests) needs no waiting.
if DATABASE_URL.startswith(("postgres://", "postgresql")):
    url = DATABASE_URL.replace("postgresql+psycopg2://", "postgresql://")
    p = urlparse(url)
    timeout_s = int(os.getenv("DB_WAIT_TIMEOUT", "60"))
    start = time.time()

    logger.info("Waiting for Postgres at %s:%s (timeout=%ss)", p.hostname, p.port or 5432, timeout_s)
    while True:
        try:
            psycopg2.connect(url).close()
            logger.info("Postgres is ready.")
            break
        except psycopg2.OperationalError as e:
            if time.time() - start > timeout_s:
                logger.error("Timed out waiting for DB. Last error: %s", e)
                raise
            time.sleep(1)
