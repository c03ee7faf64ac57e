#!/usr/bin/env python3
"""
Run migrations (same process, same DATABASE_URL), then seed, then uvicorn.
Ensures tables exist before seed and app start.
"""
import os
import sys

from booking_cancellation.core.config import settings
from booking_cancellation.core.logging import configure_logging

configure_logging()

# 1) Wait for DB
import wait_for_db  # noqa: F401,E402

# 2) Run migrations using the same settings as the app
from alembic.config import Config  # noqa: E402
from alembic import command  # noqa: E402

alembic_cfg = Config(os.path.join(os.path.dirname(__file__), "alembic.ini"))
alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
command.upgrade(alembic_cfg, "head")

# 3) Seed demo data outside production
if settings.ENV != "production":
    from booking_cancellation.seed import run as run_seed
    run_seed()

# 4) Start uvicorn (replace current process)
os.execv(
    sys.executable,
    [sys.executable, "-m", "uvicorn", "booking_cancellation.main:app", "--host", "0.0.0.0", "--port", "8000"],
)
