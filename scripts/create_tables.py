"""Create database tables in the configured database.

Reads DATABASE_URL (or PG* variables) from .env / environment and creates
the bets, limit, blocked-number and exposure-bucket tables.

Usage:
  python scripts/create_tables.py
"""

from __future__ import annotations

import logging
import pathlib
import sys

from dotenv import load_dotenv

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from banca import models  # noqa: E402,F401  (registers tables on Base.metadata)
from banca.config import resolve_database_url  # noqa: E402
from banca.db import create_app_engine  # noqa: E402
from banca.models.base import Base  # noqa: E402

logger = logging.getLogger("create_tables")


def main() -> int:
    """Create all ORM tables in the target database."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    load_dotenv()
    env_local = PROJECT_ROOT / ".env.local"
    if env_local.exists():
        load_dotenv(dotenv_path=env_local, override=True)

    engine = create_app_engine(resolve_database_url())
    Base.metadata.create_all(bind=engine)

    logger.info("Tables created (or already exist) on %s", engine.url.render_as_string(hide_password=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
