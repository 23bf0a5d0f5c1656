"""Create the pgvector extension and the service tables for local development.

There is no migration history; this is intended for fresh databases only.
"""

import asyncio
import os
import sys

from sqlalchemy import text

# Add the project root to the path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.config import get_database_settings  # noqa: E402
from app.core.database import Base, dispose_engine, get_db_engine  # noqa: E402
from app.schema import db_models  # noqa: E402,F401


async def init_db() -> None:
  if not get_database_settings().pg_dsn:
    print("Error: AMOR_PG_DSN is not set.")
    sys.exit(1)

  engine = get_db_engine()
  try:
    async with engine.begin() as conn:
      await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
      await conn.run_sync(Base.metadata.create_all)
    print("Tables created: " + ", ".join(sorted(Base.metadata.tables)))
  finally:
    await dispose_engine()


if __name__ == "__main__":
  asyncio.run(init_db())
