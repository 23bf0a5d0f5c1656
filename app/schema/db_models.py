"""Import all SQLAlchemy ORM models so Base.metadata sees a complete table graph."""

from __future__ import annotations

# Import ORM modules for side effects so models register with Base.metadata.
# Keeping this list centralized prevents init_db from silently missing tables.
import app.schema.lyrics  # noqa: F401
import app.schema.songs  # noqa: F401
