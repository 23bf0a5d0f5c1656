import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI

from app.core.database import dispose_engine
from app.core.env_contract import EnvContractError, validate_runtime_env_or_raise
from app.core.logging import _initialize_logging
from app.services.tasks.factory import get_task_runner


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Initialize logging and validate configuration; cancel background pipelines on shutdown."""
  from app.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("app.core.lifespan")

  try:
    _initialize_logging(settings)
    logger.info("Startup complete - logging verified.")
  except RuntimeError:
    # The service can still run with stdout logging when the log directory is not writable.
    logger.warning("Initial logging setup failed; continuing with default handlers.", exc_info=True)

  try:
    # Enforce startup env contracts before app dependencies are initialized.
    validate_runtime_env_or_raise(logger=logger, target="service")
  except EnvContractError:
    logger.error("Environment contract failed; refusing to start the service.", exc_info=True)
    raise

  logger.info("Service starting environment=%s database=%s", settings.environment, _redact_dsn(settings.pg_dsn))

  try:
    yield
  finally:
    await get_task_runner().shutdown()
    await dispose_engine()
    logger.info("Shutdown complete.")


def _redact_dsn(raw: str | None) -> str:
  """Redact credentials from a DSN while keeping host/db visible."""
  if not raw:
    return "<unset>"

  parsed = urlparse(raw)
  if not parsed.scheme:
    return "<invalid>"

  user = parsed.username or ""
  host = parsed.hostname or ""
  port = f":{parsed.port}" if parsed.port else ""
  netloc = f"{user}@{host}{port}" if user else f"{host}{port}"
  database = parsed.path.lstrip("/")
  path = f"/{database}" if database else ""
  return f"{parsed.scheme}://{netloc}{path}"
