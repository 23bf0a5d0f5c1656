"""Shared FastAPI dependencies for caller identity."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Header, HTTPException, status

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-Amor-User-Id"
_MAX_USER_ID_CHARS = 128


async def get_current_user_id(x_amor_user_id: Annotated[str | None, Header(alias=USER_ID_HEADER)] = None) -> str:
  """Resolve the caller's user id as forwarded by the authenticating gateway."""
  user_id = (x_amor_user_id or "").strip()
  if not user_id:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
  if len(user_id) > _MAX_USER_ID_CHARS:
    logger.warning("Rejected oversized user id header (%s chars).", len(user_id))
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
  return user_id
