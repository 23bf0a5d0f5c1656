import logging

from fastapi import APIRouter, Depends

from app.api.deps import get_current_user_id
from app.api.models import BulkCheckResponse, GenerateSongRequest, GenerateSongResponse, GenerationLogResponse, SongCheckResponse, SongDeleteResponse, SongResponse, SongUpdateRequest
from app.config import Settings, get_settings
from app.services import songs as song_service

router = APIRouter()
logger = logging.getLogger("app.api.routes.songs")


@router.post("/generate", response_model=GenerateSongResponse)
async def generate_song(  # noqa: B008
  request: GenerateSongRequest,
  settings: Settings = Depends(get_settings),  # noqa: B008
  user_id: str = Depends(get_current_user_id),  # noqa: B008
) -> GenerateSongResponse:
  """Create a song and start its generation pipeline in the background."""
  return await song_service.create_song(request, settings, user_id=user_id)


@router.get("", response_model=list[SongResponse])
async def list_songs(  # noqa: B008
  settings: Settings = Depends(get_settings),  # noqa: B008
  user_id: str = Depends(get_current_user_id),  # noqa: B008
) -> list[SongResponse]:
  """List the caller's songs, newest first."""
  return await song_service.list_songs(settings, user_id=user_id)


@router.post("/check-status", response_model=BulkCheckResponse)
async def check_status(  # noqa: B008
  settings: Settings = Depends(get_settings),  # noqa: B008
  user_id: str = Depends(get_current_user_id),  # noqa: B008
) -> BulkCheckResponse:
  """Check every unresolved song the caller owns once."""
  return await song_service.check_unresolved_songs(settings, user_id=user_id)


@router.get("/{song_id}", response_model=SongResponse)
async def get_song(  # noqa: B008
  song_id: str,
  settings: Settings = Depends(get_settings),  # noqa: B008
  user_id: str = Depends(get_current_user_id),  # noqa: B008
) -> SongResponse:
  return await song_service.get_song(song_id, settings, user_id=user_id)


@router.patch("/{song_id}", response_model=SongResponse)
async def update_song(  # noqa: B008
  song_id: str,
  payload: SongUpdateRequest,
  settings: Settings = Depends(get_settings),  # noqa: B008
  user_id: str = Depends(get_current_user_id),  # noqa: B008
) -> SongResponse:
  """Toggle like, increment plays, or edit title/theme/genre/lyrics."""
  return await song_service.update_song(song_id, payload, settings, user_id=user_id)


@router.delete("/{song_id}", response_model=SongDeleteResponse)
async def delete_song(  # noqa: B008
  song_id: str,
  settings: Settings = Depends(get_settings),  # noqa: B008
  user_id: str = Depends(get_current_user_id),  # noqa: B008
) -> SongDeleteResponse:
  return await song_service.delete_song(song_id, settings, user_id=user_id)


@router.post("/{song_id}/retry", response_model=SongCheckResponse)
async def retry_song(  # noqa: B008
  song_id: str,
  settings: Settings = Depends(get_settings),  # noqa: B008
  user_id: str = Depends(get_current_user_id),  # noqa: B008
) -> SongCheckResponse:
  """Re-query the music service once for this song. Never re-submits."""
  return await song_service.check_song_status(song_id, settings, user_id=user_id)


@router.get("/{song_id}/logs", response_model=list[GenerationLogResponse])
async def list_song_logs(  # noqa: B008
  song_id: str,
  settings: Settings = Depends(get_settings),  # noqa: B008
  user_id: str = Depends(get_current_user_id),  # noqa: B008
) -> list[GenerationLogResponse]:
  """Return the generation timeline for a song."""
  return await song_service.list_song_logs(song_id, settings, user_id=user_id)
