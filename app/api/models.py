from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator, model_validator

MAX_THEME_CHARS = 2000
MAX_LYRICS_CHARS = 10000
DEFAULT_DURATION_SECONDS = 180


class GenerateSongRequest(BaseModel):
  """Request payload for starting a song generation."""

  title: StrictStr = Field(min_length=1, max_length=200, description="Song title.", examples=["Diwali Ki Raat"])
  theme: StrictStr = Field(min_length=1, max_length=MAX_THEME_CHARS, description="Free-text theme used for retrieval and drafting.", examples=["A beautiful love story during a festival"])
  styles: list[StrictStr] = Field(default_factory=list, max_length=12, description="Style tags, as a list or a comma-separated string.", examples=[["romantic", "acoustic"]])
  genre: StrictStr | None = Field(default=None, max_length=60, description="Optional genre. Defaults to the first style tag, then 'bollywood'.")
  lyrics: StrictStr | None = Field(default=None, max_length=MAX_LYRICS_CHARS, description="Optional pre-written lyrics; skips retrieval and drafting.")
  model_config = ConfigDict(extra="forbid")

  @field_validator("styles", mode="before")
  @classmethod
  def split_styles(cls, value: Any) -> Any:
    # Accept the comma-separated form used by simple form posts.
    if value is None:
      return []
    if isinstance(value, str):
      return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, list):
      # Tags are stored comma-joined, so a comma inside one tag would split it on reload.
      if any(isinstance(part, str) and "," in part for part in value):
        raise ValueError("style tags must not contain commas.")
      return [part.strip() if isinstance(part, str) else part for part in value if not (isinstance(part, str) and part.strip() == "")]
    return value

  @model_validator(mode="after")
  def normalize_text(self) -> GenerateSongRequest:
    self.title = self.title.strip()
    self.theme = self.theme.strip()
    if not self.title or not self.theme:
      raise ValueError("title and theme must not be blank.")
    if self.lyrics is not None and self.lyrics.strip() == "":
      self.lyrics = None
    if self.genre is not None:
      self.genre = self.genre.strip() or None
    return self


class GenerateSongResponse(BaseModel):
  success: bool
  song_id: str
  message: str


class SongUpdateRequest(BaseModel):
  """Partial update for a song: like toggle, play count increment or limited edits."""

  liked: StrictBool | None = None
  is_liked: StrictBool | None = None
  increment_plays: StrictBool | None = None
  title: StrictStr | None = Field(default=None, min_length=1, max_length=200)
  theme: StrictStr | None = Field(default=None, min_length=1, max_length=MAX_THEME_CHARS)
  genre: StrictStr | None = Field(default=None, min_length=1, max_length=60)
  lyrics: StrictStr | None = Field(default=None, min_length=1, max_length=MAX_LYRICS_CHARS)
  model_config = ConfigDict(extra="forbid")

  @property
  def like_value(self) -> bool | None:
    return self.liked if self.liked is not None else self.is_liked

  def edits(self) -> dict[str, str]:
    """Return the editable text fields that were supplied."""
    return {key: value for key, value in {"title": self.title, "theme": self.theme, "genre": self.genre, "lyrics": self.lyrics}.items() if value is not None}


class SongResponse(BaseModel):
  """Song payload including the compatibility fields expected by the web client."""

  id: str
  title: str
  theme: str | None = None
  genre: str | None = None
  lyrics: str | None = None
  status: Literal["pending", "generating", "completed", "failed"]
  task_id: str | None = None
  clip_id: str | None = None
  audio_url: str | None = None
  video_url: str | None = None
  image_url: str | None = None
  reference_songs: list[str] = Field(default_factory=list)
  is_liked: bool = False
  play_count: int = 0
  error_message: str | None = None
  created_at: datetime | None = None
  updated_at: datetime | None = None
  completed_at: datetime | None = None
  liked: bool = False
  plays: int = 0
  duration: int = DEFAULT_DURATION_SECONDS
  tags: list[str] = Field(default_factory=list)


class SongDeleteResponse(BaseModel):
  message: str


class SongCheckResponse(BaseModel):
  """Result of one out-of-band status check."""

  success: bool
  status: Literal["pending", "generating", "completed", "failed"]
  message: str
  audio_url: str | None = None
  error: str | None = None


class SongCheckResult(BaseModel):
  song_id: str
  title: str
  status: Literal["completed", "failed", "in_progress", "api_error"]
  audio_url: str | None = None
  error: str | None = None


class BulkCheckResponse(BaseModel):
  message: str
  updated: int
  total: int
  results: list[SongCheckResult] = Field(default_factory=list)


class GenerationLogResponse(BaseModel):
  step: str
  status: Literal["success", "error"]
  request_data: dict[str, Any] | None = None
  response_data: dict[str, Any] | None = None
  error_message: str | None = None
  created_at: datetime | None = None


class HealthResponse(BaseModel):
  status: str
