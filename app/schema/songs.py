from __future__ import annotations

import datetime
import uuid

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Song(Base):
  __tablename__ = "songs"

  id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
  user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
  title: Mapped[str] = mapped_column(Text, nullable=False)
  theme: Mapped[str | None] = mapped_column(Text, nullable=True)
  genre: Mapped[str | None] = mapped_column(String, nullable=True)
  tags: Mapped[str | None] = mapped_column(Text, nullable=True)
  lyrics: Mapped[str | None] = mapped_column(Text, nullable=True)
  reference_songs: Mapped[list[str]] = mapped_column(JSONB, nullable=False, server_default=text("'[]'::jsonb"))
  task_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
  clip_id: Mapped[str | None] = mapped_column(String, nullable=True)
  status: Mapped[str] = mapped_column(String, nullable=False, server_default=text("'pending'"), index=True)
  audio_url: Mapped[str | None] = mapped_column(Text, nullable=True)
  video_url: Mapped[str | None] = mapped_column(Text, nullable=True)
  image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
  duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
  error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
  is_liked: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
  play_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
  updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
  completed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class GenerationLog(Base):
  __tablename__ = "generation_logs"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  song_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("songs.id", ondelete="CASCADE"), nullable=False, index=True)
  step: Mapped[str] = mapped_column(String, nullable=False, index=True)
  status: Mapped[str] = mapped_column(String, nullable=False)
  request_data: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
  response_data: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
  error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
