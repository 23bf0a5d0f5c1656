from __future__ import annotations

from pgvector.sqlalchemy import Vector
from sqlalchemy import Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base

# text-embedding-004 returns 768-dimensional vectors.
EMBEDDING_DIMENSIONS = 768


class LyricsIndexEntry(Base):
  __tablename__ = "lyrics_index"
  __table_args__ = (Index("ix_lyrics_index_embedding_hnsw", "embedding", postgresql_using="hnsw", postgresql_ops={"embedding": "vector_cosine_ops"}),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  song_name: Mapped[str] = mapped_column(Text, nullable=False)
  lyrics_text: Mapped[str] = mapped_column(Text, nullable=False)
  embedding: Mapped[list[float] | None] = mapped_column(Vector(EMBEDDING_DIMENSIONS), nullable=True)
