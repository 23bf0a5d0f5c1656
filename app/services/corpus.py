"""Load the reference lyrics corpus from the scraped CSV export."""

from __future__ import annotations

import ast
import asyncio
import csv
import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path

from app.ai.providers.base import EmbeddingModel
from app.storage.lyrics_repo import LyricsCorpusRepository

logger = logging.getLogger(__name__)

TITLE_COLUMN = "Song Title"
LYRICS_COLUMN = "Hindi Lyrics"
MIN_LYRICS_CHARS = 10
_MARKER_LINE = "Lyrics"


@dataclass
class IngestReport:
  processed: int = 0
  skipped: int = 0
  total: int = 0


def _keep_line(line: str) -> bool:
  stripped = line.strip()
  return stripped != _MARKER_LINE and not stripped.isdigit()


def clean_lyrics_text(raw: str) -> str:
  """Strip list-literal wrapping, `Lyrics` marker lines and bare numeric lines from a scraped body."""
  text = (raw or "").strip()
  lines: list[str]
  if text.startswith("[") and text.endswith("]"):
    try:
      parsed = ast.literal_eval(text)
    except (ValueError, SyntaxError):
      logger.debug("Could not parse list-literal lyrics; using raw text.")
      parsed = None
    if isinstance(parsed, list):
      lines = [str(item) for item in parsed]
    else:
      lines = text.splitlines()
  else:
    lines = text.splitlines()

  return "\n".join(line for line in lines if _keep_line(line)).strip()


def read_csv_rows(path: Path) -> Iterator[dict[str, str]]:
  """Yield CSV rows keyed by header, skipping fully blank lines."""
  # Scraped lyric cells can be far larger than the csv module default.
  csv.field_size_limit(min(2**31 - 1, 10 * 1024 * 1024))
  with path.open("r", encoding="utf-8", newline="") as handle:
    reader = csv.DictReader(handle)
    if reader.fieldnames is None or TITLE_COLUMN not in reader.fieldnames or LYRICS_COLUMN not in reader.fieldnames:
      raise ValueError(f"CSV must contain '{TITLE_COLUMN}' and '{LYRICS_COLUMN}' columns.")
    for row in reader:
      if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
        continue
      yield row


async def ingest_rows(
  rows: Iterable[Mapping[str, str]],
  *,
  repo: LyricsCorpusRepository,
  embedder: EmbeddingModel,
  clear: bool = False,
  delay_seconds: float = 0.2,
  sleep: Callable[[float], Awaitable[None]] | None = None,
) -> IngestReport:
  """Clean, embed and insert each row. Row-level failures are counted as skipped."""
  sleep = sleep or asyncio.sleep
  report = IngestReport()

  if clear:
    removed = await repo.clear()
    logger.info("Cleared %s existing corpus entries.", removed)

  for row in rows:
    report.total += 1
    title = (row.get(TITLE_COLUMN) or "").strip()
    raw_lyrics = row.get(LYRICS_COLUMN) or ""
    if not title or not raw_lyrics.strip():
      report.skipped += 1
      continue

    lyrics = clean_lyrics_text(raw_lyrics)
    if len(lyrics) < MIN_LYRICS_CHARS:
      report.skipped += 1
      continue

    try:
      embedding = await embedder.embed(lyrics)
      await repo.insert_entry(title, lyrics, embedding)
    except Exception as exc:  # noqa: BLE001
      logger.error("Failed to ingest %s: %s", title, exc)
      report.skipped += 1
      continue

    report.processed += 1
    if report.processed % 100 == 0:
      logger.info("Processed %s songs...", report.processed)

    # Pace embedding calls to stay under the provider rate limit.
    if delay_seconds > 0:
      await sleep(delay_seconds)

  logger.info("Corpus ingestion finished: processed=%s skipped=%s total=%s", report.processed, report.skipped, report.total)
  return report
