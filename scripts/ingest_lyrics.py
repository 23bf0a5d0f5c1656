"""Load the reference lyrics corpus from a CSV export into `lyrics_index`.

Usage: python scripts/ingest_lyrics.py --csv lyrics_data.csv [--clear] [--delay 0.2] [--limit N]
"""

from __future__ import annotations

import argparse
import asyncio
import itertools
import logging
import os
import sys
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.ai.providers.gemini import GeminiProvider  # noqa: E402
from app.config import get_database_settings  # noqa: E402
from app.core.database import dispose_engine  # noqa: E402
from app.core.env_contract import EnvContractError, validate_runtime_env_or_raise  # noqa: E402
from app.services.corpus import ingest_rows, read_csv_rows  # noqa: E402
from app.storage.postgres_lyrics_repo import PostgresLyricsCorpusRepository  # noqa: E402

logger = logging.getLogger("scripts.ingest_lyrics")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
  parser = argparse.ArgumentParser(description="Ingest scraped Hindi lyrics into the reference corpus.")
  parser.add_argument("--csv", required=True, type=Path, help="Path to a CSV with 'Song Title' and 'Hindi Lyrics' columns.")
  parser.add_argument("--clear", action="store_true", help="Delete existing corpus entries before loading.")
  parser.add_argument("--delay", type=float, default=0.2, help="Seconds to wait between rows (default: 0.2).")
  parser.add_argument("--limit", type=int, default=None, help="Only process the first N rows.")
  parser.add_argument("--embedding-model", default=os.getenv("AMOR_EMBEDDING_MODEL") or "text-embedding-004")
  return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
  if not args.csv.is_file():
    logger.error("CSV file not found: %s", args.csv)
    return 1

  if not get_database_settings().pg_dsn:
    logger.error("AMOR_PG_DSN is not set.")
    return 1

  try:
    validate_runtime_env_or_raise(logger=logger, target="ingest")
  except EnvContractError:
    return 1

  repo = PostgresLyricsCorpusRepository()
  embedder = GeminiProvider(api_key=os.getenv("GEMINI_API_KEY")).get_embedding_model(args.embedding_model)
  rows = read_csv_rows(args.csv)
  if args.limit is not None:
    rows = itertools.islice(rows, args.limit)

  try:
    report = await ingest_rows(rows, repo=repo, embedder=embedder, clear=args.clear, delay_seconds=args.delay)
  finally:
    await dispose_engine()

  print("Lyrics processing completed!")
  print(f"   Processed: {report.processed} songs")
  print(f"   Skipped: {report.skipped} songs")
  print(f"   Total: {report.total} songs")
  return 0


def main(argv: list[str] | None = None) -> int:
  logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
  return asyncio.run(_run(_parse_args(argv)))


if __name__ == "__main__":
  sys.exit(main())
