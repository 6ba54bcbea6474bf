#!/usr/bin/env python3
"""Generate sample news, podcast and email items.

Creates deterministic JSONL item files (news.jsonl, podcasts.jsonl,
emails.jsonl) for trying the snapshot builder without live fetchers.
"""

import argparse
import json
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Default configuration
DEFAULT_SYMBOLS = ["AAPL", "MSFT", "NVDA", "TSLA", "JPM"]
DEFAULT_PER_KIND = 8
DEFAULT_SEED = 42
DEFAULT_OUTPUT_DIR = "data/items"

SOURCES = {
    "news": ["Bloomberg API", "Reuters API", "CNBC", "MarketWatch", "Yahoo Finance"],
    "podcast": ["Chat with Traders", "The Meb Faber Research Podcast", "Macro Hour"],
    "email": ["Gmail", "Morning Brew", "Desk Notes"],
}

TITLES = [
    "{sym} beats earnings estimates as guidance rises",
    "{sym} shares slide after analyst downgrade",
    "Fed holds rates; {sym} and peers rally",
    "{sym} announces buyback and raises dividend",
    "Inflation worries weigh on {sym}",
    "{sym} in merger talks, sources say",
    "Weekly market outlook: {sym} in focus",
    "Treasury yields climb while {sym} trading volume surges",
]

BODIES = [
    "Investors weighed the quarter's revenue against a cautious forecast.",
    "Analysts flagged margin risks but kept long-term targets.",
    "Portfolio managers rotated into the sector ahead of the report.",
    "The stock moved on heavy volume in afternoon trading.",
    "",
]

FILE_NAMES = {"news": "news.jsonl", "podcast": "podcasts.jsonl", "email": "emails.jsonl"}


def generate_items(
    kind: str,
    count: int,
    symbols: list[str],
    now: datetime,
    seed: int = DEFAULT_SEED,
) -> list[dict]:
    """Generate raw item records for one source kind.

    Args:
        kind: Source kind ('news', 'podcast' or 'email').
        count: Number of items.
        symbols: Ticker symbols to mention.
        now: Reference time; items are spread over the previous 60 hours.
        seed: Random seed for reproducibility.

    Returns:
        List of JSON-compatible item records.
    """
    rng = random.Random(f"{seed}:{kind}")
    records = []

    for i in range(count):
        symbol = rng.choice(symbols)
        hours_ago = rng.uniform(0, 60)
        timestamp = now - timedelta(hours=hours_ago)

        records.append(
            {
                "id": f"{kind}-{i:03d}",
                "kind": kind,
                "source_name": rng.choice(SOURCES[kind]),
                "timestamp": timestamp.isoformat(),
                "title": rng.choice(TITLES).format(sym=symbol),
                "body": rng.choice(BODIES),
            }
        )

    return records


def create_sample_items(
    output_dir: str | Path,
    symbols: list[str] | None = None,
    per_kind: int = DEFAULT_PER_KIND,
    seed: int = DEFAULT_SEED,
    now: datetime | None = None,
) -> dict[str, Path]:
    """Create sample item files.

    Returns:
        Dict mapping source kind to file path.
    """
    if symbols is None:
        symbols = DEFAULT_SYMBOLS
    if now is None:
        now = datetime.now(timezone.utc)

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    created_files: dict[str, Path] = {}
    for kind, file_name in FILE_NAMES.items():
        records = generate_items(kind, per_kind, symbols, now, seed)
        file_path = output_path / file_name
        with open(file_path, "w", encoding="utf-8") as f:
            for record in records:
                f.write(json.dumps(record) + "\n")

        created_files[kind] = file_path
        print(f"  Saved {len(records)} {kind} items to {file_path}")

    return created_files


def main(args: list[str] | None = None) -> int:
    """Main entry point for the script.

    Args:
        args: Command line arguments (uses sys.argv if None).

    Returns:
        Exit code (0 for success).
    """
    parser = argparse.ArgumentParser(description="Generate sample content items")
    parser.add_argument(
        "--output-dir",
        "-o",
        default=DEFAULT_OUTPUT_DIR,
        help=f"Output directory for JSONL files (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--symbols",
        "-s",
        nargs="+",
        default=DEFAULT_SYMBOLS,
        help=f"Ticker symbols to mention (default: {DEFAULT_SYMBOLS})",
    )
    parser.add_argument(
        "--per-kind",
        type=int,
        default=DEFAULT_PER_KIND,
        help=f"Items per source kind (default: {DEFAULT_PER_KIND})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=DEFAULT_SEED,
        help=f"Random seed (default: {DEFAULT_SEED})",
    )
    parser.add_argument(
        "--now",
        default=None,
        help="Reference time as ISO 8601 (default: current UTC time)",
    )

    parsed = parser.parse_args(args)

    now = None
    if parsed.now:
        now = datetime.fromisoformat(parsed.now.replace("Z", "+00:00"))
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

    print(f"Generating sample items in {parsed.output_dir}")
    create_sample_items(parsed.output_dir, parsed.symbols, parsed.per_kind, parsed.seed, now)
    print("Done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
