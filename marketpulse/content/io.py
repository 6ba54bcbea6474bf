"""JSONL item loading and snapshot export.

Raw items are read from JSONL (one record per line). Snapshots are
written as JSON, and the ranked items they contain as CSV.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from marketpulse.content.models import ContentItem, Snapshot, SourceKind
from marketpulse.logging_setup import get_logger

logger = get_logger("content.io")

CSV_COLUMNS = [
    "section",
    "rank",
    "id",
    "kind",
    "source_name",
    "timestamp",
    "title",
    "score",
    "tags_score",
    "symbols_score",
    "authority_score",
    "recency_score",
    "tags",
    "symbols",
    "sentiment",
]


def load_items_jsonl(
    input_path: Path,
    kind: Optional[Union[str, SourceKind]] = None,
) -> List[ContentItem]:
    """Load raw content items from a JSONL file.

    Invalid lines are skipped with a warning. Derived fields present in the
    file (score, tags, ...) are ignored.

    Args:
        input_path: Path to the JSONL file.
        kind: Source kind for every record; overrides any stored kind.

    Returns:
        Items in file order. A missing file yields an empty list.
    """
    if not input_path.exists():
        logger.warning("Input file not found: %s", input_path)
        return []

    items: List[ContentItem] = []
    with open(input_path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue

            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Invalid JSON line %d in %s: %s", line_no, input_path, line[:100])
                continue

            if not isinstance(record, dict):
                logger.warning("Skipping non-object line %d in %s", line_no, input_path)
                continue

            try:
                items.append(ContentItem.from_dict(record, kind=kind))
            except ValueError as e:
                logger.warning("Skipping line %d in %s: %s", line_no, input_path, e)

    logger.info("Loaded %d items from %s", len(items), input_path)
    return items


def write_snapshot_json(snapshot: Snapshot, output_path: Path) -> None:
    """Write a snapshot as pretty JSON."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(snapshot.to_dict(), f, ensure_ascii=False, indent=2)
    logger.info("Wrote snapshot to %s", output_path)


def snapshot_frame(snapshot: Snapshot) -> pd.DataFrame:
    """Key events and alerts as one flat table."""
    rows: List[Dict] = []
    for section, items in (("alert", snapshot.alert_items), ("key_event", snapshot.key_events)):
        for rank, scored in enumerate(items, start=1):
            data = scored.to_dict()
            rows.append({
                "section": section,
                "rank": rank,
                "id": data["id"],
                "kind": data["kind"],
                "source_name": data["source_name"],
                "timestamp": data["timestamp"],
                "title": data["title"],
                "score": data["score"],
                "tags_score": data["breakdown"]["tags"],
                "symbols_score": data["breakdown"]["symbols"],
                "authority_score": data["breakdown"]["authority"],
                "recency_score": data["breakdown"]["recency"],
                "tags": ";".join(data["tags"]),
                "symbols": ";".join(data["symbols"]),
                "sentiment": data["sentiment"],
            })
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def write_items_csv(snapshot: Snapshot, output_csv: Path) -> int:
    """Write alerts and key events to CSV.

    Returns:
        Number of rows written.
    """
    df = snapshot_frame(snapshot)
    output_csv.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_csv, index=False)
    logger.info("Wrote %d ranked items to %s", len(df), output_csv)
    return len(df)
