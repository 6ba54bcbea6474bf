"""Cross-source snapshot aggregation.

Merges scored items from the news, podcast and email streams into one
Snapshot: alert items, per-kind key events, symbols and tags corroborated
across source kinds, a source breakdown, and a deterministic executive
summary.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union

from marketpulse.content.io import load_items_jsonl, write_items_csv, write_snapshot_json
from marketpulse.content.models import (
    ContentItem,
    ScoredItem,
    Sentiment,
    Snapshot,
    SourceKind,
)
from marketpulse.content.score import RelevanceScorer
from marketpulse.content.scoring_config import load_scoring_config, scoring_config_from_env
from marketpulse.logging_setup import get_logger, log_event

logger = get_logger("content.snapshot")

MAX_KEY_EVENTS = 10
MAX_ALERT_ITEMS = 5
MAX_PATTERNS = 5
HIGH_RELEVANCE_SCORE = 70.0

SYMBOL_MIN_KINDS = 2
SYMBOL_MIN_COUNT = 3
TAG_MIN_KINDS = 2
TAG_MIN_COUNT = 4

NO_DATA_SUMMARY = "No market data found for the requested timeframe."

ItemsByKind = Mapping[Union[SourceKind, str], Sequence[Union[ContentItem, ScoredItem]]]


@dataclass
class _Mentions:
    """Source kinds and item count for one symbol or tag."""

    kinds: Set[SourceKind] = field(default_factory=set)
    count: int = 0


def rank_key(item: ScoredItem) -> Tuple[float, float, str]:
    """Sort key: score desc, newer first, then id.

    Unparseable timestamps sort as oldest. The id makes the order total.
    """
    published = item.published_at
    recency = -published.timestamp() if published is not None else math.inf
    return (-item.score, recency, item.id)


def rank_items(items: Iterable[ScoredItem]) -> List[ScoredItem]:
    """Order items by score, then recency, then id."""
    return sorted(items, key=rank_key)


def select_alerts(
    ranked: Sequence[ScoredItem],
    alert_threshold: float,
    limit: Optional[int] = MAX_ALERT_ITEMS,
) -> List[ScoredItem]:
    """First ``limit`` items at or above the alert threshold (all when None)."""
    alerts = [item for item in ranked if item.score >= alert_threshold]
    return alerts if limit is None else alerts[:limit]


def select_key_events(
    ranked: Sequence[ScoredItem],
    top_k_per_kind: Mapping[str, int],
    limit: int = MAX_KEY_EVENTS,
) -> List[ScoredItem]:
    """Top items per source kind, re-ranked and capped."""
    events: List[ScoredItem] = []
    for kind in SourceKind:
        k = top_k_per_kind.get(kind.value, 0)
        if k <= 0:
            continue
        events.extend([item for item in ranked if item.kind is kind][:k])
    return rank_items(events)[:limit]


def _count_mentions(
    ranked: Sequence[ScoredItem],
    attribute: str,
) -> Dict[str, _Mentions]:
    mentions: Dict[str, _Mentions] = {}
    for item in ranked:
        for value in getattr(item, attribute):
            entry = mentions.setdefault(value, _Mentions())
            entry.kinds.add(item.kind)
            entry.count += 1
    return mentions


def _corroborated(
    mentions: Mapping[str, _Mentions],
    min_kinds: int,
    min_count: int,
) -> List[Tuple[str, _Mentions]]:
    found = [
        (name, entry)
        for name, entry in mentions.items()
        if len(entry.kinds) >= min_kinds and entry.count >= min_count
    ]
    found.sort(key=lambda pair: (-len(pair[1].kinds), -pair[1].count, pair[0]))
    return found


def _kind_list(kinds: Set[SourceKind]) -> str:
    return ", ".join(kind.value for kind in SourceKind if kind in kinds)


def find_cross_source_patterns(
    ranked: Sequence[ScoredItem],
    limit: int = MAX_PATTERNS,
) -> List[str]:
    """Symbols and tags corroborated by several source kinds.

    A symbol needs 2+ kinds and 3+ mentions; a tag, being noisier, needs
    2+ kinds and 4+ mentions. Symbol patterns come first when truncating.
    """
    patterns: List[str] = []

    for symbol, entry in _corroborated(
        _count_mentions(ranked, "symbols"), SYMBOL_MIN_KINDS, SYMBOL_MIN_COUNT
    ):
        patterns.append(
            f"{symbol} mentioned across {len(entry.kinds)} sources ({_kind_list(entry.kinds)})"
        )

    for tag, entry in _corroborated(
        _count_mentions(ranked, "tags"), TAG_MIN_KINDS, TAG_MIN_COUNT
    ):
        patterns.append(f'"{tag}" trending across {len(entry.kinds)} sources')

    return patterns[:limit]


def _percent(count: int, total: int) -> int:
    """Integer percent, rounding halves up."""
    return math.floor(count * 100 / total + 0.5)


def compose_summary(
    ranked: Sequence[ScoredItem],
    alert_items: Sequence[ScoredItem],
    patterns: Sequence[str],
    priority_symbols: Optional[Sequence[str]] = None,
) -> str:
    """Compose the executive summary from fixed sentences."""
    if not ranked:
        return NO_DATA_SUMMARY

    lines: List[str] = []

    high_relevance = sum(1 for item in ranked if item.score >= HIGH_RELEVANCE_SCORE)
    lines.append(
        f"Market activity analysis shows {len(ranked)} total items "
        f"with {high_relevance} high-relevance items."
    )

    if alert_items:
        lines.append(
            f"{len(alert_items)} critical alerts identified requiring immediate attention."
        )

    if priority_symbols:
        wanted = [s.strip().upper() for s in priority_symbols if s and s.strip()]
        if wanted:
            wanted_set = set(wanted)
            mentions = sum(1 for item in ranked if wanted_set.intersection(item.symbols))
            lines.append(f"{mentions} items mention priority symbols: {', '.join(wanted)}.")

    if patterns:
        lines.append(f"Key cross-source patterns: {patterns[0]}.")

    positive = sum(1 for item in ranked if item.sentiment is Sentiment.POSITIVE)
    negative = sum(1 for item in ranked if item.sentiment is Sentiment.NEGATIVE)
    total = len(ranked)
    positive_pct = _percent(positive, total)
    negative_pct = _percent(negative, total)

    if positive_pct > negative_pct:
        lines.append(
            f"Overall sentiment is positive ({positive_pct}% positive vs {negative_pct}% negative)."
        )
    elif negative_pct > positive_pct:
        lines.append(
            f"Overall sentiment is negative ({negative_pct}% negative vs {positive_pct}% positive)."
        )
    else:
        lines.append("Market sentiment appears mixed with balanced positive and negative coverage.")

    return " ".join(lines)


def aggregate(
    items_by_kind: ItemsByKind,
    scorer: RelevanceScorer,
    alert_threshold: Optional[float] = None,
    top_k_per_kind: Optional[Mapping[str, int]] = None,
    priority_symbols: Optional[Sequence[str]] = None,
    now: Optional[datetime] = None,
) -> Snapshot:
    """Build a Snapshot from items grouped by source kind.

    Every item is re-scored in this pass; scores carried on the input are
    never trusted.

    Args:
        items_by_kind: Items per source kind (kinds may be missing or empty).
        scorer: Relevance scorer to apply.
        alert_threshold: Alert cutoff; scorer config value when omitted.
        top_k_per_kind: Key events per kind; scorer config value when omitted.
        priority_symbols: Symbols the caller cares about, for the summary.
        now: Reference time shared by every item in the pass.

    Returns:
        The composed Snapshot. Empty input yields empty sequences, zero
        counts and a "no data" summary.
    """
    config = scorer.config
    if alert_threshold is None:
        alert_threshold = config.alert_threshold
    top_k = dict(config.top_k_per_kind)
    if top_k_per_kind is not None:
        top_k.update({SourceKind.parse(k).value: v for k, v in top_k_per_kind.items()})
    if now is None:
        now = datetime.now(timezone.utc)

    breakdown: Dict[SourceKind, int] = dict.fromkeys(SourceKind, 0)
    scored: List[ScoredItem] = []
    for raw_kind, items in items_by_kind.items():
        kind = SourceKind.parse(raw_kind)
        items = list(items or ())
        logger.debug("Scoring %d %s items", len(items), kind.value)
        for item in items:
            raw = item.item if isinstance(item, ScoredItem) else item
            # The map key decides the kind
            if raw.kind is not kind:
                raw = replace(raw, kind=kind)
            scored.append(scorer.score_item(raw, now=now))
            breakdown[kind] += 1

    ranked = rank_items(scored)
    all_alerts = select_alerts(ranked, alert_threshold, limit=None)
    alert_items = all_alerts[:MAX_ALERT_ITEMS]
    key_events = select_key_events(ranked, top_k)
    patterns = find_cross_source_patterns(ranked)
    summary = compose_summary(ranked, all_alerts, patterns, priority_symbols)

    log_event(
        logger,
        logging.INFO,
        "Snapshot composed",
        items=len(ranked),
        alerts=len(all_alerts),
        key_events=len(key_events),
        patterns=len(patterns),
        breakdown={kind.value: count for kind, count in breakdown.items()},
    )

    return Snapshot(
        summary_text=summary,
        key_events=key_events,
        alert_items=alert_items,
        cross_source_patterns=patterns,
        source_breakdown=breakdown,
    )


def build_snapshot_from_files(
    inputs: Mapping[SourceKind, Optional[Path]],
    output_path: Path,
    csv_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
    priority_symbols: Optional[Sequence[str]] = None,
) -> Snapshot:
    """Aggregate JSONL item files into a snapshot JSON (and optional CSV).

    Args:
        inputs: JSONL path per source kind; missing files count as empty.
        output_path: Path to write the snapshot JSON.
        csv_path: Optional path to write the ranked key events and alerts.
        config_path: Optional scoring config YAML.
        priority_symbols: Symbols to report in the summary.

    Returns:
        The Snapshot written.
    """
    config = load_scoring_config(config_path) if config_path else scoring_config_from_env()
    scorer = RelevanceScorer(config)

    items_by_kind = {
        kind: load_items_jsonl(path, kind=kind) if path else []
        for kind, path in inputs.items()
    }

    snapshot = aggregate(items_by_kind, scorer, priority_symbols=priority_symbols)
    write_snapshot_json(snapshot, output_path)
    if csv_path:
        write_items_csv(snapshot, csv_path)
    return snapshot


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Build a cross-source market snapshot")
    parser.add_argument("--news", default=None, help="News items JSONL path")
    parser.add_argument("--podcasts", default=None, help="Podcast items JSONL path")
    parser.add_argument("--emails", default=None, help="Email items JSONL path")
    parser.add_argument("--out", required=True, help="Output snapshot JSON path")
    parser.add_argument("--csv", default=None, help="Output CSV path for ranked items")
    parser.add_argument("--config", default=None, help="Scoring config YAML path")
    parser.add_argument(
        "--priority-symbols", default="", help="Comma-separated symbols, e.g. AAPL,MSFT"
    )

    args = parser.parse_args()
    symbols = [s.strip() for s in args.priority_symbols.split(",") if s.strip()]
    build_snapshot_from_files(
        {
            SourceKind.NEWS: Path(args.news) if args.news else None,
            SourceKind.PODCAST: Path(args.podcasts) if args.podcasts else None,
            SourceKind.EMAIL: Path(args.emails) if args.emails else None,
        },
        Path(args.out),
        csv_path=Path(args.csv) if args.csv else None,
        config_path=Path(args.config) if args.config else None,
        priority_symbols=symbols or None,
    )
