"""Content scoring and cross-source aggregation.

This module scores news, podcast and email items for market relevance and
composes them into a single briefing snapshot.

Modules:
    models: Content records, source kinds and the Snapshot
    signals: Keyword tags, ticker symbols and sentiment from text
    authority: Thread-safe source authority table
    scoring_config: Validated scoring configuration (YAML)
    score: Relevance scoring with recency decay
    snapshot: Cross-source aggregation and executive summary
    search: Query search with direct-match boosts
    collect: Parallel fetch orchestration and raw-output caching
    io: JSONL loading and snapshot export
"""

from marketpulse.content.authority import SourceAuthorityTable
from marketpulse.content.collect import build_market_snapshot, collect_items
from marketpulse.content.models import ContentItem, ScoredItem, Sentiment, Snapshot, SourceKind
from marketpulse.content.score import RelevanceScorer
from marketpulse.content.scoring_config import (
    ScoringConfig,
    ScoringConfigError,
    load_scoring_config,
)
from marketpulse.content.search import search_items
from marketpulse.content.signals import extract_signals
from marketpulse.content.snapshot import aggregate

__all__ = [
    "ContentItem",
    "RelevanceScorer",
    "ScoredItem",
    "ScoringConfig",
    "ScoringConfigError",
    "Sentiment",
    "Snapshot",
    "SourceAuthorityTable",
    "SourceKind",
    "aggregate",
    "build_market_snapshot",
    "collect_items",
    "extract_signals",
    "load_scoring_config",
    "search_items",
]
